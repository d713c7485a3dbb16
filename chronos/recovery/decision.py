"""Recovery decision table: map a video's pipeline state to a corrective action."""

from __future__ import annotations

from chronos.recovery.models import PipelineState, RecoveryAction
from chronos.videos.models import VideoStatus

_ACTION_REASONS: dict[RecoveryAction, str] = {
    RecoveryAction.RETRY_EMBEDDINGS: "Transcript present but chunks or embeddings missing",
    RecoveryAction.FIX_STATUS: "All artifacts present; status was never completed",
    RecoveryAction.MARK_FAILED: "No viable recovery action (missing transcript)",
}


def decide_action(state: PipelineState) -> RecoveryAction | None:
    """Pick the corrective action for a video, first match wins.

    1. no transcript                      -> mark-failed
    2. transcript, no chunks              -> retry-embeddings
    3. chunks, no embeddings              -> retry-embeddings
    4. chunks + embeddings, not completed -> fix-status

    Returns None when the video is already completed with all artifacts in
    place, i.e. there is nothing to repair.
    """
    if not state.has_transcript:
        return RecoveryAction.MARK_FAILED
    if not state.has_chunks or not state.has_embeddings:
        return RecoveryAction.RETRY_EMBEDDINGS
    if state.status is not VideoStatus.COMPLETED:
        return RecoveryAction.FIX_STATUS
    return None


def describe_action(action: RecoveryAction) -> str:
    return _ACTION_REASONS[action]
