"""Per-video pipeline diagnostics for the admin debug endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from chronos.recovery.decision import decide_action
from chronos.recovery.gate import check_gate
from chronos.recovery.models import (
    GateDecision,
    GateVerdict,
    PipelineState,
    RecoveryAction,
    RecoveryPolicy,
)
from chronos.recovery.runner import inspect_pipeline
from chronos.videos.models import RecoveryMetadata, Video, VideoStatus
from chronos.videos.state import (
    StageMetadata,
    calculate_progress,
    get_next_states,
    get_stage_metadata,
    is_stuck,
    is_terminal_state,
    stuck_minutes,
)
from chronos.videos.storage import count_pipeline_artifacts, get_stuck_videos, get_video

TRANSCRIPT_PREVIEW_CHARS = 200


@dataclass
class VideoDiagnostics:
    video: Video
    stage: StageMetadata
    progress: int
    next_states: tuple[VideoStatus, ...]
    is_terminal: bool
    pipeline: PipelineState
    is_stuck: bool
    stuck_minutes: int
    recovery: RecoveryMetadata
    gate: GateDecision
    proposed_action: RecoveryAction | None


@dataclass
class StuckVideoInfo:
    video: Video
    stuck_minutes: int
    chunk_count: int
    transcript_preview: str | None


def get_video_diagnostics(
    client: Client,
    video_id: str,
    now: datetime | None = None,
    policy: RecoveryPolicy | None = None,
) -> VideoDiagnostics | None:
    """Describe where a video sits in the pipeline and what recovery would do.

    Returns None if the video does not exist.
    """
    video = get_video(client, video_id)
    if video is None:
        return None

    now = now or datetime.now(UTC)
    policy = policy or RecoveryPolicy()
    pipeline = inspect_pipeline(client, video)
    gate = check_gate(video.recovery, now, policy)

    proposed: RecoveryAction | None
    if gate.verdict is GateVerdict.ATTEMPTS_EXHAUSTED:
        proposed = RecoveryAction.MARK_FAILED
    else:
        proposed = decide_action(pipeline)

    return VideoDiagnostics(
        video=video,
        stage=get_stage_metadata(video.status),
        progress=calculate_progress(video.status),
        next_states=get_next_states(video.status),
        is_terminal=is_terminal_state(video.status),
        pipeline=pipeline,
        is_stuck=is_stuck(video, now),
        stuck_minutes=stuck_minutes(video, now),
        recovery=video.recovery,
        gate=gate,
        proposed_action=proposed,
    )


def _preview(transcript: str | None) -> str | None:
    if not transcript:
        return None
    if len(transcript) <= TRANSCRIPT_PREVIEW_CHARS:
        return transcript
    return transcript[:TRANSCRIPT_PREVIEW_CHARS] + "..."


def list_stuck_videos(client: Client, now: datetime | None = None) -> list[StuckVideoInfo]:
    """Stuck videos with chunk counts, longest-stuck first."""
    now = now or datetime.now(UTC)
    infos: list[StuckVideoInfo] = []
    for video in get_stuck_videos(client, now):
        chunk_count, _ = count_pipeline_artifacts(client, video.id)
        infos.append(
            StuckVideoInfo(
                video=video,
                stuck_minutes=stuck_minutes(video, now),
                chunk_count=chunk_count,
                transcript_preview=_preview(video.transcript),
            )
        )
    infos.sort(key=lambda i: i.stuck_minutes, reverse=True)
    return infos
