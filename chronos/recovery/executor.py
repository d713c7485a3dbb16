"""Action executor: apply a recovery action and record the attempt."""

from __future__ import annotations

import logging
from datetime import datetime

from supabase import Client

from chronos.events import InngestClient, build_retry_embeddings_event
from chronos.recovery.decision import describe_action
from chronos.recovery.models import RecoveryAction, RecoveryPolicy
from chronos.videos.models import RecoveryMetadata, VideoStatus
from chronos.videos.storage import claim_recovery_attempt, get_video, update_video_status

logger = logging.getLogger(__name__)


class VideoNotFoundError(Exception):
    """The video disappeared between selection and execution."""


class RecoveryConflictError(Exception):
    """Another run recorded an attempt on this video first."""


def execute_action(
    client: Client,
    publisher: InngestClient,
    video_id: str,
    action: RecoveryAction,
    policy: RecoveryPolicy,
    now: datetime,
    reason: str | None = None,
    force: bool = False,
) -> RecoveryMetadata:
    """Record a recovery attempt for a video, then perform ``action``.

    Bookkeeping is written before the side effect, so an attempt whose
    publish fails still counts toward the cap.

    Args:
        client: Supabase client.
        publisher: Inngest client used by ``retry-embeddings``.
        video_id: Target video.
        action: Action chosen by the gate / decision table.
        policy: Supplies the attempt cap.
        now: Timestamp recorded as the attempt time.
        reason: Error message stored by ``mark-failed``.
        force: Admin override; lets the attempt count pass the cap.

    Returns:
        The bookkeeping written for this attempt.

    Raises:
        VideoNotFoundError: the video no longer exists.
        RecoveryConflictError: a concurrent run claimed the attempt.
        EventPublishError: the retry event could not be published.
        StorageError: any database failure.
    """
    video = get_video(client, video_id)
    if video is None:
        raise VideoNotFoundError(video_id)

    attempts = policy.next_attempt(video.recovery.attempts, force=force)
    bookkeeping = RecoveryMetadata(attempts=attempts, last_attempt_at=now, last_action=action.value)

    if not claim_recovery_attempt(client, video, bookkeeping):
        raise RecoveryConflictError(video_id)

    if action is RecoveryAction.RETRY_EMBEDDINGS:
        name, data = build_retry_embeddings_event(video)
        publisher.send(name, data)
    elif action is RecoveryAction.FIX_STATUS:
        update_video_status(client, video_id, VideoStatus.COMPLETED, now)
    elif action is RecoveryAction.MARK_FAILED:
        update_video_status(
            client,
            video_id,
            VideoStatus.FAILED,
            now,
            error_message=reason or describe_action(action),
        )
    else:
        raise ValueError(f"Unknown recovery action: {action}")

    logger.info("Executed %s on video %s (attempt %d)", action, video_id, attempts)
    return bookkeeping
