"""Recovery job: find stuck videos, gate, analyse, act, and summarise.

One run is a single pass over the candidate videos::

    finder -> safety gate -> pipeline analysis -> decision -> executor -> report

The same function backs the scheduled cron trigger, the admin trigger and the
command-line script. Per-video failures (missing record, lost claim, publish
error) are recorded and the run continues; a ``StorageError`` aborts the run.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from supabase import Client

from chronos.events import EventPublishError, InngestClient
from chronos.recovery.decision import decide_action, describe_action
from chronos.recovery.executor import RecoveryConflictError, VideoNotFoundError, execute_action
from chronos.recovery.gate import check_gate
from chronos.recovery.models import (
    GateVerdict,
    OutcomeStatus,
    PipelineState,
    RecoveryAction,
    RecoveryOptions,
    RecoveryPolicy,
    RecoveryReport,
    RecoveryResult,
)
from chronos.videos.models import Video
from chronos.videos.storage import count_pipeline_artifacts, get_stuck_videos, get_videos_by_ids

logger = logging.getLogger(__name__)


def inspect_pipeline(client: Client, video: Video) -> PipelineState:
    """Collect transcript / chunk / embedding presence for a video."""
    chunk_count, embedding_count = count_pipeline_artifacts(client, video.id)
    return PipelineState(
        status=video.status,
        has_transcript=video.has_transcript,
        chunk_count=chunk_count,
        embedding_count=embedding_count,
    )


def recover_video(
    client: Client,
    publisher: InngestClient,
    video: Video,
    options: RecoveryOptions,
    policy: RecoveryPolicy,
    now: datetime,
) -> RecoveryResult:
    """Run the gate, decision and (unless dry-run) the executor for one video."""
    recovery = video.recovery
    gate = check_gate(recovery, now, policy, force=options.force)

    if gate.verdict is GateVerdict.COOLDOWN:
        result = RecoveryResult(video.id, OutcomeStatus.SKIPPED, gate.reason)
        _log_result(video, gate.verdict, result)
        return result

    action: RecoveryAction | None
    if gate.verdict is GateVerdict.ATTEMPTS_EXHAUSTED:
        action = RecoveryAction.MARK_FAILED
        reason = f"Auto-recovery failed after {recovery.attempts} attempts"
    else:
        action = decide_action(inspect_pipeline(client, video))
        if action is None:
            result = RecoveryResult(
                video.id, OutcomeStatus.SKIPPED, "Pipeline already complete; nothing to repair"
            )
            _log_result(video, gate.verdict, result)
            return result
        reason = describe_action(action)

    outcome = OutcomeStatus.FAILED if action is RecoveryAction.MARK_FAILED else OutcomeStatus.RECOVERED
    attempt = policy.next_attempt(recovery.attempts, force=options.force)

    if options.dry_run:
        result = RecoveryResult(video.id, outcome, f"Would trigger {action}: {reason}", action, attempt)
        _log_result(video, gate.verdict, result)
        return result

    try:
        bookkeeping = execute_action(
            client,
            publisher,
            video.id,
            action,
            policy=policy,
            now=now,
            reason=reason,
            force=options.force,
        )
        result = RecoveryResult(video.id, outcome, reason, action, bookkeeping.attempts)
    except VideoNotFoundError:
        logger.warning("Video %s disappeared mid-run; skipping", video.id)
        result = RecoveryResult(video.id, OutcomeStatus.SKIPPED, "Video not found", action)
    except RecoveryConflictError:
        logger.warning("Video %s was claimed by a concurrent recovery run; skipping", video.id)
        result = RecoveryResult(
            video.id, OutcomeStatus.SKIPPED, "Recovery already in progress", action
        )
    except EventPublishError as exc:
        logger.exception("Failed to publish retry event for video %s", video.id)
        result = RecoveryResult(video.id, OutcomeStatus.FAILED, str(exc), action, attempt)

    _log_result(video, gate.verdict, result)
    return result


def run_recovery(
    client: Client,
    publisher: InngestClient,
    options: RecoveryOptions | None = None,
    policy: RecoveryPolicy | None = None,
    now: datetime | None = None,
) -> RecoveryReport:
    """Run one recovery pass and return the aggregate report.

    Args:
        client: Supabase client.
        publisher: Inngest client for ``retry-embeddings``.
        options: force / dry-run / scoped video IDs. Defaults to a plain
            scheduled run.
        policy: Attempt cap and cooldown. Defaults to ``RecoveryPolicy()``.
        now: Reference time; defaults to the current UTC time.

    Raises:
        StorageError: the candidate query (or any per-video query) failed.
    """
    options = options or RecoveryOptions()
    policy = policy or RecoveryPolicy()
    now = now or datetime.now(UTC)
    started = time.monotonic()

    if options.video_ids:
        videos = get_videos_by_ids(client, options.video_ids)
    else:
        videos = get_stuck_videos(client, now)

    logger.info(
        "Starting recovery run: candidates=%d scope=%s force=%s dry_run=%s",
        len(videos),
        len(options.video_ids) if options.video_ids else "all",
        options.force,
        options.dry_run,
    )

    report = RecoveryReport(options=options)
    for video in videos:
        report.results.append(recover_video(client, publisher, video, options, policy, now))

    report.execution_time_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Recovery run finished: total=%d recovered=%d failed=%d skipped=%d dry_run=%s in %dms",
        report.total,
        report.recovered,
        report.failed,
        report.skipped,
        options.dry_run,
        report.execution_time_ms,
    )
    return report


def _log_result(video: Video, verdict: GateVerdict, result: RecoveryResult) -> None:
    logger.info(
        "video=%s status=%s gate=%s action=%s outcome=%s reason=%s",
        video.id,
        video.status,
        verdict,
        result.action,
        result.status,
        result.reason,
    )
