"""Admin endpoints: manual recovery, stuck-video listing, diagnostics, stats."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException

from chronos.api.deps import require_admin_key
from chronos.api.models import (
    AdminRecoveryRequest,
    PipelineInfo,
    ProcessingStatsResponse,
    RecoveryInfo,
    RecoveryResponse,
    StageInfo,
    StuckVideoResponse,
    StuckVideosResponse,
    VideoDiagnosticsResponse,
    build_recovery_response,
)
from chronos.config import settings
from chronos.events import get_event_client
from chronos.recovery.diagnostics import get_video_diagnostics, list_stuck_videos
from chronos.recovery.models import RecoveryOptions, RecoveryPolicy
from chronos.recovery.runner import run_recovery
from chronos.videos.storage import StorageError, get_processing_stats, get_supabase_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin_key)])


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@router.post("/recover-stuck-videos", response_model=RecoveryResponse)
async def recover_stuck_videos(request: AdminRecoveryRequest | None = None) -> RecoveryResponse:
    """Run the recovery job on demand.

    - ``video_ids``: restrict the run to these videos (stuck or not).
    - ``dry_run``: report what would happen without writing or publishing.
    - ``force``: bypass the attempt cap and the cooldown.
    """
    request = request or AdminRecoveryRequest()
    options = RecoveryOptions(
        force=request.force,
        dry_run=request.dry_run,
        video_ids=request.video_ids or None,
    )
    logger.info(
        "Starting manual recovery: force=%s dry_run=%s targets=%s",
        options.force,
        options.dry_run,
        len(options.video_ids) if options.video_ids else "all",
    )

    try:
        with get_event_client() as publisher:
            report = await asyncio.to_thread(
                run_recovery,
                get_supabase_client(),
                publisher,
                options,
                RecoveryPolicy.from_settings(settings),
            )
    except StorageError as exc:
        logger.exception("Manual recovery aborted")
        raise HTTPException(status_code=500, detail=f"Recovery run aborted: {exc}") from exc

    message = None
    if not report.total:
        message = "No matching videos found" if options.video_ids else "No stuck videos found"
    return build_recovery_response(report, message)


@router.get("/stuck-videos", response_model=StuckVideosResponse)
async def stuck_videos() -> StuckVideosResponse:
    """List stuck videos with diagnostic counters, longest-stuck first."""
    now = datetime.now(UTC)
    try:
        infos = await asyncio.to_thread(list_stuck_videos, get_supabase_client(), now)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch stuck videos: {exc}") from exc

    data = [
        StuckVideoResponse(
            id=i.video.id,
            title=i.video.title,
            status=i.video.status,
            creator_id=i.video.creator_id,
            created_at=_iso(i.video.created_at),
            updated_at=_iso(i.video.updated_at),
            error_message=i.video.error_message,
            stuck_duration_minutes=i.stuck_minutes,
            has_transcript=i.video.has_transcript,
            chunk_count=i.chunk_count,
            transcript_preview=i.transcript_preview,
        )
        for i in infos
    ]
    return StuckVideosResponse(data=data, count=len(data), timestamp=now.isoformat())


@router.get("/video-diagnostics/{video_id}", response_model=VideoDiagnosticsResponse)
async def video_diagnostics(video_id: str) -> VideoDiagnosticsResponse:
    """Per-video pipeline state and what the recovery job would do with it."""
    try:
        diag = await asyncio.to_thread(
            get_video_diagnostics,
            get_supabase_client(),
            video_id,
            None,
            RecoveryPolicy.from_settings(settings),
        )
    except StorageError as exc:
        logger.exception("Failed to get diagnostics for video %s", video_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve diagnostics: {exc}") from exc

    if diag is None:
        raise HTTPException(status_code=404, detail="Video not found")

    logger.info("Retrieved diagnostics for video %s (stuck=%s)", video_id, diag.is_stuck)
    return VideoDiagnosticsResponse(
        video_id=diag.video.id,
        title=diag.video.title,
        status=diag.video.status,
        stage=StageInfo(
            name=diag.stage.name,
            description=diag.stage.description,
            retryable=diag.stage.retryable,
            max_retries=diag.stage.max_retries,
            timeout_minutes=diag.stage.timeout_minutes,
        ),
        progress=diag.progress,
        next_states=list(diag.next_states),
        is_terminal=diag.is_terminal,
        is_stuck=diag.is_stuck,
        stuck_minutes=diag.stuck_minutes,
        error_message=diag.video.error_message,
        updated_at=_iso(diag.video.updated_at),
        pipeline=PipelineInfo(
            has_transcript=diag.pipeline.has_transcript,
            chunk_count=diag.pipeline.chunk_count,
            embedding_count=diag.pipeline.embedding_count,
        ),
        recovery=RecoveryInfo(
            attempts=diag.recovery.attempts,
            last_attempt_at=_iso(diag.recovery.last_attempt_at),
            last_action=diag.recovery.last_action,
            gate=diag.gate.verdict,
            gate_reason=diag.gate.reason,
            retry_in_minutes=diag.gate.retry_in_minutes,
            proposed_action=diag.proposed_action,
        ),
    )


@router.get("/processing-stats", response_model=ProcessingStatsResponse)
async def processing_stats() -> ProcessingStatsResponse:
    """Count of non-deleted videos per processing status."""
    try:
        stats = await asyncio.to_thread(get_processing_stats, get_supabase_client())
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch processing stats: {exc}") from exc
    return ProcessingStatsResponse(stats=stats, total=sum(stats.values()))
