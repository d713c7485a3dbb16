"""Pydantic request/response schemas for the Chronos recovery API."""

from __future__ import annotations

from pydantic import BaseModel

from chronos.recovery.models import GateVerdict, OutcomeStatus, RecoveryAction, RecoveryReport
from chronos.videos.models import VideoStatus


class AdminRecoveryRequest(BaseModel):
    """Request body for POST /api/admin/recover-stuck-videos."""

    force: bool = False
    dry_run: bool = False
    video_ids: list[str] | None = None


class RecoveryResultItem(BaseModel):
    """Outcome for a single video."""

    video_id: str
    status: OutcomeStatus
    reason: str
    action: RecoveryAction | None = None
    attempt: int | None = None


class RecoveryOptionsEcho(BaseModel):
    force: bool
    dry_run: bool
    target_videos: int | str  # number of scoped IDs, or "all"


class RecoveryResponse(BaseModel):
    """Response body for both recovery triggers."""

    success: bool = True
    dry_run: bool = False
    recovered: int
    failed: int
    skipped: int
    total: int
    results: list[RecoveryResultItem]
    message: str | None = None
    options: RecoveryOptionsEcho | None = None
    execution_time_ms: int


class StuckVideoResponse(BaseModel):
    """A stuck video with the counters the debug panel shows."""

    id: str
    title: str | None = None
    status: VideoStatus
    creator_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    error_message: str | None = None
    stuck_duration_minutes: int
    has_transcript: bool
    chunk_count: int
    transcript_preview: str | None = None


class StuckVideosResponse(BaseModel):
    success: bool = True
    data: list[StuckVideoResponse]
    count: int
    timestamp: str


class StageInfo(BaseModel):
    name: str
    description: str
    retryable: bool
    max_retries: int
    timeout_minutes: int


class PipelineInfo(BaseModel):
    has_transcript: bool
    chunk_count: int
    embedding_count: int


class RecoveryInfo(BaseModel):
    attempts: int
    last_attempt_at: str | None = None
    last_action: str | None = None
    gate: GateVerdict
    gate_reason: str = ""
    retry_in_minutes: int | None = None
    proposed_action: RecoveryAction | None = None


class VideoDiagnosticsResponse(BaseModel):
    """Response body for GET /api/admin/video-diagnostics/{video_id}."""

    success: bool = True
    video_id: str
    title: str | None = None
    status: VideoStatus
    stage: StageInfo
    progress: int
    next_states: list[VideoStatus]
    is_terminal: bool
    is_stuck: bool
    stuck_minutes: int
    error_message: str | None = None
    updated_at: str | None = None
    pipeline: PipelineInfo
    recovery: RecoveryInfo


class ProcessingStatsResponse(BaseModel):
    success: bool = True
    stats: dict[VideoStatus, int]
    total: int


class QueueHealthResponse(BaseModel):
    """Response body for GET /health/inngest."""

    healthy: bool
    status: str  # "healthy", "degraded", "unhealthy"
    message: str
    timestamp: str
    response_time_ms: int | None = None
    client_configured: bool
    error: str | None = None


def build_recovery_response(report: RecoveryReport, message: str | None = None) -> RecoveryResponse:
    """Convert a RecoveryReport into the API response shape."""
    options = report.options
    return RecoveryResponse(
        dry_run=options.dry_run,
        recovered=report.recovered,
        failed=report.failed,
        skipped=report.skipped,
        total=report.total,
        results=[
            RecoveryResultItem(
                video_id=r.video_id,
                status=r.status,
                reason=r.reason,
                action=r.action,
                attempt=r.attempt,
            )
            for r in report.results
        ],
        message=message,
        options=RecoveryOptionsEcho(
            force=options.force,
            dry_run=options.dry_run,
            target_videos=len(options.video_ids) if options.video_ids else "all",
        ),
        execution_time_ms=report.execution_time_ms,
    )
