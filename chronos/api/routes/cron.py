"""Scheduled trigger: the cron job that auto-recovers stuck videos every 5 minutes."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from chronos.api.deps import require_cron_secret
from chronos.api.models import RecoveryResponse, build_recovery_response
from chronos.config import settings
from chronos.events import get_event_client
from chronos.recovery.models import RecoveryOptions, RecoveryPolicy
from chronos.recovery.runner import run_recovery
from chronos.videos.storage import StorageError, get_supabase_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/api/cron/recover-stuck-videos",
    response_model=RecoveryResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def recover_stuck_videos() -> RecoveryResponse:
    """Find stuck videos and apply one recovery action to each.

    Force and dry-run are not available here; the attempt cap and the
    cooldown always apply.
    """
    logger.info("Starting scheduled auto-recovery job")
    try:
        # Supabase and Inngest clients are synchronous; keep them off the event loop.
        with get_event_client() as publisher:
            report = await asyncio.to_thread(
                run_recovery,
                get_supabase_client(),
                publisher,
                RecoveryOptions(),
                RecoveryPolicy.from_settings(settings),
            )
    except StorageError as exc:
        logger.exception("Scheduled recovery aborted")
        raise HTTPException(status_code=500, detail=f"Recovery run aborted: {exc}") from exc

    message = None if report.total else "No stuck videos found"
    return build_recovery_response(report, message)
