"""Supabase storage helpers for videos and their transcript chunks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, cast

import httpx
from postgrest import CountMethod
from postgrest.exceptions import APIError
from supabase import Client, create_client

from chronos.config import settings
from chronos.videos.models import LAST_ATTEMPT_KEY, RecoveryMetadata, Video, VideoStatus
from chronos.videos.state import IN_FLIGHT_STATUSES, is_stuck

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a Supabase query fails (API error or transport failure)."""


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def _execute(query: Any, action: str) -> Any:
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise StorageError(f"Failed to {action}: {exc}") from exc


def _to_videos(rows: list[dict[str, Any]]) -> list[Video]:
    videos: list[Video] = []
    for row in rows:
        try:
            videos.append(Video.from_row(row))
        except ValueError:
            logger.warning("Skipping video %s with unknown status %r", row.get("id"), row.get("status"))
    return videos


def get_stuck_videos(client: Client, now: datetime) -> list[Video]:
    """Return non-deleted videos that sit in an in-flight stage past its timeout."""
    result = _execute(
        client.table("videos")
        .select("*")
        .in_("status", [s.value for s in IN_FLIGHT_STATUSES])
        .eq("is_deleted", False)
        .order("updated_at"),
        "fetch in-flight videos",
    )
    videos = _to_videos(cast(list[dict[str, Any]], result.data))
    return [v for v in videos if is_stuck(v, now)]


def get_videos_by_ids(client: Client, video_ids: list[str]) -> list[Video]:
    """Return the videos with the given IDs (missing IDs are simply absent)."""
    if not video_ids:
        return []
    result = _execute(
        client.table("videos").select("*").in_("id", video_ids),
        "fetch videos by id",
    )
    return _to_videos(cast(list[dict[str, Any]], result.data))


def get_video(client: Client, video_id: str) -> Video | None:
    """Return a single video, or None if it does not exist."""
    result = _execute(
        client.table("videos").select("*").eq("id", video_id),
        f"fetch video {video_id}",
    )
    videos = _to_videos(cast(list[dict[str, Any]], result.data))
    return videos[0] if videos else None


def count_pipeline_artifacts(client: Client, video_id: str) -> tuple[int, int]:
    """Return ``(chunk_count, embedded_chunk_count)`` for a video."""
    chunks = _execute(
        client.table("video_chunks")
        .select("id", count=CountMethod.exact)
        .eq("video_id", video_id),
        f"count chunks for video {video_id}",
    )
    embedded = _execute(
        client.table("video_chunks")
        .select("id", count=CountMethod.exact)
        .eq("video_id", video_id)
        .not_.is_("embedding", "null"),
        f"count embeddings for video {video_id}",
    )
    return chunks.count or 0, embedded.count or 0


def claim_recovery_attempt(client: Client, video: Video, bookkeeping: RecoveryMetadata) -> bool:
    """Write recovery bookkeeping if no other run has touched it since ``video`` was read.

    The update is conditional on ``metadata->>last_recovery_attempt`` still
    holding the value seen in ``video``, so two overlapping runs cannot both
    claim the same attempt. Other metadata keys are preserved.

    Returns:
        True if this call won the claim, False if the row changed (or vanished).
    """
    metadata = {**video.metadata, **bookkeeping.to_metadata()}
    previous = video.metadata.get(LAST_ATTEMPT_KEY)

    query = client.table("videos").update({"metadata": metadata}).eq("id", video.id)
    if previous is None:
        query = query.is_(f"metadata->>{LAST_ATTEMPT_KEY}", "null")
    else:
        query = query.eq(f"metadata->>{LAST_ATTEMPT_KEY}", previous)

    result = _execute(query, f"record recovery attempt for video {video.id}")
    return bool(result.data)


def update_video_status(
    client: Client,
    video_id: str,
    status: VideoStatus,
    now: datetime,
    error_message: str | None = None,
) -> None:
    """Set a video's status; completing it also stamps ``processing_completed_at``."""
    timestamp = now.isoformat()
    update: dict[str, Any] = {
        "status": status.value,
        "error_message": error_message,
        "updated_at": timestamp,
    }
    if status is VideoStatus.COMPLETED:
        update["processing_completed_at"] = timestamp

    _execute(
        client.table("videos").update(update).eq("id", video_id),
        f"set status {status.value} on video {video_id}",
    )


def get_processing_stats(client: Client) -> dict[VideoStatus, int]:
    """Count non-deleted videos per status (every status present, zero if none)."""
    result = _execute(
        client.table("videos").select("status").eq("is_deleted", False),
        "fetch processing stats",
    )
    stats = {status: 0 for status in VideoStatus}
    for row in cast(list[dict[str, Any]], result.data):
        try:
            stats[VideoStatus(row["status"])] += 1
        except ValueError:
            logger.warning("Ignoring unknown video status %r in stats", row.get("status"))
    return stats
