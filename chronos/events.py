"""Inngest event publishing over the HTTP event API."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from chronos.config import settings
from chronos.videos.models import Video

logger = logging.getLogger(__name__)

# Event the embedding pipeline listens on; republishing it re-runs chunking + embeddings
TRANSCRIPTION_COMPLETED_EVENT = "video/transcription.completed"
HEALTH_CHECK_EVENT = "test/health-check"


class EventPublishError(Exception):
    """Raised when an event cannot be delivered to Inngest."""


class InngestClient:
    """Minimal client for ``POST {base_url}/e/{event_key}``."""

    def __init__(
        self,
        event_key: str,
        base_url: str = "https://inn.gs",
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.event_key = event_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> InngestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def configured(self) -> bool:
        return bool(self.event_key)

    def send(self, name: str, data: dict[str, Any]) -> list[str]:
        """Publish one event and return the IDs Inngest assigned to it.

        Raises:
            EventPublishError: no event key configured, transport failure, or
                a non-2xx response.
        """
        if not self.configured:
            raise EventPublishError("INNGEST_EVENT_KEY is not configured")

        payload = {"name": name, "data": data, "ts": int(time.time() * 1000)}
        try:
            r = self._http.post(f"{self.base_url}/e/{self.event_key}", json=payload)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise EventPublishError(f"Failed to send event {name}: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = {}
        ids = body.get("ids", []) if isinstance(body, dict) else []
        logger.info("Sent event %s (ids=%s)", name, ids)
        return [str(i) for i in ids]


def get_event_client() -> InngestClient:
    """Build an InngestClient from settings."""
    return InngestClient(
        event_key=settings.inngest_event_key,
        base_url=settings.inngest_base_url,
        timeout=settings.inngest_timeout_seconds,
    )


def build_retry_embeddings_event(video: Video) -> tuple[str, dict[str, Any]]:
    """Event that makes the pipeline regenerate chunks and embeddings for a video."""
    return TRANSCRIPTION_COMPLETED_EVENT, {
        "video_id": video.id,
        "creator_id": video.creator_id,
        "transcript": video.transcript,
        "skip_if_exists": False,
    }
