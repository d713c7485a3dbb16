"""Shared fixtures: a fixed clock and a factory for Video records."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from chronos.videos.models import Video, VideoStatus

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_video() -> Callable[..., Video]:
    """Build a Video stuck in ``processing`` for 20 minutes unless overridden."""

    def _make(
        video_id: str = "vid-1",
        status: VideoStatus = VideoStatus.PROCESSING,
        transcript: str | None = "Welcome to lesson one.",
        attempts: int | None = None,
        last_attempt: datetime | None = None,
        updated_minutes_ago: int = 20,
        **extra: Any,
    ) -> Video:
        metadata: dict[str, Any] = extra.pop("metadata", {})
        if attempts is not None:
            metadata["recovery_attempts"] = attempts
        if last_attempt is not None:
            metadata["last_recovery_attempt"] = last_attempt.isoformat()
        return Video(
            id=video_id,
            status=status,
            transcript=transcript,
            title=extra.pop("title", "Lesson 1"),
            creator_id=extra.pop("creator_id", "creator-1"),
            created_at=NOW - timedelta(hours=2),
            updated_at=NOW - timedelta(minutes=updated_minutes_ago),
            metadata=metadata,
            **extra,
        )

    return _make
