"""Data models for video records and their recovery bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class VideoStatus(StrEnum):
    """Processing status of a video, in pipeline order."""

    PENDING = "pending"
    UPLOADING = "uploading"
    TRANSCRIBING = "transcribing"
    PROCESSING = "processing"
    EMBEDDING = "embedding"
    COMPLETED = "completed"
    FAILED = "failed"


# Keys of the recovery bookkeeping stored inside videos.metadata
ATTEMPTS_KEY = "recovery_attempts"
LAST_ATTEMPT_KEY = "last_recovery_attempt"
LAST_ACTION_KEY = "last_recovery_action"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a Supabase ISO-8601 timestamp into an aware UTC datetime.

    Returns None for missing or unparseable values. Naive timestamps are
    assumed to be UTC (Postgres ``timestamp`` columns carry no offset).
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass
class RecoveryMetadata:
    """Recovery bookkeeping for a single video."""

    attempts: int = 0
    last_attempt_at: datetime | None = None
    last_action: str | None = None

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any] | None) -> RecoveryMetadata:
        metadata = metadata or {}
        try:
            attempts = int(metadata.get(ATTEMPTS_KEY) or 0)
        except (TypeError, ValueError):
            attempts = 0
        return cls(
            attempts=max(attempts, 0),
            last_attempt_at=parse_timestamp(metadata.get(LAST_ATTEMPT_KEY)),
            last_action=metadata.get(LAST_ACTION_KEY),
        )

    def to_metadata(self) -> dict[str, Any]:
        return {
            ATTEMPTS_KEY: self.attempts,
            LAST_ATTEMPT_KEY: self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            LAST_ACTION_KEY: self.last_action,
        }


@dataclass
class Video:
    """A row of the ``videos`` table, reduced to what recovery needs."""

    id: str
    status: VideoStatus
    transcript: str | None = None
    title: str | None = None
    creator_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcript and self.transcript.strip())

    @property
    def recovery(self) -> RecoveryMetadata:
        return RecoveryMetadata.from_metadata(self.metadata)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Video:
        """Build a Video from a Supabase row.

        Raises:
            ValueError: if the row's status is not a known VideoStatus.
        """
        metadata = row.get("metadata")
        return cls(
            id=str(row["id"]),
            status=VideoStatus(row["status"]),
            transcript=row.get("transcript"),
            title=row.get("title"),
            creator_id=row.get("creator_id"),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            error_message=row.get("error_message"),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )
