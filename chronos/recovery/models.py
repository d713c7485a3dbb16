"""Data models for the stuck-video recovery job."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum

from chronos.config import Settings
from chronos.videos.models import VideoStatus


class RecoveryAction(StrEnum):
    """Corrective action taken for a stuck video."""

    RETRY_EMBEDDINGS = "retry-embeddings"
    FIX_STATUS = "fix-status"
    MARK_FAILED = "mark-failed"


class GateVerdict(StrEnum):
    """Outcome of the safety gate that runs before analysis."""

    PROCEED = "proceed"
    COOLDOWN = "cooldown"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"


class OutcomeStatus(StrEnum):
    """Per-video outcome reported by a recovery run."""

    RECOVERED = "recovered"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RecoveryPolicy:
    """Attempt cap and cooldown applied by the safety gate."""

    max_attempts: int = 3
    min_retry_interval: timedelta = timedelta(hours=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> RecoveryPolicy:
        return cls(
            max_attempts=settings.max_recovery_attempts,
            min_retry_interval=timedelta(minutes=settings.min_retry_interval_minutes),
        )

    def next_attempt(self, attempts: int, force: bool = False) -> int:
        """Attempt count to record after ``attempts`` prior attempts.

        Held at the cap unless forced, and never lower than ``attempts`` (a
        forced run may already have pushed the stored count past the cap).
        """
        if force:
            return attempts + 1
        return max(attempts, min(attempts + 1, self.max_attempts))


@dataclass(frozen=True)
class PipelineState:
    """What the processing pipeline has produced for a video so far."""

    status: VideoStatus
    has_transcript: bool
    chunk_count: int = 0
    embedding_count: int = 0

    @property
    def has_chunks(self) -> bool:
        return self.chunk_count > 0

    @property
    def has_embeddings(self) -> bool:
        return self.embedding_count > 0


@dataclass(frozen=True)
class GateDecision:
    verdict: GateVerdict
    reason: str = ""
    retry_in_minutes: int | None = None


@dataclass
class RecoveryOptions:
    """Caller-supplied options. ``force`` is only honoured for admin callers."""

    force: bool = False
    dry_run: bool = False
    video_ids: list[str] | None = None


@dataclass
class RecoveryResult:
    video_id: str
    status: OutcomeStatus
    reason: str
    action: RecoveryAction | None = None
    attempt: int | None = None


@dataclass
class RecoveryReport:
    """Aggregate outcome of one recovery run."""

    options: RecoveryOptions
    results: list[RecoveryResult] = field(default_factory=list)
    execution_time_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def recovered(self) -> int:
        return self._count(OutcomeStatus.RECOVERED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)
