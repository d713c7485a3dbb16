"""Processing state machine: transitions, stage timeouts, and stuck detection.

The pipeline moves a video through::

    pending -> uploading -> transcribing -> processing -> embedding -> completed
                                                                  \\-> failed

Each in-flight stage has a timeout; a video whose ``updated_at`` is older than
its stage timeout is considered stuck and becomes a recovery candidate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chronos.videos.models import Video, VideoStatus


@dataclass(frozen=True)
class StageMetadata:
    """Static description of a pipeline stage."""

    name: str
    description: str
    retryable: bool
    max_retries: int
    timeout_minutes: int


VALID_TRANSITIONS: dict[VideoStatus, tuple[VideoStatus, ...]] = {
    VideoStatus.PENDING: (VideoStatus.UPLOADING, VideoStatus.FAILED),
    VideoStatus.UPLOADING: (VideoStatus.TRANSCRIBING, VideoStatus.FAILED),
    VideoStatus.TRANSCRIBING: (VideoStatus.PROCESSING, VideoStatus.FAILED),
    VideoStatus.PROCESSING: (VideoStatus.EMBEDDING, VideoStatus.FAILED),
    VideoStatus.EMBEDDING: (VideoStatus.COMPLETED, VideoStatus.FAILED),
    VideoStatus.COMPLETED: (),
    VideoStatus.FAILED: (VideoStatus.PENDING,),
}

STAGE_METADATA: dict[VideoStatus, StageMetadata] = {
    VideoStatus.PENDING: StageMetadata("Pending", "Video is queued for processing", False, 0, 0),
    VideoStatus.UPLOADING: StageMetadata(
        "Uploading", "Video is being uploaded to storage", True, 3, 30
    ),
    VideoStatus.TRANSCRIBING: StageMetadata(
        "Transcribing", "Generating transcript", True, 3, 60
    ),
    VideoStatus.PROCESSING: StageMetadata(
        "Processing", "Chunking transcript into segments", True, 3, 15
    ),
    VideoStatus.EMBEDDING: StageMetadata(
        "Embedding", "Generating vector embeddings", True, 3, 30
    ),
    VideoStatus.COMPLETED: StageMetadata(
        "Completed", "Video processing completed successfully", False, 0, 0
    ),
    VideoStatus.FAILED: StageMetadata("Failed", "Processing failed with errors", True, 0, 0),
}

_PROGRESS: dict[VideoStatus, int] = {
    VideoStatus.PENDING: 0,
    VideoStatus.UPLOADING: 20,
    VideoStatus.TRANSCRIBING: 40,
    VideoStatus.PROCESSING: 60,
    VideoStatus.EMBEDDING: 80,
    VideoStatus.COMPLETED: 100,
    VideoStatus.FAILED: 0,
}

# Stages the finder watches: every state with a non-zero timeout
IN_FLIGHT_STATUSES: tuple[VideoStatus, ...] = tuple(
    status for status, meta in STAGE_METADATA.items() if meta.timeout_minutes > 0
)


def get_stage_metadata(status: VideoStatus) -> StageMetadata:
    return STAGE_METADATA[status]


def get_next_states(status: VideoStatus) -> tuple[VideoStatus, ...]:
    return VALID_TRANSITIONS[status]


def is_terminal_state(status: VideoStatus) -> bool:
    return not VALID_TRANSITIONS[status]


def calculate_progress(status: VideoStatus) -> int:
    """Return the pipeline progress percentage for a status."""
    return _PROGRESS[status]


def _last_touched(video: Video) -> datetime | None:
    return video.updated_at or video.created_at


def stuck_minutes(video: Video, now: datetime) -> int:
    """Whole minutes since the video was last updated (0 if unknown)."""
    touched = _last_touched(video)
    if touched is None:
        return 0
    return max(int((now - touched).total_seconds() // 60), 0)


def is_stuck(video: Video, now: datetime) -> bool:
    """True if the video sits in an in-flight stage past that stage's timeout.

    An in-flight video with no timestamps at all counts as stuck.
    """
    timeout = STAGE_METADATA[video.status].timeout_minutes
    if timeout <= 0:
        return False
    touched = _last_touched(video)
    if touched is None:
        return True
    elapsed_minutes = (now - touched).total_seconds() / 60
    return elapsed_minutes > timeout
