"""Job record Pydantic model and status ordering."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Lifecycle of an analysis job, in pipeline order."""

    PENDING = "pending"
    PROCESSING = "processing"
    CAPTURE_DONE = "capture_done"
    TRANSCODE_DONE = "transcode_done"
    TRANSCRIBE_DONE = "transcribe_done"
    DETECT_DONE = "detect_done"
    COMPLETED = "completed"
    FAILED = "failed"


STATUS_ORDER: list[JobStatus] = [
    JobStatus.PENDING,
    JobStatus.PROCESSING,
    JobStatus.CAPTURE_DONE,
    JobStatus.TRANSCODE_DONE,
    JobStatus.TRANSCRIBE_DONE,
    JobStatus.DETECT_DONE,
    JobStatus.COMPLETED,
]

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def is_terminal(status: str) -> bool:
    """Check whether a status admits no further transitions."""
    return JobStatus(status) in TERMINAL_STATUSES


def can_transition(current: str, requested: str) -> bool:
    """
    Check whether a status write is a legal forward move.

    ``failed`` is reachable from every non-terminal status; every other move
    must go strictly forward along STATUS_ORDER. Skipping intermediate
    markers (e.g. processing -> completed in simulation) is allowed.
    """
    current_status = JobStatus(current)
    requested_status = JobStatus(requested)

    if current_status in TERMINAL_STATUSES:
        return False
    if requested_status == JobStatus.FAILED:
        return True
    return STATUS_ORDER.index(requested_status) > STATUS_ORDER.index(current_status)


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class JobRecord(BaseModel):
    """Persisted state of one analysis job."""

    id: str = Field(min_length=1)
    source_reference: str = Field(min_length=1)
    status: JobStatus = JobStatus.PENDING
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    snapshot_path: Optional[str] = None
    audio_path: Optional[str] = None
    transcription: Optional[str] = None  # JSON text
    ai_probabilities: Optional[str] = None  # JSON text
    error_message: Optional[str] = None
    processing_time_ms: Optional[int] = None

    model_config = {"use_enum_values": True}
