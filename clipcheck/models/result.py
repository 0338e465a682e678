"""Stage adapter results, orchestrator outcomes and client-facing views."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from clipcheck.models.transcript import DetectionSummary, Transcript


# ==================== Stage Adapter Results ====================


class StageResult(BaseModel):
    """Uniform adapter outcome: success with a payload, or an error message."""

    success: bool
    error: Optional[str] = None


class CaptureResult(StageResult):
    path: Optional[str] = None


class TranscodeResult(StageResult):
    path: Optional[str] = None
    source_path: Optional[str] = None
    source_info: dict[str, Any] = Field(default_factory=dict)
    output_info: dict[str, Any] = Field(default_factory=dict)


class TranscriptionResult(StageResult):
    transcript: Optional[Transcript] = None


class DetectionResult(StageResult):
    probability: float = 0.0
    prediction: str = "unknown"
    confidence: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
    details: Optional[Any] = None


class SimulationResult(StageResult):
    snapshot_path: Optional[str] = None
    audio_path: Optional[str] = None
    transcript: Optional[Transcript] = None
    detection: Optional[DetectionSummary] = None


# ==================== Orchestrator Outcomes ====================


class AnalysisResult(BaseModel):
    """Full result of a completed analysis."""

    id: str
    source_reference: str
    status: Literal["completed"] = "completed"
    snapshot_path: Optional[str] = None
    audio_path: Optional[str] = None
    transcription: Transcript
    ai_probabilities: DetectionSummary
    processing_time_ms: int
    created_at: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class AnalysisOutcome(BaseModel):
    """What `run`/`execute` report back to the caller."""

    success: bool
    job_id: Optional[str] = None
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    processing_time_ms: Optional[int] = None
    internal_error: bool = False


class JobHandle(BaseModel):
    """A job whose record has been created and moved to processing."""

    job_id: str
    source_reference: str
    started_at: float
    created_at: str = ""
    error: Optional[str] = None  # set when the record could not be written


# ==================== Result Projection Views ====================


ClientStatus = Literal["processing", "failed", "completed"]


class InProgressView(BaseModel):
    analysis_id: str
    status: Literal["processing"] = "processing"
    message: str = "Analysis is still in progress"
    created_at: str
    updated_at: str


class FailedView(BaseModel):
    analysis_id: str
    status: Literal["failed"] = "failed"
    error_message: Optional[str] = None
    processing_time_ms: Optional[int] = None
    created_at: str
    updated_at: str


class CompletedView(BaseModel):
    analysis_id: str
    status: Literal["completed"] = "completed"
    source_reference: str
    snapshot_path: Optional[str] = None
    audio_path: Optional[str] = None
    transcription: Optional[dict[str, Any]] = None
    ai_probabilities: Optional[dict[str, Any]] = None
    processing_time_ms: Optional[int] = None
    created_at: str
    updated_at: str


ResultView = InProgressView | FailedView | CompletedView


class ResultLookup(BaseModel):
    """Outcome of a read: found, not found, or a storage error."""

    state: Literal["found", "not_found", "error"]
    view: Optional[ResultView] = None
    error: Optional[str] = None


class JobSummary(BaseModel):
    """Lightweight listing entry, no payloads."""

    id: str
    source_reference: str
    status: ClientStatus
    created_at: str
    updated_at: str
    processing_time_ms: Optional[int] = None


class JobListing(BaseModel):
    success: bool
    analyses: list[JobSummary] = Field(default_factory=list)
    error: Optional[str] = None
