"""Pydantic data models for ClipCheck."""

from clipcheck.models.job import JobRecord, JobStatus, can_transition, is_terminal
from clipcheck.models.result import (
    AnalysisOutcome,
    AnalysisResult,
    CaptureResult,
    CompletedView,
    DetectionResult,
    FailedView,
    InProgressView,
    JobHandle,
    JobListing,
    JobSummary,
    ResultLookup,
    SimulationResult,
    StageResult,
    TranscodeResult,
    TranscriptionResult,
)
from clipcheck.models.transcript import (
    DetectionSummary,
    ScoredSegment,
    SegmentFailure,
    SegmentScore,
    Speaker,
    Transcript,
    TranscriptMetadata,
    TranscriptSegment,
    WordTimestamp,
)

__all__ = [
    "JobRecord",
    "JobStatus",
    "can_transition",
    "is_terminal",
    "StageResult",
    "CaptureResult",
    "TranscodeResult",
    "TranscriptionResult",
    "DetectionResult",
    "SimulationResult",
    "AnalysisResult",
    "AnalysisOutcome",
    "JobHandle",
    "InProgressView",
    "FailedView",
    "CompletedView",
    "ResultLookup",
    "JobSummary",
    "JobListing",
    "Transcript",
    "TranscriptSegment",
    "TranscriptMetadata",
    "Speaker",
    "WordTimestamp",
    "SegmentScore",
    "SegmentFailure",
    "ScoredSegment",
    "DetectionSummary",
]
