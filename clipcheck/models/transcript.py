"""Transcript and detection payload models."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TranscriptSegment(BaseModel):
    """A time-bounded span of transcript text."""

    start: float = 0.0
    end: float = 0.0
    text: str = ""
    speaker: str = "unknown"
    confidence: float = 0.0


class Speaker(BaseModel):
    """A diarized speaker."""

    id: str = "unknown"
    name: str = ""
    segments: list[Any] = Field(default_factory=list)


class WordTimestamp(BaseModel):
    """Timing of a single transcribed word."""

    word: str = ""
    start: float = 0.0
    end: float = 0.0
    confidence: float = 0.0
    speaker: str = "unknown"


class TranscriptMetadata(BaseModel):
    language: str = "en"
    duration: float = 0.0
    confidence: float = 0.0


class Transcript(BaseModel):
    """Normalized transcription output."""

    text: str = ""
    segments: list[TranscriptSegment] = Field(default_factory=list)
    speakers: list[Speaker] = Field(default_factory=list)
    word_timestamps: list[WordTimestamp] = Field(default_factory=list)
    metadata: TranscriptMetadata = Field(default_factory=TranscriptMetadata)


class SegmentScore(BaseModel):
    """Authenticity verdict for one segment."""

    model_config = {"extra": "forbid"}

    ai_probability: float = 0.0
    prediction: str = "unknown"
    confidence: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)


class SegmentFailure(BaseModel):
    """Marker attached to a segment whose detection call failed."""

    error: str
    details: Optional[Any] = None


class ScoredSegment(TranscriptSegment):
    """Transcript segment annotated with its detection outcome."""

    ai_detection: SegmentScore | SegmentFailure

    @property
    def failed(self) -> bool:
        return isinstance(self.ai_detection, SegmentFailure)

    @property
    def empty(self) -> bool:
        return not self.failed and self.ai_detection.prediction == "empty"


class DetectionSummary(BaseModel):
    """Aggregate authenticity result for a transcript."""

    segments: list[ScoredSegment] = Field(default_factory=list)
    overall_ai_probability: float = 0.0
    processed_segments: int = 0
    total_segments: int = 0
    scored_segments: int = 0
