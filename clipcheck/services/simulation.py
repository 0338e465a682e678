"""Simulated pipeline used when the SaaS credentials are not configured."""

import asyncio
import logging
from pathlib import Path

from clipcheck.config import Settings
from clipcheck.models.result import SimulationResult
from clipcheck.models.transcript import (
    DetectionSummary,
    ScoredSegment,
    SegmentScore,
    Speaker,
    Transcript,
    TranscriptMetadata,
    TranscriptSegment,
    WordTimestamp,
)

logger = logging.getLogger(__name__)

# 1x1 RGB PNG
PLACEHOLDER_PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010802000000907753de"
    "0000000c4944415408990101000000ffff00000002000100e221bc330000000049454e44ae426082"
)

# RIFF/WAVE header, PCM 16-bit mono 44.1 kHz, no samples
PLACEHOLDER_WAV = bytes.fromhex(
    "524946462400000057415645666d7420100000000100010044ac0000885801000200100064617461"
    "00000000"
)

FIXTURE_SEGMENTS = [
    # (start, end, text, speaker, confidence, ai_probability, detection confidence)
    (0.0, 3.5, "This is a demo transcription", "speaker_1", 0.95, 0.15, 0.87),
    (3.5, 7.2, "of a YouTube video.", "speaker_1", 0.92, 0.12, 0.89),
    (
        7.2,
        12.8,
        "It shows how the system processes audio and generates text with timestamps.",
        "speaker_2",
        0.88,
        0.08,
        0.91,
    ),
]


def _word_timings(segment: TranscriptSegment) -> list[WordTimestamp]:
    """Spread a segment's words evenly over its time range."""
    words = segment.text.split()
    step = (segment.end - segment.start) / len(words)
    return [
        WordTimestamp(
            word=word,
            start=round(segment.start + i * step, 3),
            end=segment.end if i == len(words) - 1 else round(segment.start + (i + 1) * step, 3),
            confidence=segment.confidence,
            speaker=segment.speaker,
        )
        for i, word in enumerate(words)
    ]


def build_fixture_transcript() -> Transcript:
    segments = [
        TranscriptSegment(start=start, end=end, text=text, speaker=speaker, confidence=conf)
        for start, end, text, speaker, conf, _, _ in FIXTURE_SEGMENTS
    ]
    words = [word for segment in segments for word in _word_timings(segment)]

    return Transcript(
        text=" ".join(segment.text for segment in segments),
        segments=segments,
        speakers=[
            Speaker(id="speaker_1", name="Speaker 1"),
            Speaker(id="speaker_2", name="Speaker 2"),
        ],
        word_timestamps=words,
        metadata=TranscriptMetadata(language="en", duration=segments[-1].end, confidence=0.92),
    )


def build_fixture_detection(transcript: Transcript) -> DetectionSummary:
    scored = [
        ScoredSegment(
            **segment.model_dump(),
            ai_detection=SegmentScore(ai_probability=ai_prob, prediction="human", confidence=det_conf),
        )
        for segment, (_, _, _, _, _, ai_prob, det_conf) in zip(transcript.segments, FIXTURE_SEGMENTS)
    ]
    probabilities = [s.ai_detection.ai_probability for s in scored]

    return DetectionSummary(
        segments=scored,
        overall_ai_probability=sum(probabilities) / len(probabilities),
        processed_segments=len(scored),
        total_segments=len(scored),
        scored_segments=len(scored),
    )


class SimulationService:
    """Produces a structurally valid result without any external service."""

    def __init__(self, screenshot_dir: str, audio_dir: str, delay_seconds: float = 2.0) -> None:
        self.screenshot_dir = Path(screenshot_dir)
        self.audio_dir = Path(audio_dir)
        self.delay_seconds = delay_seconds

    def _write_placeholders(self, job_id: str) -> tuple[str, str]:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        self.audio_dir.mkdir(parents=True, exist_ok=True)

        snapshot_path = self.screenshot_dir / f"demo_{job_id}.png"
        audio_path = self.audio_dir / f"demo_{job_id}.wav"
        snapshot_path.write_bytes(PLACEHOLDER_PNG)
        audio_path.write_bytes(PLACEHOLDER_WAV)
        return str(snapshot_path), str(audio_path)

    async def simulate(self, source_reference: str, job_id: str) -> SimulationResult:
        """
        Run the simulated pipeline for a job.

        Args:
            source_reference: Reference being analyzed (only logged)
            job_id: Job the placeholder artifacts belong to

        Returns:
            SimulationResult with placeholder artifacts, transcript and detection
        """
        logger.info(f"Starting simulated analysis for: {source_reference}")

        try:
            await asyncio.sleep(self.delay_seconds)
            snapshot_path, audio_path = await asyncio.to_thread(self._write_placeholders, job_id)
            transcript = build_fixture_transcript()
            detection = build_fixture_detection(transcript)
        except Exception as e:
            logger.error(f"Error in simulated analysis: {e}")
            return SimulationResult(success=False, error=str(e))

        logger.info("Simulated analysis completed successfully")
        return SimulationResult(
            success=True,
            snapshot_path=snapshot_path,
            audio_path=audio_path,
            transcript=transcript,
            detection=detection,
        )


def create_simulation_service(settings: Settings) -> SimulationService:
    """
    Create a SimulationService instance using application settings.

    Args:
        settings: Application settings

    Returns:
        Configured SimulationService instance
    """
    return SimulationService(
        screenshot_dir=settings.screenshot_dir,
        audio_dir=settings.simulation_audio_dir,
        delay_seconds=settings.simulation_delay_seconds,
    )
