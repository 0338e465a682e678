"""Fakes and builders shared by the ClipCheck tests."""

from pathlib import Path
from typing import Any, List, Optional

from clipcheck.config import Settings
from clipcheck.models.result import (
    CaptureResult,
    DetectionResult,
    TranscodeResult,
    TranscriptionResult,
)
from clipcheck.models.transcript import Transcript, TranscriptSegment
from clipcheck.services.detection import SegmentDetector
from clipcheck.services.orchestrator import AnalysisOrchestrator
from clipcheck.services.simulation import SimulationService


def make_settings(root: Path, **overrides: Any) -> Settings:
    """Settings rooted in a temporary directory, ignoring any .env file."""
    values: dict[str, Any] = {
        "screenshot_dir": str(root / "screenshots"),
        "audio_dir": str(root / "audio"),
        "simulation_audio_dir": str(root / "data" / "audio"),
        "db_path": str(root / "data" / "analysis.db"),
        "log_dir": "",
        "simulation_delay_seconds": 0.0,
        "detection_delay_seconds": 0.0,
        "elevenlabs_api_key": "",
        "gptzero_api_key": "",
        "supabase_url": "",
        "supabase_key": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_transcript(texts: List[str]) -> Transcript:
    """Transcript with one second per segment."""
    return Transcript(
        text=" ".join(texts),
        segments=[
            TranscriptSegment(start=float(i), end=float(i + 1), text=text)
            for i, text in enumerate(texts)
        ],
    )


# ==================== Fake Stage Adapters ====================


class FakeCapture:
    def __init__(self, calls: List[str], result: Optional[CaptureResult] = None) -> None:
        self.calls = calls
        self.result = result or CaptureResult(success=True, path="screenshots/job_screenshot.png")

    async def capture(self, source_reference: str, job_id: str) -> CaptureResult:
        self.calls.append("capture")
        return self.result

    async def close(self) -> None:
        pass


class FakeMedia:
    def __init__(self, calls: List[str], result: Optional[TranscodeResult] = None) -> None:
        self.calls = calls
        self.result = result or TranscodeResult(
            success=True,
            path="audio/wav/job_audio.wav",
            source_path="audio/job_source.webm",
            source_info={"codec": "opus"},
            output_info={"codec": "pcm_s16le", "sample_rate": 16000, "channels": 1},
        )
        self.cleaned: List[str] = []
        self.cleanup_error: Optional[Exception] = None

    async def transcode(self, source: str, job_id: str) -> TranscodeResult:
        self.calls.append("transcode")
        return self.result

    def raw_audio_files(self, job_id: str) -> List[Path]:
        return [Path(f"audio/{job_id}_source.webm")]

    async def cleanup_temp_files(self, paths: Any) -> None:
        self.calls.append("cleanup")
        if self.cleanup_error is not None:
            raise self.cleanup_error
        self.cleaned.extend(str(p) for p in paths)


class FakeTranscription:
    def __init__(self, calls: List[str], result: Optional[TranscriptionResult] = None) -> None:
        self.calls = calls
        self.result = result or TranscriptionResult(
            success=True,
            transcript=make_transcript(["First sentence.", "Second sentence.", "Third one."]),
        )

    async def transcribe(self, audio_path: str, job_id: str) -> TranscriptionResult:
        self.calls.append("transcribe")
        return self.result

    async def validate_api_key(self) -> dict:
        return {"valid": True}


class FakeDetector:
    """Gives every text the same score; texts listed in ``failing`` fail."""

    def __init__(
        self,
        calls: List[str],
        probability: float = 0.5,
        failing: Optional[set] = None,
    ) -> None:
        self.calls = calls
        self.probability = probability
        self.failing = failing or set()
        self.texts: List[str] = []

    async def detect(self, text: str) -> DetectionResult:
        self.calls.append("detect")
        self.texts.append(text)
        if text in self.failing:
            return DetectionResult(success=False, error="rate limited")
        return DetectionResult(
            success=True, probability=self.probability, prediction="human", confidence=0.9
        )

    async def validate_api_key(self) -> dict:
        return {"valid": True}


def build_orchestrator(
    store: Any,
    root: Path,
    simulate: bool = False,
    calls: Optional[List[str]] = None,
    **overrides: Any,
) -> AnalysisOrchestrator:
    """Orchestrator wired to fakes; pass capture/media/... to override one."""
    calls = calls if calls is not None else []
    detector = overrides.pop("detector", FakeDetector(calls))
    return AnalysisOrchestrator(
        store=store,
        capture=overrides.pop("capture", FakeCapture(calls)),
        media=overrides.pop("media", FakeMedia(calls)),
        transcription=overrides.pop("transcription", FakeTranscription(calls)),
        detector=SegmentDetector(detector, delay_seconds=0.0),
        simulation=SimulationService(
            screenshot_dir=str(root / "screenshots"),
            audio_dir=str(root / "data" / "audio"),
            delay_seconds=0.0,
        ),
        simulate=simulate,
    )
