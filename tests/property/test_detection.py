"""Property-based tests for per-segment AI detection.

The overall probability is the mean over segments that were actually
scored. Empty segments are never sent to the detector and failed segments
carry an error marker instead of a score.
"""

import asyncio
from typing import Any, List
from unittest.mock import AsyncMock, patch

import pytest
from hypothesis import given, settings, strategies as st

from clipcheck.models.transcript import SegmentFailure, SegmentScore
from clipcheck.services.detection import (
    DetectionService,
    SegmentDetector,
    parse_document,
)
from clipcheck.utils.errors import GPTZeroAPIError, MalformedTranscriptError
from tests.fakes import FakeDetector, make_transcript


class ScriptedDetector:
    """Returns the probability embedded in each text, e.g. ``"p=0.25"``."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.fake = FakeDetector(self.calls, failing={"fail"})

    async def detect(self, text: str) -> Any:
        result = await self.fake.detect(text)
        if result.success:
            result.probability = float(text.split("=", 1)[1])
        return result


segment_kinds = st.one_of(
    st.floats(min_value=0.0, max_value=1.0).map(lambda p: ("scored", p)),
    st.just(("empty", None)),
    st.just(("failed", None)),
)


class TestSegmentAggregation:
    @given(kinds=st.lists(segment_kinds, max_size=12))
    @settings(max_examples=100)
    def test_overall_is_mean_of_scored_segments(self, kinds: List[tuple]) -> None:
        texts = []
        for kind, probability in kinds:
            if kind == "scored":
                texts.append(f"p={probability!r}")
            elif kind == "empty":
                texts.append("   ")
            else:
                texts.append("fail")

        detector = ScriptedDetector()
        summary = asyncio.run(
            SegmentDetector(detector, delay_seconds=0.0).process(make_transcript(texts))
        )

        scored = [p for kind, p in kinds if kind == "scored"]
        expected = sum(scored) / len(scored) if scored else 0.0

        assert summary.overall_ai_probability == pytest.approx(expected)
        assert 0.0 <= summary.overall_ai_probability <= 1.0
        assert summary.total_segments == len(kinds)
        assert summary.processed_segments == len(kinds)
        assert summary.scored_segments == len(scored)
        # Empty segments never reach the detector
        assert len(detector.calls) == sum(1 for kind, _ in kinds if kind != "empty")

    def test_mixed_transcript(self) -> None:
        texts = ["p=0.2", "p=0.4", "p=0.9", "   ", "fail"]
        detector = ScriptedDetector()

        summary = asyncio.run(
            SegmentDetector(detector, delay_seconds=0.0).process(make_transcript(texts))
        )

        assert summary.overall_ai_probability == pytest.approx(0.5)
        assert summary.scored_segments == 3

        empty = summary.segments[3]
        assert isinstance(empty.ai_detection, SegmentScore)
        assert empty.ai_detection.prediction == "empty"
        assert empty.ai_detection.ai_probability == 0.0
        assert empty.empty

        failed = summary.segments[4]
        assert isinstance(failed.ai_detection, SegmentFailure)
        assert failed.ai_detection.error == "rate limited"
        assert failed.failed

    def test_segments_keep_their_transcript_fields(self) -> None:
        transcript = make_transcript(["p=0.3", "p=0.6"])

        summary = asyncio.run(
            SegmentDetector(ScriptedDetector(), delay_seconds=0.0).process(transcript)
        )

        for original, scored in zip(transcript.segments, summary.segments):
            assert (scored.start, scored.end, scored.text) == (original.start, original.end, original.text)

    def test_detector_exception_marks_segment_failed(self) -> None:
        detector = AsyncMock()
        detector.detect.side_effect = RuntimeError("socket closed")

        summary = asyncio.run(
            SegmentDetector(detector, delay_seconds=0.0).process(make_transcript(["hello"]))
        )

        assert summary.segments[0].failed
        assert summary.segments[0].ai_detection.error == "socket closed"
        assert summary.overall_ai_probability == 0.0

    def test_accepts_transcript_dict(self) -> None:
        transcript = make_transcript(["p=0.7"]).model_dump()

        summary = asyncio.run(SegmentDetector(ScriptedDetector(), delay_seconds=0.0).process(transcript))

        assert summary.overall_ai_probability == pytest.approx(0.7)

    @pytest.mark.parametrize(
        "transcript",
        [{}, {"segments": None}, {"segments": "not a list"}, "text", None],
    )
    def test_malformed_transcript_raises(self, transcript: Any) -> None:
        detector = ScriptedDetector()

        with pytest.raises(MalformedTranscriptError):
            asyncio.run(SegmentDetector(detector, delay_seconds=0.0).process(transcript))
        assert detector.calls == []


class TestRateLimitDelay:
    @given(count=st.integers(min_value=0, max_value=6))
    @settings(max_examples=20)
    def test_pause_between_segments_only(self, count: int) -> None:
        texts = [f"p=0.{i}" for i in range(count)]

        with patch("clipcheck.services.detection.asyncio.sleep", new=AsyncMock()) as sleep:
            asyncio.run(
                SegmentDetector(ScriptedDetector(), delay_seconds=0.1).process(make_transcript(texts))
            )

        assert sleep.await_count == max(0, count - 1)

    def test_no_pause_when_delay_disabled(self) -> None:
        with patch("clipcheck.services.detection.asyncio.sleep", new=AsyncMock()) as sleep:
            asyncio.run(
                SegmentDetector(ScriptedDetector(), delay_seconds=0.0).process(
                    make_transcript(["p=0.1", "p=0.2"])
                )
            )

        sleep.assert_not_awaited()


class TestParseDocument:
    def test_flat_fields(self) -> None:
        result = parse_document({"ai_probability": 0.8, "prediction": "ai", "confidence": 0.6})

        assert result.success
        assert result.probability == 0.8
        assert result.prediction == "ai"
        assert result.confidence == 0.6

    def test_class_probabilities_layout(self) -> None:
        result = parse_document(
            {
                "class_probabilities": {"ai": 0.3, "human": 0.7},
                "predicted_class": "human",
                "confidence_score": 0.95,
                "confidence": "high",
            }
        )

        assert result.probability == 0.3
        assert result.prediction == "human"
        assert result.confidence == 0.95

    def test_missing_fields_default(self) -> None:
        result = parse_document({})

        assert result.probability == 0.0
        assert result.prediction == "unknown"
        assert result.metadata == {}


class TestDetectionService:
    @pytest.mark.asyncio
    async def test_detect_parses_first_document(self) -> None:
        service = DetectionService(gptzero_api_key="key")
        body = {"documents": [{"ai_probability": 0.42, "prediction": "mixed", "confidence": 0.5}]}

        with patch.object(service, "_predict", new=AsyncMock(return_value=body)) as predict:
            result = await service.detect("Some text")

        predict.assert_awaited_once_with("Some text")
        assert result.success
        assert result.probability == 0.42

    @pytest.mark.asyncio
    async def test_api_error_carries_status(self) -> None:
        service = DetectionService(gptzero_api_key="key")
        error = GPTZeroAPIError(429, "Too Many Requests")

        with patch.object(service, "_predict", new=AsyncMock(side_effect=error)):
            result = await service.detect("Some text")

        assert not result.success
        assert result.details == {"status": 429}
        assert "429" in result.error

    @pytest.mark.asyncio
    async def test_response_without_documents_fails(self) -> None:
        service = DetectionService(gptzero_api_key="key")

        with patch.object(service, "_predict", new=AsyncMock(return_value={"documents": []})):
            result = await service.detect("Some text")

        assert not result.success
        assert result.error == "Invalid GPTZero response format"

    @pytest.mark.asyncio
    async def test_validate_api_key(self) -> None:
        service = DetectionService(gptzero_api_key="bad")

        with patch.object(service, "_predict", new=AsyncMock(side_effect=GPTZeroAPIError(401, "Unauthorized"))):
            status = await service.validate_api_key()

        assert status["valid"] is False
        assert "401" in status["error"]
