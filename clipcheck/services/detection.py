"""AI-authorship detection with GPTZero and per-segment fan-out."""

import asyncio
import logging
from typing import Any, List, Protocol

import httpx
from pydantic import ValidationError

from clipcheck.config import Settings
from clipcheck.models.result import DetectionResult
from clipcheck.models.transcript import (
    DetectionSummary,
    ScoredSegment,
    SegmentFailure,
    SegmentScore,
    Transcript,
)
from clipcheck.utils.errors import DetectionError, GPTZeroAPIError, MalformedTranscriptError

logger = logging.getLogger(__name__)

EMPTY_PREDICTION = "empty"


def parse_document(document: dict[str, Any]) -> DetectionResult:
    """
    Normalize one GPTZero document verdict.

    Accepts both the flat ``ai_probability``/``prediction``/``confidence``
    fields and the ``class_probabilities``/``predicted_class`` layout.
    """
    probability = document.get("ai_probability")
    if probability is None:
        probability = (document.get("class_probabilities") or {}).get("ai")
    if probability is None:
        probability = document.get("completely_generated_prob", 0.0)

    confidence = document.get("confidence", 0.0)
    if not isinstance(confidence, (int, float)):
        confidence = document.get("confidence_score", 0.0)

    return DetectionResult(
        success=True,
        probability=float(probability or 0.0),
        prediction=str(document.get("prediction") or document.get("predicted_class") or "unknown"),
        confidence=float(confidence or 0.0),
        metadata=document.get("metadata") or {},
    )


class DetectionService:
    """Service for scoring text with the GPTZero REST API."""

    def __init__(
        self,
        gptzero_api_key: str,
        base_url: str = "https://api.gptzero.me",
        predict_path: str = "/v2/predict/text",
        timeout: float = 60.0,
    ) -> None:
        """
        Initialize the DetectionService.

        Args:
            gptzero_api_key: API key for GPTZero
            base_url: GPTZero API base URL
            predict_path: Path of the prediction endpoint
            timeout: Seconds allowed per request
        """
        self.api_key = gptzero_api_key
        self.base_url = base_url.rstrip("/")
        self.predict_path = predict_path
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _predict(self, text: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(
                    self.predict_path,
                    json={"document": text},
                    headers=self._headers(),
                )
        except httpx.TimeoutException:
            raise DetectionError(f"GPTZero request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            raise DetectionError(f"HTTP error during AI detection: {e}")

        if response.status_code != 200:
            raise GPTZeroAPIError(response.status_code, response.text)

        return response.json()

    async def detect(self, text: str) -> DetectionResult:
        """
        Score a piece of text.

        Args:
            text: Text to analyze

        Returns:
            DetectionResult with probability/prediction/confidence, or the error
        """
        logger.info(f"Starting AI detection for text: {text[:100]}...")

        try:
            body = await self._predict(text)
            documents = body.get("documents") if isinstance(body, dict) else None
            if not documents:
                raise DetectionError("Invalid GPTZero response format")
            result = parse_document(documents[0])

        except GPTZeroAPIError as e:
            logger.error(f"Error in GPTZero AI detection: {e}")
            return DetectionResult(success=False, error=str(e), details={"status": e.status_code})
        except Exception as e:
            logger.error(f"Error in GPTZero AI detection: {e}")
            return DetectionResult(success=False, error=str(e))

        logger.info("AI detection completed successfully")
        return result

    async def validate_api_key(self) -> dict[str, Any]:
        """Check the API key by scoring a short sentence."""
        result = await self.detect("This is a test sentence.")
        if result.success:
            logger.info("GPTZero API key validated successfully")
            return {"valid": True}

        logger.error(f"GPTZero API key validation failed: {result.error}")
        return {"valid": False, "error": result.error}


class TextDetector(Protocol):
    async def detect(self, text: str) -> DetectionResult: ...

    async def validate_api_key(self) -> dict[str, Any]: ...


class SegmentDetector:
    """Runs detection over transcript segments one at a time."""

    def __init__(self, detector: TextDetector, delay_seconds: float = 0.1) -> None:
        """
        Args:
            detector: Adapter called once per non-empty segment
            delay_seconds: Pause between segments to stay under rate limits
        """
        self.detector = detector
        self.delay_seconds = delay_seconds

    async def validate_api_key(self) -> dict[str, Any]:
        return await self.detector.validate_api_key()

    @staticmethod
    def _coerce(transcript: Any) -> Transcript:
        if isinstance(transcript, Transcript):
            return transcript
        if not isinstance(transcript, dict) or not isinstance(transcript.get("segments"), list):
            raise MalformedTranscriptError("Invalid transcription format")
        try:
            return Transcript.model_validate(transcript)
        except ValidationError as e:
            raise MalformedTranscriptError(f"Invalid transcription format: {e}")

    async def _score(self, segment_text: str) -> SegmentScore | SegmentFailure:
        text = segment_text.strip()
        if not text:
            return SegmentScore(ai_probability=0.0, prediction=EMPTY_PREDICTION, confidence=0.0)

        result = await self.detector.detect(text)
        if not result.success:
            return SegmentFailure(error=result.error or "detection failed", details=result.details)

        return SegmentScore(
            ai_probability=result.probability,
            prediction=result.prediction,
            confidence=result.confidence,
            metadata=result.metadata,
        )

    async def process(self, transcript: Any) -> DetectionSummary:
        """
        Score every segment of a transcript.

        Empty segments get a zero "empty" score without a detector call. A
        failed segment carries an error marker and is left out of the overall
        probability, which is the mean over segments that were actually scored.

        Args:
            transcript: Transcript model or its dict form

        Returns:
            DetectionSummary with annotated segments and the aggregate

        Raises:
            MalformedTranscriptError: If there is no segment sequence to score
        """
        segments = self._coerce(transcript).segments
        total = len(segments)
        logger.info("Processing transcription segments for AI detection")

        results: List[ScoredSegment] = []
        for index, segment in enumerate(segments):
            logger.info(f"Processing segment {index + 1}/{total}")

            try:
                verdict = await self._score(segment.text)
            except Exception as e:
                logger.error(f"Error processing segment {index + 1}: {e}")
                verdict = SegmentFailure(error=str(e))

            results.append(ScoredSegment(**segment.model_dump(), ai_detection=verdict))

            if index < total - 1 and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

        scored = [r.ai_detection.ai_probability for r in results if not r.failed and not r.empty]
        overall = sum(scored) / len(scored) if scored else 0.0

        logger.info(f"AI detection completed for {len(results)}/{total} segments")
        return DetectionSummary(
            segments=results,
            overall_ai_probability=overall,
            processed_segments=len(results),
            total_segments=total,
            scored_segments=len(scored),
        )


def create_detection_service(settings: Settings) -> DetectionService:
    """
    Create a DetectionService instance using application settings.

    Args:
        settings: Application settings

    Returns:
        Configured DetectionService instance
    """
    return DetectionService(
        gptzero_api_key=settings.gptzero_api_key,
        base_url=settings.gptzero_base_url,
        predict_path=settings.gptzero_predict_path,
        timeout=settings.detection_timeout_seconds,
    )
