"""Transcription service using ElevenLabs Scribe speech-to-text."""

import asyncio
import logging
import math
from pathlib import Path
from typing import Any, List, Optional

from clipcheck.config import Settings
from clipcheck.models.result import TranscriptionResult
from clipcheck.models.transcript import (
    Speaker,
    Transcript,
    TranscriptMetadata,
    TranscriptSegment,
    WordTimestamp,
)
from clipcheck.utils.errors import ElevenLabsAPIError, TranscriptionError

logger = logging.getLogger(__name__)

SENTENCE_ENDINGS = (".", "?", "!")


def _number(value: Any, default: float = 0.0) -> float:
    """Coerce an optional numeric field, falling back to a default."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _normalize_words(raw_words: Any) -> List[WordTimestamp]:
    if not isinstance(raw_words, list):
        return []

    words: List[WordTimestamp] = []
    for item in raw_words:
        if not isinstance(item, dict):
            continue
        # Scribe interleaves "spacing" and "audio_event" tokens with words
        if item.get("type") not in (None, "word"):
            continue

        token = str(item.get("word") or item.get("text") or "").strip()
        if not token:
            continue

        if item.get("confidence") is not None:
            confidence = _number(item.get("confidence"))
        elif item.get("logprob") is not None:
            confidence = math.exp(_number(item.get("logprob")))
        else:
            confidence = 0.0

        words.append(
            WordTimestamp(
                word=token,
                start=_number(item.get("start")),
                end=_number(item.get("end")),
                confidence=confidence,
                speaker=str(item.get("speaker") or item.get("speaker_id") or "unknown"),
            )
        )
    return words


def _segments_from_words(words: List[WordTimestamp]) -> List[TranscriptSegment]:
    """Group words into sentence segments, breaking on punctuation or speaker change."""
    segments: List[TranscriptSegment] = []
    current: List[WordTimestamp] = []

    def flush() -> None:
        if not current:
            return
        segments.append(
            TranscriptSegment(
                start=current[0].start,
                end=current[-1].end,
                text=" ".join(w.word for w in current),
                speaker=current[0].speaker,
                confidence=sum(w.confidence for w in current) / len(current),
            )
        )
        current.clear()

    for word in words:
        if current and word.speaker != current[-1].speaker:
            flush()
        current.append(word)
        if word.word.endswith(SENTENCE_ENDINGS):
            flush()
    flush()

    return segments


def normalize_transcript(raw: dict[str, Any]) -> Transcript:
    """
    Map a speech-to-text response onto the fixed transcript shape.

    Every field is optional in the input. Missing values are defaulted rather
    than propagated: segments are taken from the response when present,
    otherwise built from word timings, otherwise a single segment spans the
    whole text.

    Args:
        raw: Response body as a dict

    Returns:
        Normalized Transcript
    """
    text = str(raw.get("text") or "")
    words = _normalize_words(raw.get("words"))

    duration = raw.get("duration")
    if duration is None and words:
        duration = words[-1].end
    confidence = raw.get("confidence")
    if confidence is None:
        confidence = raw.get("language_probability")

    metadata = TranscriptMetadata(
        language=str(raw.get("language") or raw.get("language_code") or "en"),
        duration=_number(duration),
        confidence=_number(confidence),
    )

    raw_segments = raw.get("segments")
    if isinstance(raw_segments, list) and raw_segments:
        segments = [
            TranscriptSegment(
                start=_number(s.get("start")),
                end=_number(s.get("end")),
                text=str(s.get("text") or ""),
                speaker=str(s.get("speaker") or s.get("speaker_id") or "unknown"),
                confidence=_number(s.get("confidence")),
            )
            for s in raw_segments
            if isinstance(s, dict)
        ]
    elif words:
        segments = _segments_from_words(words)
    elif text:
        segments = [
            TranscriptSegment(
                start=0.0,
                end=metadata.duration,
                text=text,
                speaker="unknown",
                confidence=metadata.confidence,
            )
        ]
    else:
        segments = []

    raw_speakers = raw.get("speakers")
    if isinstance(raw_speakers, list) and raw_speakers:
        speakers = [
            Speaker(
                id=str(s.get("id") or "unknown"),
                name=str(s.get("name") or f"Speaker {s.get('id')}"),
                segments=s.get("segments") or [],
            )
            for s in raw_speakers
            if isinstance(s, dict)
        ]
    else:
        speaker_ids: List[str] = []
        for word in words:
            if word.speaker != "unknown" and word.speaker not in speaker_ids:
                speaker_ids.append(word.speaker)
        speakers = [
            Speaker(id=speaker_id, name=f"Speaker {index}")
            for index, speaker_id in enumerate(speaker_ids, start=1)
        ]

    return Transcript(
        text=text,
        segments=segments,
        speakers=speakers,
        word_timestamps=words,
        metadata=metadata,
    )


class TranscriptionService:
    """Service for transcribing WAV audio with ElevenLabs."""

    def __init__(
        self,
        elevenlabs_api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        model_id: str = "scribe_v1",
        timeout: float = 300.0,
    ) -> None:
        """
        Initialize the TranscriptionService.

        Args:
            elevenlabs_api_key: API key for ElevenLabs service
            base_url: ElevenLabs API base URL
            model_id: Speech-to-text model ID (default: scribe_v1)
            timeout: Seconds allowed per request
        """
        self.api_key = elevenlabs_api_key
        self.base_url = base_url
        self.model_id = model_id
        self.timeout = timeout
        self._client: Optional[Any] = None

    async def _get_client(self) -> Any:
        """Get or create the ElevenLabs async client."""
        if self._client is None:
            from elevenlabs import AsyncElevenLabs

            self._client = AsyncElevenLabs(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def _request(self, audio_path: Path) -> dict[str, Any]:
        client = await self._get_client()
        audio = await asyncio.to_thread(audio_path.read_bytes)

        try:
            response = await client.speech_to_text.convert(
                file=(audio_path.name, audio, "audio/wav"),
                model_id=self.model_id,
                diarize=True,
                timestamps_granularity="word",
            )
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if status_code is not None:
                raise ElevenLabsAPIError(status_code, str(getattr(e, "body", e)))
            raise TranscriptionError(f"Transcription request failed: {e}")

        if hasattr(response, "model_dump"):
            return response.model_dump()
        return dict(response)

    async def transcribe(self, audio_path: str, job_id: str) -> TranscriptionResult:
        """
        Transcribe a WAV file.

        Args:
            audio_path: Path of the WAV to transcribe
            job_id: Job the audio belongs to

        Returns:
            TranscriptionResult with the normalized transcript, or the error message
        """
        path = Path(audio_path)
        logger.info(f"Starting transcription for: {path}")

        try:
            if not path.exists():
                raise TranscriptionError(f"Audio file not found: {path}")

            raw = await self._request(path)
            if not raw.get("text"):
                raise TranscriptionError("Invalid transcription response")

            transcript = normalize_transcript(raw)

        except Exception as e:
            logger.error(f"Transcription failed for job {job_id}: {e}")
            return TranscriptionResult(success=False, error=str(e))

        logger.info(
            f"Transcription completed for job {job_id}: "
            f"{len(transcript.segments)} segments, {len(transcript.word_timestamps)} words"
        )
        return TranscriptionResult(success=True, transcript=transcript)

    async def validate_api_key(self) -> dict[str, Any]:
        """Check the API key against the account endpoint."""
        try:
            client = await self._get_client()
            await client.user.get()
        except Exception as e:
            logger.error(f"ElevenLabs API key validation failed: {e}")
            return {"valid": False, "error": str(e)}

        logger.info("ElevenLabs API key validated successfully")
        return {"valid": True}


def create_transcription_service(settings: Settings) -> TranscriptionService:
    """
    Create a TranscriptionService instance using application settings.

    Args:
        settings: Application settings

    Returns:
        Configured TranscriptionService instance
    """
    return TranscriptionService(
        elevenlabs_api_key=settings.elevenlabs_api_key,
        base_url=settings.elevenlabs_base_url,
        model_id=settings.elevenlabs_stt_model,
        timeout=settings.transcription_timeout_seconds,
    )
