"""Utility modules for ClipCheck."""

from clipcheck.utils.errors import (
    CaptureError,
    ClipCheckError,
    DetectionError,
    ElevenLabsAPIError,
    FfmpegError,
    GPTZeroAPIError,
    InvalidTransitionError,
    MalformedTranscriptError,
    MediaError,
    StageError,
    StoreError,
    TranscriptionError,
)

__all__ = [
    "ClipCheckError",
    "StoreError",
    "InvalidTransitionError",
    "StageError",
    "CaptureError",
    "MediaError",
    "FfmpegError",
    "TranscriptionError",
    "ElevenLabsAPIError",
    "DetectionError",
    "GPTZeroAPIError",
    "MalformedTranscriptError",
]
