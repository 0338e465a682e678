"""Custom exception classes for ClipCheck."""


class ClipCheckError(Exception):
    """Base exception for all application errors."""

    pass


class StoreError(ClipCheckError):
    """Errors from the job record store."""

    pass


class InvalidTransitionError(ClipCheckError):
    """A job status write would move the record backwards or out of a terminal state."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id}: cannot move from '{current}' to '{requested}'")


class StageError(ClipCheckError):
    """Errors raised inside a pipeline stage adapter."""

    pass


class CaptureError(StageError):
    """Errors from the snapshot capture stage."""

    pass


class MediaError(StageError):
    """Errors from the audio download/transcode stage."""

    pass


class FfmpegError(MediaError):
    """ffmpeg or ffprobe exited with an error."""

    def __init__(self, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"ffmpeg exited with code {returncode}: {stderr}")


class TranscriptionError(StageError):
    """Errors from the transcription stage."""

    pass


class ElevenLabsAPIError(TranscriptionError):
    """ElevenLabs API returned an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"ElevenLabs error {status_code}: {message}")


class DetectionError(StageError):
    """Errors from the authenticity detection stage."""

    pass


class GPTZeroAPIError(DetectionError):
    """GPTZero API returned an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"GPTZero error {status_code}: {message}")


class MalformedTranscriptError(DetectionError):
    """Transcript handed to detection has no usable segment sequence."""

    pass
