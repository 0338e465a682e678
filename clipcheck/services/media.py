"""Audio download and transcoding with yt-dlp and ffmpeg."""

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, List

from clipcheck.config import Settings
from clipcheck.models.result import TranscodeResult
from clipcheck.utils.errors import FfmpegError, MediaError

logger = logging.getLogger(__name__)

# 16 kHz, mono, 16-bit PCM
WAV_ARGS = ["-vn", "-ac", "1", "-ar", "16000", "-sample_fmt", "s16", "-c:a", "pcm_s16le", "-f", "wav"]


def summarize_probe(probe: dict[str, Any]) -> dict[str, Any]:
    """
    Reduce ffprobe JSON output to the fields reported with a result.

    Raises:
        MediaError: If the media has no audio stream
    """
    streams = probe.get("streams") or []
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if audio is None:
        raise MediaError("No audio stream found")

    fmt = probe.get("format") or {}
    return {
        "format": fmt.get("format_name"),
        "duration": float(fmt["duration"]) if fmt.get("duration") else None,
        "size": int(fmt["size"]) if fmt.get("size") else None,
        "bitrate": int(fmt["bit_rate"]) if fmt.get("bit_rate") else None,
        "sample_rate": int(audio["sample_rate"]) if audio.get("sample_rate") else None,
        "channels": audio.get("channels"),
        "codec": audio.get("codec_name"),
    }


class MediaService:
    """Service that fetches a video's audio track and converts it to WAV."""

    def __init__(
        self,
        audio_dir: str,
        download_timeout: float = 300.0,
        transcode_timeout: float = 300.0,
    ) -> None:
        """
        Initialize the MediaService.

        Args:
            audio_dir: Directory for downloaded audio; WAVs go in ``<audio_dir>/wav``
            download_timeout: Seconds allowed for the download
            transcode_timeout: Seconds allowed for each ffmpeg/ffprobe run
        """
        self.audio_dir = Path(audio_dir)
        self.wav_dir = self.audio_dir / "wav"
        self.download_timeout = download_timeout
        self.transcode_timeout = transcode_timeout

    # ==================== Download ====================

    def raw_audio_files(self, job_id: str) -> List[Path]:
        """Transient downloads for a job, i.e. everything that is not the final WAV."""
        return sorted(self.audio_dir.glob(f"{job_id}_source.*"))

    def _download_sync(self, source_reference: str, job_id: str) -> Path:
        import yt_dlp

        options = {
            "format": "bestaudio/best",
            "outtmpl": str(self.audio_dir / f"{job_id}_source.%(ext)s"),
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "socket_timeout": 30,
        }
        with yt_dlp.YoutubeDL(options) as ydl:
            info = ydl.extract_info(source_reference, download=True)
            path = Path(ydl.prepare_filename(info))

        logger.info(
            f"Downloaded audio: {info.get('ext')}, bitrate: {info.get('abr')}kbps "
            f"({info.get('title', 'untitled')})"
        )
        return path

    def _discard_late_download(self, task: "asyncio.Future[Path]", job_id: str) -> None:
        """Remove whatever a timed-out download left behind after it finished."""
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Abandoned download for job {job_id} failed: {task.exception()}")

        for path in self.raw_audio_files(job_id):
            try:
                path.unlink(missing_ok=True)
                logger.info(f"Removed late download: {path}")
            except OSError as e:
                logger.warning(f"Could not remove late download {path}: {e}")

    async def download_audio(self, source_reference: str, job_id: str) -> Path:
        """
        Download the best audio-only stream for a video.

        Raises:
            MediaError: If the download fails or produces no file
        """
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Starting audio download for: {source_reference}")

        download = asyncio.ensure_future(
            asyncio.to_thread(self._download_sync, source_reference, job_id)
        )
        try:
            path = await asyncio.wait_for(asyncio.shield(download), timeout=self.download_timeout)
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; sweep its output once it returns
            download.add_done_callback(lambda task: self._discard_late_download(task, job_id))
            raise MediaError(f"Audio download timed out after {self.download_timeout}s")
        except Exception as e:
            raise MediaError(f"Failed to download audio: {e}")

        if not path.exists():
            raise MediaError(f"Downloaded audio file not found: {path}")
        return path

    # ==================== ffmpeg ====================

    async def _run_tool(self, *args: str) -> str:
        if shutil.which(args[0]) is None:
            raise MediaError(f"{args[0]} not found on PATH")

        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.transcode_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise MediaError(f"{args[0]} timed out after {self.transcode_timeout}s")

        if process.returncode != 0:
            raise FfmpegError(process.returncode, stderr.decode(errors="replace").strip())
        return stdout.decode(errors="replace")

    async def probe(self, path: Path) -> dict[str, Any]:
        """Describe a media file's container and first audio stream."""
        output = await self._run_tool(
            "ffprobe", "-v", "error", "-print_format", "json", "-show_format", "-show_streams", str(path)
        )
        try:
            return summarize_probe(json.loads(output))
        except json.JSONDecodeError as e:
            raise MediaError(f"Failed to get audio info: {e}")

    async def convert_to_wav(self, input_path: Path, job_id: str) -> Path:
        """
        Convert audio to 16 kHz mono 16-bit PCM WAV.

        Raises:
            MediaError: If ffmpeg fails or the output is empty
        """
        if not input_path.exists():
            raise MediaError(f"Input audio file not found: {input_path}")

        self.wav_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.wav_dir / f"{job_id}_audio.wav"

        logger.info(f"Starting audio conversion: {input_path} -> {output_path}")
        await self._run_tool("ffmpeg", "-y", "-i", str(input_path), *WAV_ARGS, str(output_path))

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise MediaError("Output file is empty or missing")

        logger.info(f"Audio conversion completed: {output_path}")
        return output_path

    # ==================== Stage ====================

    async def transcode(self, source: str, job_id: str) -> TranscodeResult:
        """
        Fetch and transcode a video's audio.

        Args:
            source: Video URL, or the path of an already local media file
            job_id: Job the audio belongs to

        Returns:
            TranscodeResult with the WAV path and audio info, or the error message
        """
        try:
            local = Path(source)
            source_path = local if local.is_file() else await self.download_audio(source, job_id)

            source_info = await self.probe(source_path)
            logger.info(f"Original audio info: {source_info}")

            wav_path = await self.convert_to_wav(source_path, job_id)
            output_info = await self.probe(wav_path)
            logger.info(f"Converted WAV info: {output_info}")

        except Exception as e:
            logger.error(f"Audio processing failed for job {job_id}: {e}")
            return TranscodeResult(success=False, error=str(e))

        return TranscodeResult(
            success=True,
            path=str(wav_path),
            source_path=str(source_path),
            source_info=source_info,
            output_info=output_info,
        )

    async def cleanup_temp_files(self, paths: Iterable[Path]) -> None:
        """
        Delete transient files, logging each removal.

        Raises:
            OSError: If a file exists but cannot be removed
        """
        for path in paths:
            if path.exists():
                path.unlink()
                logger.info(f"Cleaned up temporary file: {path}")


def create_media_service(settings: Settings) -> MediaService:
    """
    Create a MediaService instance using application settings.

    Args:
        settings: Application settings

    Returns:
        Configured MediaService instance
    """
    return MediaService(
        audio_dir=settings.audio_dir,
        download_timeout=settings.download_timeout_seconds,
        transcode_timeout=settings.transcode_timeout_seconds,
    )
