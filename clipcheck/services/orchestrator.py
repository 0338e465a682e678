"""Analysis pipeline orchestrator: drives one job from submission to a terminal record."""

import logging
import time
from typing import Any, Optional
from uuid import uuid4

from clipcheck.config import Settings
from clipcheck.models.job import JobStatus, can_transition
from clipcheck.models.result import (
    AnalysisOutcome,
    AnalysisResult,
    JobHandle,
    JobListing,
    ResultLookup,
)
from clipcheck.models.transcript import DetectionSummary, Transcript
from clipcheck.services.capture import CaptureService
from clipcheck.services.detection import SegmentDetector
from clipcheck.services.media import MediaService
from clipcheck.services.projection import project_record, summarize_record
from clipcheck.services.simulation import SimulationService
from clipcheck.services.store import JobStore
from clipcheck.services.transcription import TranscriptionService
from clipcheck.utils.errors import InvalidTransitionError, StoreError

logger = logging.getLogger(__name__)


class _Progress:
    """Tracks a job's current status and writes forward-only transitions."""

    def __init__(self, store: JobStore, job_id: str) -> None:
        self.store = store
        self.job_id = job_id
        self.status = JobStatus.PROCESSING.value

    async def advance(self, status: JobStatus, **fields: Any) -> None:
        if not can_transition(self.status, status.value):
            raise InvalidTransitionError(self.job_id, self.status, status.value)
        await self.store.update(self.job_id, status.value, **fields)
        self.status = status.value


class AnalysisOrchestrator:
    """
    Runs the capture -> transcode -> transcribe -> detect pipeline for a job.

    Every stage result is persisted before the next stage starts. Any stage
    failure ends the job as ``failed`` with the stage's message; storage
    failures are reported as an internal error with unknown job outcome.
    Nothing raises past the public methods.
    """

    def __init__(
        self,
        store: JobStore,
        capture: CaptureService,
        media: MediaService,
        transcription: TranscriptionService,
        detector: SegmentDetector,
        simulation: SimulationService,
        simulate: bool = False,
    ) -> None:
        """
        Initialize the AnalysisOrchestrator.

        Args:
            store: Job record store
            capture: Snapshot capture adapter
            media: Download/transcode adapter
            transcription: Transcription adapter
            detector: Segment fan-out detector
            simulation: Simulated pipeline
            simulate: Run every job through the simulation instead of the real stages
        """
        self.store = store
        self.capture = capture
        self.media = media
        self.transcription = transcription
        self.detector = detector
        self.simulation = simulation
        self.simulate = simulate

    @staticmethod
    def _elapsed_ms(handle: JobHandle) -> int:
        return max(0, int((time.monotonic() - handle.started_at) * 1000))

    # ==================== Write Path ====================

    async def start(self, source_reference: str) -> JobHandle:
        """
        Create the job record and move it to processing.

        Both writes complete before any stage runs. If either fails the handle
        carries the error and ``execute`` reports an internal error.
        """
        job_id = str(uuid4())
        started_at = time.monotonic()
        logger.info(f"Starting analysis {job_id} for: {source_reference}")

        try:
            record = await self.store.create(job_id, source_reference)
            await self.store.update(job_id, JobStatus.PROCESSING.value)
        except StoreError as e:
            logger.error(f"Failed to create job {job_id}: {e}")
            return JobHandle(
                job_id=job_id,
                source_reference=source_reference,
                started_at=started_at,
                created_at="",
                error=str(e),
            )

        return JobHandle(
            job_id=job_id,
            source_reference=source_reference,
            started_at=started_at,
            created_at=record.created_at,
        )

    async def execute(self, handle: JobHandle) -> AnalysisOutcome:
        """
        Run a started job to its terminal status.

        Args:
            handle: Job returned by ``start``

        Returns:
            AnalysisOutcome with the result, or the failure reason
        """
        if handle.error:
            return AnalysisOutcome(
                success=False,
                job_id=handle.job_id,
                error=f"Storage failure: {handle.error}",
                processing_time_ms=self._elapsed_ms(handle),
                internal_error=True,
            )

        progress = _Progress(self.store, handle.job_id)

        try:
            if self.simulate:
                return await self._run_simulation(handle, progress)
            return await self._run_stages(handle, progress)

        except StoreError as e:
            return self._storage_failure(handle, e)
        except Exception as e:
            logger.exception(f"Analysis {handle.job_id} raised unexpectedly: {e}")
            try:
                return await self._fail(handle, progress, f"Analysis failed: {e}")
            except Exception as nested:
                return self._storage_failure(handle, nested)

        finally:
            if not self.simulate:
                await self._cleanup(handle.job_id)

    async def run(self, source_reference: str) -> AnalysisOutcome:
        """Create a job and run it to completion."""
        handle = await self.start(source_reference)
        return await self.execute(handle)

    async def _run_stages(self, handle: JobHandle, progress: _Progress) -> AnalysisOutcome:
        job_id = handle.job_id
        logger.info(f"Analysis {job_id}: running real pipeline")

        logger.info("Step 1: Capturing video snapshot...")
        captured = await self.capture.capture(handle.source_reference, job_id)
        if not captured.success:
            return await self._fail(handle, progress, f"Snapshot capture failed: {captured.error}")
        await progress.advance(JobStatus.CAPTURE_DONE, snapshot_path=captured.path)

        logger.info("Step 2: Downloading and converting audio to WAV...")
        transcoded = await self.media.transcode(handle.source_reference, job_id)
        if not transcoded.success:
            return await self._fail(handle, progress, f"Audio transcoding failed: {transcoded.error}")
        await progress.advance(JobStatus.TRANSCODE_DONE, audio_path=transcoded.path)

        logger.info("Step 3: Transcribing audio...")
        transcribed = await self.transcription.transcribe(transcoded.path, job_id)
        if not transcribed.success or transcribed.transcript is None:
            return await self._fail(handle, progress, f"Transcription failed: {transcribed.error}")
        await progress.advance(JobStatus.TRANSCRIBE_DONE)

        logger.info("Step 4: Running AI detection per segment...")
        try:
            detection = await self.detector.process(transcribed.transcript)
        except Exception as e:
            return await self._fail(handle, progress, f"AI detection failed: {e}")
        await progress.advance(JobStatus.DETECT_DONE)

        return await self._complete(
            handle,
            progress,
            snapshot_path=captured.path,
            audio_path=transcoded.path,
            transcript=transcribed.transcript,
            detection=detection,
            metadata={
                "simulated": False,
                "source_audio_info": transcoded.source_info,
                "output_audio_info": transcoded.output_info,
                "transcription_metadata": transcribed.transcript.metadata.model_dump(),
            },
            persist_artifacts=False,
        )

    async def _run_simulation(self, handle: JobHandle, progress: _Progress) -> AnalysisOutcome:
        logger.info(f"Analysis {handle.job_id}: running simulated pipeline")

        simulated = await self.simulation.simulate(handle.source_reference, handle.job_id)
        if not simulated.success or simulated.transcript is None or simulated.detection is None:
            return await self._fail(handle, progress, f"Simulated analysis failed: {simulated.error}")

        return await self._complete(
            handle,
            progress,
            snapshot_path=simulated.snapshot_path,
            audio_path=simulated.audio_path,
            transcript=simulated.transcript,
            detection=simulated.detection,
            metadata={
                "simulated": True,
                "note": "Simulated result; external services were not called",
            },
            persist_artifacts=True,
        )

    async def _complete(
        self,
        handle: JobHandle,
        progress: _Progress,
        snapshot_path: Optional[str],
        audio_path: Optional[str],
        transcript: Transcript,
        detection: DetectionSummary,
        metadata: dict[str, Any],
        persist_artifacts: bool,
    ) -> AnalysisOutcome:
        elapsed = self._elapsed_ms(handle)
        result = AnalysisResult(
            id=handle.job_id,
            source_reference=handle.source_reference,
            snapshot_path=snapshot_path,
            audio_path=audio_path,
            transcription=transcript,
            ai_probabilities=detection,
            processing_time_ms=elapsed,
            created_at=handle.created_at,
            metadata=metadata,
        )

        # Artifact paths were already written stage by stage on the real path
        artifacts = {"snapshot_path": snapshot_path, "audio_path": audio_path} if persist_artifacts else {}
        await progress.advance(
            JobStatus.COMPLETED,
            transcription=transcript.model_dump_json(),
            ai_probabilities=detection.model_dump_json(),
            processing_time_ms=elapsed,
            **artifacts,
        )

        logger.info(f"Analysis {handle.job_id} completed successfully in {elapsed}ms")
        return AnalysisOutcome(
            success=True,
            job_id=handle.job_id,
            result=result,
            processing_time_ms=elapsed,
        )

    async def _fail(self, handle: JobHandle, progress: _Progress, message: str) -> AnalysisOutcome:
        elapsed = self._elapsed_ms(handle)
        logger.error(f"Analysis failed for {handle.job_id}: {message}")

        await progress.advance(JobStatus.FAILED, error_message=message, processing_time_ms=elapsed)

        return AnalysisOutcome(
            success=False,
            job_id=handle.job_id,
            error=message,
            processing_time_ms=elapsed,
        )

    def _storage_failure(self, handle: JobHandle, error: Exception) -> AnalysisOutcome:
        logger.error(f"Storage failure during analysis {handle.job_id}: {error}")
        return AnalysisOutcome(
            success=False,
            job_id=handle.job_id,
            error=f"Storage failure: {error}",
            processing_time_ms=self._elapsed_ms(handle),
            internal_error=True,
        )

    async def _cleanup(self, job_id: str) -> None:
        """Remove the raw download; the transcoded WAV is kept."""
        try:
            await self.media.cleanup_temp_files(self.media.raw_audio_files(job_id))
        except Exception as e:
            logger.warning(f"Error during cleanup for job {job_id}: {e}")

    async def validate_services(self) -> dict[str, Any]:
        """Check the credentials of the transcription and detection providers."""
        return {
            "elevenlabs": await self.transcription.validate_api_key(),
            "gptzero": await self.detector.validate_api_key(),
        }

    # ==================== Read Path ====================

    async def get_result(self, job_id: str) -> ResultLookup:
        """
        Look up a job and project it for the client.

        Returns:
            ResultLookup in state found, not_found, or error
        """
        try:
            record = await self.store.get_by_id(job_id)
        except StoreError as e:
            logger.error(f"Error getting analysis result {job_id}: {e}")
            return ResultLookup(state="error", error=str(e))

        if record is None:
            return ResultLookup(state="not_found", error="Analysis not found")
        return ResultLookup(state="found", view=project_record(record))

    async def list_all(self) -> JobListing:
        """Summaries of every job, most recent first."""
        try:
            records = await self.store.list_all()
        except StoreError as e:
            logger.error(f"Error getting all analyses: {e}")
            return JobListing(success=False, error=str(e))

        return JobListing(success=True, analyses=[summarize_record(r) for r in records])


# Factory function for creating the orchestrator with settings
def create_orchestrator(settings: Settings, store: JobStore, simulate: bool) -> AnalysisOrchestrator:
    """
    Create an AnalysisOrchestrator wired to the configured adapters.

    Args:
        settings: Application settings
        store: Initialized job store
        simulate: Resolved simulation mode

    Returns:
        Configured AnalysisOrchestrator instance
    """
    from clipcheck.services.capture import create_capture_service
    from clipcheck.services.detection import create_detection_service
    from clipcheck.services.media import create_media_service
    from clipcheck.services.simulation import create_simulation_service
    from clipcheck.services.transcription import create_transcription_service

    return AnalysisOrchestrator(
        store=store,
        capture=create_capture_service(settings),
        media=create_media_service(settings),
        transcription=create_transcription_service(settings),
        detector=SegmentDetector(
            create_detection_service(settings),
            delay_seconds=settings.detection_delay_seconds,
        ),
        simulation=create_simulation_service(settings),
        simulate=simulate,
    )
