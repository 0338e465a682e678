"""Service layer for ClipCheck."""

from clipcheck.services.capture import CaptureService, create_capture_service
from clipcheck.services.detection import (
    DetectionService,
    SegmentDetector,
    create_detection_service,
)
from clipcheck.services.media import MediaService, create_media_service
from clipcheck.services.orchestrator import AnalysisOrchestrator, create_orchestrator
from clipcheck.services.simulation import SimulationService, create_simulation_service
from clipcheck.services.store import (
    JobStore,
    SQLiteJobStore,
    SupabaseJobStore,
    create_job_store,
)
from clipcheck.services.transcription import (
    TranscriptionService,
    create_transcription_service,
    normalize_transcript,
)

__all__ = [
    "AnalysisOrchestrator",
    "create_orchestrator",
    "CaptureService",
    "create_capture_service",
    "MediaService",
    "create_media_service",
    "TranscriptionService",
    "create_transcription_service",
    "normalize_transcript",
    "DetectionService",
    "SegmentDetector",
    "create_detection_service",
    "SimulationService",
    "create_simulation_service",
    "JobStore",
    "SQLiteJobStore",
    "SupabaseJobStore",
    "create_job_store",
]
