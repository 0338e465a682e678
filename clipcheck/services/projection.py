"""Read-side mapping from stored job records to client-facing views."""

import json
import logging
from typing import Any, Optional

from clipcheck.models.job import JobRecord, JobStatus
from clipcheck.models.result import (
    ClientStatus,
    CompletedView,
    FailedView,
    InProgressView,
    JobSummary,
    ResultView,
)

logger = logging.getLogger(__name__)


def client_status(status: str) -> ClientStatus:
    """Collapse the internal status vocabulary to processing/failed/completed."""
    if status == JobStatus.COMPLETED.value:
        return "completed"
    if status == JobStatus.FAILED.value:
        return "failed"
    return "processing"


def _load_payload(record: JobRecord, field: str) -> Optional[dict[str, Any]]:
    raw = getattr(record, field)
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Error parsing {field} for job {record.id}: {e}")
        return None

    if not isinstance(payload, dict):
        logger.warning(f"Ignoring {field} for job {record.id}: expected an object, got {type(payload).__name__}")
        return None
    return payload


def project_record(record: JobRecord) -> ResultView:
    """
    Build the view a client sees for a job.

    In-progress jobs expose only identity, status and timestamps; failed jobs
    add the error and elapsed time; completed jobs carry the parsed payloads.
    A payload that cannot be parsed is logged and returned as None.
    """
    status = client_status(record.status)

    if status == "processing":
        return InProgressView(
            analysis_id=record.id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    if status == "failed":
        return FailedView(
            analysis_id=record.id,
            error_message=record.error_message,
            processing_time_ms=record.processing_time_ms,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    return CompletedView(
        analysis_id=record.id,
        source_reference=record.source_reference,
        snapshot_path=record.snapshot_path,
        audio_path=record.audio_path,
        transcription=_load_payload(record, "transcription"),
        ai_probabilities=_load_payload(record, "ai_probabilities"),
        processing_time_ms=record.processing_time_ms,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def summarize_record(record: JobRecord) -> JobSummary:
    return JobSummary(
        id=record.id,
        source_reference=record.source_reference,
        status=client_status(record.status),
        created_at=record.created_at,
        updated_at=record.updated_at,
        processing_time_ms=record.processing_time_ms,
    )
