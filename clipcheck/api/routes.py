"""FastAPI routes for the ClipCheck API."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipcheck.api.deps import AppContext, get_context, get_orchestrator
from clipcheck.models.result import JobHandle
from clipcheck.services.orchestrator import AnalysisOrchestrator
from clipcheck.utils.errors import ClipCheckError, StageError

logger = logging.getLogger(__name__)

SERVICE_NAME = "ClipCheck Analysis Service"
ESTIMATED_TIME = "2-5 minutes depending on video length"

YOUTUBE_URL_PATTERN = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+")
ANALYSIS_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Create router
router = APIRouter()


# ==================== Error Response Model ====================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    success: bool = False
    detail: str
    error_type: str
    errors: Optional[List[Dict[str, Any]]] = None


ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 404, 422, 500)
}


# ==================== Exception Handlers ====================


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "detail": "Validation error",
            "error_type": "ValidationError",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def clipcheck_exception_handler(request: Request, exc: ClipCheckError) -> JSONResponse:
    """Handle application-specific errors."""
    # Stage errors come from external collaborators
    status_code = 502 if isinstance(exc, StageError) else 500

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "detail": str(exc),
            "error_type": type(exc).__name__,
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "detail": exc.detail,
            "error_type": "HTTPException",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "detail": "Internal server error",
            "error_type": "InternalError",
        },
    )


# ==================== Request/Response Models ====================


class AnalyzeRequest(BaseModel):
    """Request model for analyze endpoint."""

    youtube_url: str = Field(min_length=1, description="YouTube video URL to analyze")


class AnalyzeResponse(BaseModel):
    """Response model for analyze endpoint."""

    success: bool
    message: str
    analysis_id: str
    status: str
    estimated_time: str


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str
    timestamp: str
    service: str
    simulation_mode: bool


# ==================== Background Tasks ====================


async def _execute_analysis_job(orchestrator: AnalysisOrchestrator, handle: JobHandle) -> None:
    """Execute analysis job in background."""
    outcome = await orchestrator.execute(handle)

    if outcome.success:
        logger.info(f"Analysis job {handle.job_id} completed")
    elif outcome.internal_error:
        logger.error(f"Analysis job {handle.job_id} ended with unknown outcome: {outcome.error}")
    else:
        logger.warning(f"Analysis job {handle.job_id} failed: {outcome.error}")


# ==================== Endpoints ====================


@router.post(
    "/api/analyze", response_model=AnalyzeResponse, status_code=202, responses=ERROR_RESPONSES
)
async def analyze(
    request: AnalyzeRequest,
    background_tasks: BackgroundTasks,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalyzeResponse:
    """
    Submit a YouTube URL for analysis.

    Creates the job record and returns its id immediately; the pipeline
    runs as a background task. Poll ``/api/result/{analysis_id}``.
    """
    if not YOUTUBE_URL_PATTERN.match(request.youtube_url):
        raise HTTPException(status_code=400, detail="Invalid YouTube URL format")

    logger.info(f"Received analysis request for: {request.youtube_url}")

    handle = await orchestrator.start(request.youtube_url)
    if handle.error:
        raise HTTPException(status_code=500, detail="Failed to start analysis")

    background_tasks.add_task(_execute_analysis_job, orchestrator, handle)

    return AnalyzeResponse(
        success=True,
        message="Analysis started successfully",
        analysis_id=handle.job_id,
        status="processing",
        estimated_time=ESTIMATED_TIME,
    )


@router.get("/api/result/{analysis_id}", responses=ERROR_RESPONSES)
async def get_result(
    analysis_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """
    Get the result of an analysis.

    Returns an in-progress, failed or completed view depending on the job's
    status.
    """
    if not ANALYSIS_ID_PATTERN.match(analysis_id):
        raise HTTPException(status_code=400, detail="Invalid analysis ID format")

    logger.info(f"Fetching analysis result for ID: {analysis_id}")

    lookup = await orchestrator.get_result(analysis_id)
    if lookup.state == "not_found":
        raise HTTPException(status_code=404, detail="Analysis not found")
    if lookup.state == "error" or lookup.view is None:
        raise HTTPException(status_code=500, detail="Failed to read analysis")

    return {"success": True, **lookup.view.model_dump()}


@router.get("/api/analyze")
@router.get("/api/result")
async def list_analyses(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """List all analyses, most recent first."""
    listing = await orchestrator.list_all()
    if not listing.success:
        raise HTTPException(status_code=500, detail="Failed to list analyses")

    analyses = [summary.model_dump() for summary in listing.analyses]
    return {"success": True, "analyses": analyses, "total": len(analyses)}


@router.get("/health", response_model=HealthResponse)
async def health(context: AppContext = Depends(get_context)) -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=SERVICE_NAME,
        simulation_mode=context.simulation_mode,
    )


@router.get("/api/health/services")
async def service_health(context: AppContext = Depends(get_context)) -> Dict[str, Any]:
    """Validate the credentials of the external transcription and detection services."""
    if context.simulation_mode:
        return {"simulation_mode": True, "services": {}}

    return {"simulation_mode": False, "services": await context.orchestrator.validate_services()}
