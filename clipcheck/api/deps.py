"""FastAPI dependencies for the ClipCheck API."""

import logging
from dataclasses import dataclass

from fastapi import Request

from clipcheck.config import Settings
from clipcheck.services.orchestrator import AnalysisOrchestrator, create_orchestrator
from clipcheck.services.store import JobStore, create_job_store

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Services shared by request handlers, built once per application."""

    settings: Settings
    store: JobStore
    orchestrator: AnalysisOrchestrator
    simulation_mode: bool

    async def close(self) -> None:
        try:
            await self.orchestrator.capture.close()
        except Exception as e:
            logger.error(f"Error closing capture browser: {e}")
        await self.store.close()


async def build_context(settings: Settings) -> AppContext:
    """
    Build the application context from settings.

    Simulation mode is resolved here, once, and fixed for the lifetime of
    the orchestrator.
    """
    simulation_mode = settings.simulation_mode
    if simulation_mode:
        logger.info("Running in SIMULATION MODE - external services will not be called")
    else:
        logger.info("Running in REAL MODE - using external API services")

    store = create_job_store(settings)
    await store.initialize()

    return AppContext(
        settings=settings,
        store=store,
        orchestrator=create_orchestrator(settings, store, simulate=simulation_mode),
        simulation_mode=simulation_mode,
    )


def get_context(request: Request) -> AppContext:
    """Dependency for the application context."""
    return request.app.state.context


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    """Dependency for the analysis orchestrator."""
    return get_context(request).orchestrator
