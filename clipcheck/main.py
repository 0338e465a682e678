"""ClipCheck application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipcheck.api.deps import AppContext, build_context
from clipcheck.api.routes import (
    clipcheck_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    router,
    validation_exception_handler,
)
from clipcheck.config import Settings, get_settings
from clipcheck.utils.errors import ClipCheckError
from clipcheck.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        context: Prebuilt context; when omitted one is built from settings at startup

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.context = context or await build_context(settings)
        logger.info("ClipCheck service started")
        try:
            yield
        finally:
            await app.state.context.close()
            logger.info("ClipCheck service stopped")

    app = FastAPI(title="ClipCheck API", lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ClipCheckError, clipcheck_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(router)

    # Snapshots are served so clients can display them
    Path(settings.screenshot_dir).mkdir(parents=True, exist_ok=True)
    app.mount("/screenshots", StaticFiles(directory=settings.screenshot_dir), name="screenshots")

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("clipcheck.main:create_app", factory=True, host=settings.host, port=settings.port)
