"""Snapshot capture of a video page using headless Chromium."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from clipcheck.config import Settings
from clipcheck.models.result import CaptureResult
from clipcheck.utils.errors import CaptureError

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 720}
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
)
PLAYER_SELECTOR = "#movie_player"
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class CaptureService:
    """Service for capturing a still of the video player with Playwright."""

    def __init__(
        self,
        screenshot_dir: str,
        page_timeout: float = 30.0,
        player_wait: float = 15.0,
        settle_delay: float = 3.0,
    ) -> None:
        """
        Initialize the CaptureService.

        Args:
            screenshot_dir: Directory snapshots are written to
            page_timeout: Seconds allowed for page navigation
            player_wait: Seconds to wait for the video player element
            settle_delay: Seconds to let the player render before the shot
        """
        self.screenshot_dir = Path(screenshot_dir)
        self.page_timeout = page_timeout
        self.player_wait = player_wait
        self.settle_delay = settle_delay
        self._playwright: Optional[Any] = None
        self._browser: Optional[Any] = None
        self._launch_lock = asyncio.Lock()

    async def _get_browser(self) -> Any:
        """Get or launch the shared headless browser."""
        async with self._launch_lock:
            if self._browser is None:
                from playwright.async_api import async_playwright

                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=True, args=BROWSER_ARGS
                )
                logger.info("Headless browser launched")
            return self._browser

    async def close(self) -> None:
        """Close the browser if it was launched."""
        async with self._launch_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
                logger.info("Headless browser closed")
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    async def _take_snapshot(self, source_reference: str, output_path: Path) -> None:
        browser = await self._get_browser()
        context = await browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
        page = await context.new_page()

        try:
            logger.info(f"Loading video page: {source_reference}")
            await page.goto(
                source_reference,
                wait_until="networkidle",
                timeout=self.page_timeout * 1000,
            )
            await page.wait_for_selector(PLAYER_SELECTOR, timeout=self.player_wait * 1000)
            await page.wait_for_timeout(self.settle_delay * 1000)
            await page.screenshot(
                path=str(output_path),
                full_page=False,
                clip={"x": 0, "y": 0, **VIEWPORT},
            )
        except Exception as e:
            raise CaptureError(f"Failed to capture screenshot: {e}")
        finally:
            await context.close()

    async def capture(self, source_reference: str, job_id: str) -> CaptureResult:
        """
        Capture a snapshot of the video page.

        Args:
            source_reference: URL of the video page
            job_id: Job the snapshot belongs to

        Returns:
            CaptureResult with the snapshot path, or the error message
        """
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.screenshot_dir / f"{job_id}_screenshot.png"

        try:
            await self._take_snapshot(source_reference, output_path)
        except Exception as e:
            logger.error(f"Snapshot capture failed for job {job_id}: {e}")
            return CaptureResult(success=False, error=str(e))

        logger.info(f"Screenshot captured: {output_path}")
        return CaptureResult(success=True, path=str(output_path))


def create_capture_service(settings: Settings) -> CaptureService:
    """
    Create a CaptureService instance using application settings.

    Args:
        settings: Application settings

    Returns:
        Configured CaptureService instance
    """
    return CaptureService(
        screenshot_dir=settings.screenshot_dir,
        page_timeout=settings.capture_timeout_seconds,
        player_wait=settings.player_wait_seconds,
        settle_delay=settings.player_settle_seconds,
    )
