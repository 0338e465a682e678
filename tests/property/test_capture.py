"""Tests for the snapshot capture adapter."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from clipcheck.services.capture import CaptureService
from clipcheck.utils.errors import CaptureError


class TestCaptureService:
    @pytest.mark.asyncio
    async def test_snapshot_path_per_job(self, tmp_path: Path) -> None:
        service = CaptureService(screenshot_dir=str(tmp_path / "screenshots"))

        with patch.object(service, "_take_snapshot", new=AsyncMock()) as snapshot:
            result = await service.capture("https://youtu.be/abc123", "job-1")

        expected = tmp_path / "screenshots" / "job-1_screenshot.png"
        snapshot.assert_awaited_once_with("https://youtu.be/abc123", expected)
        assert result.success
        assert result.path == str(expected)

    @pytest.mark.asyncio
    async def test_failure_becomes_result_error(self, tmp_path: Path) -> None:
        service = CaptureService(screenshot_dir=str(tmp_path))
        error = CaptureError("Failed to capture screenshot: Timeout 15000ms exceeded")

        with patch.object(service, "_take_snapshot", new=AsyncMock(side_effect=error)):
            result = await service.capture("https://youtu.be/abc123", "job-1")

        assert not result.success
        assert result.path is None
        assert "Timeout" in result.error

    @pytest.mark.asyncio
    async def test_close_without_browser_is_noop(self, tmp_path: Path) -> None:
        service = CaptureService(screenshot_dir=str(tmp_path))

        await service.close()

        assert service._browser is None


class FakeBrowser:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakePlaywright:
    """Stands in for the Playwright driver; launching yields to the loop."""

    def __init__(self) -> None:
        self.launched: list[FakeBrowser] = []
        self.stopped = False
        self.chromium = self

    async def start(self) -> "FakePlaywright":
        await asyncio.sleep(0.01)
        return self

    async def launch(self, **kwargs: object) -> FakeBrowser:
        await asyncio.sleep(0.01)
        browser = FakeBrowser()
        self.launched.append(browser)
        return browser

    async def stop(self) -> None:
        self.stopped = True


class TestBrowserLifecycle:
    @pytest.mark.asyncio
    async def test_concurrent_captures_share_one_browser(self, tmp_path: Path) -> None:
        service = CaptureService(screenshot_dir=str(tmp_path))
        driver = FakePlaywright()

        with patch("playwright.async_api.async_playwright", return_value=driver):
            browsers = await asyncio.gather(*(service._get_browser() for _ in range(4)))

        assert len(driver.launched) == 1
        assert all(browser is driver.launched[0] for browser in browsers)

    @pytest.mark.asyncio
    async def test_close_shuts_down_the_launched_browser(self, tmp_path: Path) -> None:
        service = CaptureService(screenshot_dir=str(tmp_path))
        driver = FakePlaywright()

        with patch("playwright.async_api.async_playwright", return_value=driver):
            await asyncio.gather(service._get_browser(), service._get_browser())
        await service.close()

        assert driver.launched[0].closed
        assert driver.stopped
        assert service._browser is None
