"""Pytest fixtures for ClipCheck tests."""

from pathlib import Path

import pytest
import pytest_asyncio

from clipcheck.config import Settings
from clipcheck.services.store import SQLiteJobStore
from tests.fakes import make_settings


@pytest.fixture
def app_settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteJobStore:
    job_store = SQLiteJobStore(str(tmp_path / "data" / "analysis.db"))
    await job_store.initialize()
    yield job_store
    await job_store.close()
