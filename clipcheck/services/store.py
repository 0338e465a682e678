"""Job record store backed by Supabase or a local SQLite file."""

import asyncio
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from clipcheck.config import Settings
from clipcheck.models.job import TERMINAL_STATUSES, JobRecord, JobStatus, utc_now
from clipcheck.utils.errors import StoreError

logger = logging.getLogger(__name__)

TABLE_NAME = "analysis_results"

# Fields a status write may carry besides the status itself
UPDATABLE_FIELDS = (
    "snapshot_path",
    "audio_path",
    "transcription",
    "ai_probabilities",
    "error_message",
    "processing_time_ms",
)

_TERMINAL_VALUES = [status.value for status in TERMINAL_STATUSES]


def _build_update(status: str, fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise StoreError(f"Unknown job fields: {', '.join(sorted(unknown))}")

    update_data: dict[str, Any] = {
        "status": JobStatus(status).value,
        "updated_at": utc_now(),
    }
    for key, value in fields.items():
        if value is not None:
            update_data[key] = value
    return update_data


def _to_record(row: Any) -> JobRecord:
    try:
        return JobRecord(**row)
    except (TypeError, ValidationError) as e:
        raise StoreError(f"Malformed job row {row!r}: {e}")


class JobStore(ABC):
    """Persistence for job records. All operations raise StoreError on failure."""

    async def initialize(self) -> None:
        """Prepare the backing storage."""

    async def close(self) -> None:
        """Release backing resources."""

    @abstractmethod
    async def create(self, job_id: str, source_reference: str) -> JobRecord:
        """Insert a new record with status=pending."""

    @abstractmethod
    async def update(self, job_id: str, status: str, **fields: Any) -> JobRecord:
        """Write a status and optional fields to a non-terminal record."""

    @abstractmethod
    async def get_by_id(self, job_id: str) -> Optional[JobRecord]:
        """Fetch one record, or None if it does not exist."""

    @abstractmethod
    async def list_all(self) -> List[JobRecord]:
        """All records, most recent first."""

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        """Remove a record. Returns False if nothing was deleted."""


class SupabaseJobStore(JobStore):
    """Job store on a Supabase table."""

    def __init__(self, supabase_client: Any) -> None:
        """
        Initialize the SupabaseJobStore.

        Args:
            supabase_client: Supabase client instance
        """
        self.supabase = supabase_client

    def _table(self) -> Any:
        return self.supabase.table(TABLE_NAME)

    async def create(self, job_id: str, source_reference: str) -> JobRecord:
        """
        Create a new job record.

        Args:
            job_id: Identifier of the new job
            source_reference: Reference being analyzed

        Returns:
            The stored JobRecord

        Raises:
            StoreError: If creation fails
        """
        record = JobRecord(id=job_id, source_reference=source_reference)

        try:
            result = await asyncio.to_thread(
                lambda: self._table().insert(record.model_dump()).execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to create job {job_id}: {e}")

        if not result.data:
            raise StoreError(f"Failed to insert job {job_id} into database")

        logger.info(f"Created job {job_id}")
        return _to_record(result.data[0])

    async def update(self, job_id: str, status: str, **fields: Any) -> JobRecord:
        """
        Update a job's status and fields.

        Terminal records are excluded by the filter, so a write to a completed
        or failed job matches nothing and is reported as an error.

        Args:
            job_id: The job ID to update
            status: New status value
            **fields: Additional columns to set (None values are skipped)

        Returns:
            The updated JobRecord

        Raises:
            StoreError: If the update fails or matches no writable record
        """
        update_data = _build_update(status, fields)

        try:
            result = await asyncio.to_thread(
                lambda: self._table()
                .update(update_data)
                .eq("id", job_id)
                .not_.in_("status", _TERMINAL_VALUES)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to update job {job_id}: {e}")

        if not result.data:
            raise StoreError(f"Job {job_id} not found or already terminal")

        return _to_record(result.data[0])

    async def get_by_id(self, job_id: str) -> Optional[JobRecord]:
        """
        Retrieve a job by ID.

        Args:
            job_id: The job ID to retrieve

        Returns:
            JobRecord if found, None otherwise

        Raises:
            StoreError: If the query fails
        """
        try:
            result = await asyncio.to_thread(
                lambda: self._table().select("*").eq("id", job_id).execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to get job {job_id}: {e}")

        if not result.data:
            return None
        return _to_record(result.data[0])

    async def list_all(self) -> List[JobRecord]:
        try:
            result = await asyncio.to_thread(
                lambda: self._table().select("*").order("created_at", desc=True).execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to list jobs: {e}")

        return [_to_record(row) for row in result.data or []]

    async def delete(self, job_id: str) -> bool:
        try:
            result = await asyncio.to_thread(
                lambda: self._table().delete().eq("id", job_id).execute()
            )
        except Exception as e:
            raise StoreError(f"Failed to delete job {job_id}: {e}")

        return bool(result.data)


class SQLiteJobStore(JobStore):
    """Job store in a local SQLite file, for running without Supabase."""

    CREATE_TABLE = f"""
        CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
            id TEXT PRIMARY KEY,
            source_reference TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            snapshot_path TEXT,
            audio_path TEXT,
            transcription TEXT,
            ai_probabilities TEXT,
            error_message TEXT,
            processing_time_ms INTEGER
        )
    """
    CREATE_INDEXES = (
        f"CREATE INDEX IF NOT EXISTS idx_status ON {TABLE_NAME}(status)",
        f"CREATE INDEX IF NOT EXISTS idx_created_at ON {TABLE_NAME}(created_at)",
    )

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _run(self, sql: str, params: tuple = ()) -> tuple[list[sqlite3.Row], int]:
        with self._lock:
            conn = self._connect()
            cursor = conn.execute(sql, params)
            rows = cursor.fetchall()
            conn.commit()
            return rows, cursor.rowcount

    async def _execute(self, sql: str, params: tuple = ()) -> tuple[list[sqlite3.Row], int]:
        return await asyncio.to_thread(self._run, sql, params)

    async def initialize(self) -> None:
        try:
            await self._execute(self.CREATE_TABLE)
            for statement in self.CREATE_INDEXES:
                await self._execute(statement)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize database {self.db_path}: {e}")
        logger.info(f"SQLite job store ready at {self.db_path}")

    async def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Database connection closed")

    async def create(self, job_id: str, source_reference: str) -> JobRecord:
        record = JobRecord(id=job_id, source_reference=source_reference)
        try:
            await self._execute(
                f"INSERT INTO {TABLE_NAME} (id, source_reference, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.source_reference,
                    record.status,
                    record.created_at,
                    record.updated_at,
                ),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create job {job_id}: {e}")

        logger.info(f"Created job {job_id}")
        return record

    async def update(self, job_id: str, status: str, **fields: Any) -> JobRecord:
        update_data = _build_update(status, fields)
        assignments = ", ".join(f"{column} = ?" for column in update_data)
        terminal_marks = ", ".join("?" for _ in _TERMINAL_VALUES)

        try:
            _, changed = await self._execute(
                f"UPDATE {TABLE_NAME} SET {assignments} "
                f"WHERE id = ? AND status NOT IN ({terminal_marks})",
                (*update_data.values(), job_id, *_TERMINAL_VALUES),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update job {job_id}: {e}")

        if changed == 0:
            raise StoreError(f"Job {job_id} not found or already terminal")

        record = await self.get_by_id(job_id)
        if record is None:
            raise StoreError(f"Job {job_id} vanished during update")
        return record

    async def get_by_id(self, job_id: str) -> Optional[JobRecord]:
        try:
            rows, _ = await self._execute(f"SELECT * FROM {TABLE_NAME} WHERE id = ?", (job_id,))
        except sqlite3.Error as e:
            raise StoreError(f"Failed to get job {job_id}: {e}")

        if not rows:
            return None
        return _to_record(dict(rows[0]))

    async def list_all(self) -> List[JobRecord]:
        try:
            rows, _ = await self._execute(
                f"SELECT * FROM {TABLE_NAME} ORDER BY created_at DESC, rowid DESC"
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list jobs: {e}")

        return [_to_record(dict(row)) for row in rows]

    async def delete(self, job_id: str) -> bool:
        try:
            _, changed = await self._execute(f"DELETE FROM {TABLE_NAME} WHERE id = ?", (job_id,))
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete job {job_id}: {e}")

        return changed > 0


# Factory function for creating the job store with settings
def create_job_store(settings: Settings) -> JobStore:
    """
    Create the configured JobStore.

    Supabase is used when both SUPABASE_URL and SUPABASE_KEY are set;
    otherwise records live in the SQLite file at DB_PATH.

    Args:
        settings: Application settings

    Returns:
        JobStore instance (call ``initialize()`` before use)
    """
    if settings.use_supabase:
        from supabase import create_client

        client = create_client(settings.supabase_url, settings.supabase_key)
        logger.info("Using Supabase job store")
        return SupabaseJobStore(client)

    return SQLiteJobStore(settings.db_path)
