"""
Database service for spiral PDF job persistence.
Uses SQLite for simplicity and reliability.
"""

import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, Optional, List
from pathlib import Path

from spiralpdf.models.job import JobRecord, JobStatus, JobStateMachine

logger = logging.getLogger(__name__)

_COLUMNS = "job_id, status, content, artifact_ref, error_detail, created_at, updated_at"


class JobNotFoundError(LookupError):
    """Raised when a job id is not present in the store."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


def _timestamp(value: datetime) -> str:
    # Fixed width so lexical order in SQLite matches time order.
    return value.isoformat(timespec="microseconds")


class DatabaseService:
    """SQLite-backed job store used by the queue processor and the routes."""

    def __init__(self, db_path: str = "spiralpdf.db"):
        self.db_path = Path(db_path)
        self._init_database()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize the database with required tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    job_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    content TEXT NOT NULL,
                    artifact_ref TEXT,
                    error_detail TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            # FIFO lookups of pending jobs
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_status_created_at ON jobs(status, created_at)
            """)
        logger.info(f"Database initialized at {self.db_path}")

    def insert(self, job: JobRecord) -> JobRecord:
        """Create a new job in the database."""
        with self._transaction() as conn:
            conn.execute(f"""
                INSERT INTO jobs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                job.job_id,
                JobStatus(job.status).value,
                job.content,
                job.artifact_ref,
                job.error_detail,
                _timestamp(job.created_at),
                _timestamp(job.updated_at),
            ))
        logger.info(f"Created job {job.job_id} in database")
        return job

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        """Get a job by ID."""
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE job_id = ?", (job_id,)
            ).fetchone()
        return self._row_to_job_record(row) if row else None

    def find_oldest_pending(self) -> Optional[JobRecord]:
        """Return the pending job with the earliest creation time, if any."""
        with self._transaction() as conn:
            row = conn.execute(f"""
                SELECT {_COLUMNS} FROM jobs WHERE status = ?
                ORDER BY created_at ASC, rowid ASC
                LIMIT 1
            """, (JobStatus.PENDING.value,)).fetchone()
        return self._row_to_job_record(row) if row else None

    def find_all_processing(self) -> List[JobRecord]:
        with self._transaction() as conn:
            rows = conn.execute(f"""
                SELECT {_COLUMNS} FROM jobs WHERE status = ?
                ORDER BY created_at ASC, rowid ASC
            """, (JobStatus.PROCESSING.value,)).fetchall()
        return [self._row_to_job_record(row) for row in rows]

    def update_status(
        self,
        job_id: str,
        new_status: JobStatus,
        artifact_ref: Optional[str] = None,
        error_detail: Optional[str] = None,
    ) -> JobRecord:
        """Move a job to ``new_status``.

        The read, the transition check and the write share one transaction.
        Raises ``JobNotFoundError`` for unknown ids and
        ``InvalidTransitionError`` for changes the state machine rejects.
        """
        with self._transaction() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE job_id = ?", (job_id,)
            ).fetchone()
            if not row:
                raise JobNotFoundError(job_id)

            job, changed = JobStateMachine.transition(
                self._row_to_job_record(row), new_status, artifact_ref, error_detail
            )
            if changed:
                conn.execute("""
                    UPDATE jobs SET status = ?, artifact_ref = ?, error_detail = ?, updated_at = ?
                    WHERE job_id = ?
                """, (
                    JobStatus(job.status).value,
                    job.artifact_ref,
                    job.error_detail,
                    _timestamp(job.updated_at),
                    job_id,
                ))
                logger.info(f"Job {job_id} is now {JobStatus(job.status).value}")
        return job

    def reset_all_processing_to_pending(self) -> int:
        """Return every processing job to pending in one transaction.

        Each record goes through the recovery transition of the state machine.
        """
        now = datetime.now()
        with self._transaction() as conn:
            conn.execute("BEGIN IMMEDIATE")
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM jobs WHERE status = ?", (JobStatus.PROCESSING.value,)
            ).fetchall()
            updates = []
            for row in rows:
                job, _ = JobStateMachine.transition(
                    self._row_to_job_record(row), JobStatus.PENDING, recovery=True, now=now
                )
                updates.append((JobStatus(job.status).value, _timestamp(job.updated_at), job.job_id))
            conn.executemany("""
                UPDATE jobs SET status = ?, artifact_ref = NULL, error_detail = NULL, updated_at = ?
                WHERE job_id = ?
            """, updates)
            reset = len(updates)
        if reset:
            logger.info(f"Reset {reset} processing jobs to pending")
        return reset

    def list_jobs(self, limit: Optional[int] = None) -> List[JobRecord]:
        """List jobs, newest first."""
        query = f"SELECT {_COLUMNS} FROM jobs ORDER BY created_at DESC, rowid DESC"
        params: tuple = ()
        if limit:
            query += " LIMIT ?"
            params = (limit,)
        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_job_record(row) for row in rows]

    def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in JobStatus}
        with self._transaction() as conn:
            for status, count in conn.execute("SELECT status, COUNT(*) FROM jobs GROUP BY status"):
                counts[status] = count
        return counts

    def _row_to_job_record(self, row) -> JobRecord:
        """Convert database row to JobRecord object."""
        return JobRecord(
            job_id=row[0],
            status=JobStatus(row[1]),
            content=row[2],
            artifact_ref=row[3],
            error_detail=row[4],
            created_at=datetime.fromisoformat(row[5]),
            updated_at=datetime.fromisoformat(row[6]),
        )


# Global database service instance
db_service: Optional[DatabaseService] = None


def get_db_service() -> DatabaseService:
    """Get the global database service instance."""
    global db_service
    if db_service is None:
        db_service = DatabaseService()
    return db_service


def init_database(db_path: str = "spiralpdf.db") -> DatabaseService:
    """Initialize the database service."""
    global db_service
    db_service = DatabaseService(db_path)
    logger.info("Database service initialized")
    return db_service


def cleanup_database():
    """Cleanup database resources."""
    global db_service
    db_service = None
