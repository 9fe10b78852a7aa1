"""Submission, status and download lookups used by the PDF routes."""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from spiralpdf.config import settings
from spiralpdf.models import JobRecord, JobStatus, JobStatusView
from spiralpdf.services.database import DatabaseService, JobNotFoundError, get_db_service

logger = logging.getLogger(__name__)


class ContentValidationError(ValueError):
    """Submitted content is missing or blank."""


class JobNotReadyError(RuntimeError):
    def __init__(self, job_id: str, status: JobStatus):
        super().__init__(f"PDF is not ready for download. Current status: {status.value}")
        self.job_id = job_id
        self.status = status


class ArtifactMissingError(RuntimeError):
    """The job completed but its stored file is gone."""


def submit_job(content, store: Optional[DatabaseService] = None) -> JobRecord:
    if not content or not isinstance(content, str) or not content.strip():
        raise ContentValidationError("Content is required and must be a non-empty string")

    store = store or get_db_service()
    now = datetime.now()
    job = JobRecord(
        job_id=str(uuid.uuid4()),
        status=JobStatus.PENDING,
        content=content.strip(),
        created_at=now,
        updated_at=now,
    )
    return store.insert(job)


def get_job_status(job_id: str, store: Optional[DatabaseService] = None) -> JobStatusView:
    store = store or get_db_service()
    job = store.get_job(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return JobStatusView.from_record(job)


def resolve_artifact(
    job_id: str,
    store: Optional[DatabaseService] = None,
    artifact_dir: Optional[str] = None,
) -> Path:
    """Return the path of a completed job's PDF.

    Raises ``JobNotFoundError``, ``JobNotReadyError`` or
    ``ArtifactMissingError``.
    """
    store = store or get_db_service()
    job = store.get_job(job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    status = JobStatus(job.status)
    if status != JobStatus.COMPLETED:
        raise JobNotReadyError(job_id, status)

    path = Path(artifact_dir or settings.artifact_dir) / job.artifact_ref
    if not path.is_file():
        logger.warning("Artifact %s for job %s is missing", job.artifact_ref, job_id)
        raise ArtifactMissingError("PDF file not found on server")
    return path
