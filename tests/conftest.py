"""Shared fixtures: a throwaway job store and artifact directory per test."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest

from spiralpdf.config import settings
from spiralpdf.models import JobRecord, JobStatus
from spiralpdf.services import database
from spiralpdf.services.pdf_renderer import PDFRenderService


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite job store installed as the global database service."""
    service = database.init_database(str(tmp_path / "jobs.db"))
    yield service
    database.cleanup_database()


@pytest.fixture
def artifact_dir(tmp_path, monkeypatch):
    path = tmp_path / "pdfs"
    monkeypatch.setattr(settings, "artifact_dir", str(path))
    return path


@pytest.fixture
def thread_renderer(artifact_dir):
    """Real renderer running on a worker thread instead of a process."""
    executor = ThreadPoolExecutor(max_workers=1)
    renderer = PDFRenderService(artifact_dir=str(artifact_dir), executor=executor)
    yield renderer
    executor.shutdown(wait=True)


@pytest.fixture
def make_job(store):
    """Insert a job whose created_at is offset by ``minutes`` from a fixed base."""
    base = datetime(2024, 1, 1, 12, 0, 0)

    def _make(job_id, content="alpha, beta, gamma", minutes=0, status=JobStatus.PENDING):
        created = base + timedelta(minutes=minutes)
        job = JobRecord(
            job_id=job_id,
            status=status,
            content=content,
            created_at=created,
            updated_at=created,
        )
        return store.insert(job)

    return _make
