from pydantic import BaseModel, ConfigDict
from typing import Optional, Tuple
from enum import Enum
from datetime import datetime


class JobStatus(str, Enum):
    """Job status enumeration"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class InvalidTransitionError(ValueError):
    """Raised when a status change is not allowed for a job record."""


class JobRecord(BaseModel):
    """Job record schema"""
    model_config = ConfigDict(use_enum_values=True)

    job_id: str
    status: JobStatus
    content: str
    artifact_ref: Optional[str] = None
    error_detail: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class JobCreateRequest(BaseModel):
    """Request model for creating a job."""
    content: Optional[str] = None


class JobStatusView(BaseModel):
    """Read-only projection of a job record returned to pollers."""
    model_config = ConfigDict(use_enum_values=True)

    job_id: str
    status: JobStatus
    ready: bool
    artifact_ref: Optional[str] = None
    error_detail: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, job: JobRecord) -> "JobStatusView":
        status = JobStatus(job.status)
        return cls(
            job_id=job.job_id,
            status=status,
            ready=status == JobStatus.COMPLETED,
            artifact_ref=job.artifact_ref if status == JobStatus.COMPLETED else None,
            error_detail=job.error_detail if status == JobStatus.FAILED else None,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class JobStateMachine:
    """Validates and applies job status transitions.

    ``processing -> pending`` is only reachable through crash recovery and is
    therefore not part of ``VALID_TRANSITIONS``.
    """

    VALID_TRANSITIONS = {
        JobStatus.PENDING: {JobStatus.PROCESSING},
        JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
        JobStatus.COMPLETED: set(),
        JobStatus.FAILED: set(),
    }
    RECOVERY_TRANSITIONS = {
        JobStatus.PROCESSING: {JobStatus.PENDING},
    }

    @staticmethod
    def _check_payload(new_status: JobStatus, artifact_ref: Optional[str], error_detail: Optional[str]):
        if new_status == JobStatus.COMPLETED:
            if not artifact_ref:
                raise InvalidTransitionError("A completed job requires an artifact reference")
            if error_detail is not None:
                raise InvalidTransitionError("A completed job cannot carry an error detail")
        elif new_status == JobStatus.FAILED:
            if not error_detail:
                raise InvalidTransitionError("A failed job requires an error detail")
            if artifact_ref is not None:
                raise InvalidTransitionError("A failed job cannot carry an artifact reference")
        elif artifact_ref is not None or error_detail is not None:
            raise InvalidTransitionError(
                f"Artifact reference and error detail are only set on terminal states, not {new_status.value}"
            )

    @staticmethod
    def transition(
        job: JobRecord,
        new_status: JobStatus,
        artifact_ref: Optional[str] = None,
        error_detail: Optional[str] = None,
        recovery: bool = False,
        now: Optional[datetime] = None,
    ) -> Tuple[JobRecord, bool]:
        """Apply ``new_status`` to ``job`` in place.

        Returns the job and whether anything changed. Re-applying the current
        status with the same payload is a no-op, so repeated deliveries of the
        same outcome are harmless.
        """
        current = JobStatus(job.status)
        new_status = JobStatus(new_status)
        JobStateMachine._check_payload(new_status, artifact_ref, error_detail)

        if current == new_status:
            if job.artifact_ref == artifact_ref and job.error_detail == error_detail:
                return job, False
            raise InvalidTransitionError(
                f"Job {job.job_id} is already {current.value} with a different outcome"
            )

        allowed = set(JobStateMachine.VALID_TRANSITIONS.get(current, set()))
        if recovery:
            allowed |= JobStateMachine.RECOVERY_TRANSITIONS.get(current, set())
        if new_status not in allowed:
            raise InvalidTransitionError(f"Invalid transition: {current.value} -> {new_status.value}")

        job.status = new_status
        job.artifact_ref = artifact_ref
        job.error_detail = error_detail
        job.updated_at = now or datetime.now()
        return job, True
