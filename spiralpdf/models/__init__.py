from spiralpdf.models.job import (
    TERMINAL_STATUSES,
    InvalidTransitionError,
    JobCreateRequest,
    JobRecord,
    JobStateMachine,
    JobStatus,
    JobStatusView,
)

__all__ = [
    "TERMINAL_STATUSES",
    "InvalidTransitionError",
    "JobCreateRequest",
    "JobRecord",
    "JobStateMachine",
    "JobStatus",
    "JobStatusView",
]
