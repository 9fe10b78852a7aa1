from fastapi import APIRouter
import logging

from spiralpdf.models import JobStatus, TERMINAL_STATUSES
from spiralpdf.services.database import get_db_service

logger = logging.getLogger(__name__)
router = APIRouter()

RECENT_JOBS_LIMIT = 50
PREVIEW_LENGTH = 100


def _preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


@router.get("/debug/jobs")
async def debug_jobs():
    """
    Job table overview for monitoring
    Returns per-status counts and the most recent jobs
    """
    store = get_db_service()
    jobs = store.list_jobs(limit=RECENT_JOBS_LIMIT)

    res = []
    for job in jobs:
        processing_time = None
        if JobStatus(job.status) in TERMINAL_STATUSES:
            processing_time = f"{round((job.updated_at - job.created_at).total_seconds())}s"
        res.append({
            "job_id": job.job_id,
            "status": JobStatus(job.status).value,
            "content_preview": _preview(job.content),
            "artifact_ref": job.artifact_ref,
            "error_detail": job.error_detail,
            "created_at": job.created_at.isoformat(),
            "updated_at": job.updated_at.isoformat(),
            "processing_time": processing_time,
        })

    return {
        "summary": store.count_by_status(),
        "total_jobs": len(res),
        "jobs": res,
    }
