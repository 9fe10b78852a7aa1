from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
import logging

from spiralpdf.models import JobCreateRequest, JobStatus
from spiralpdf.services.database import JobNotFoundError
from spiralpdf.services.jobs import (
    ArtifactMissingError,
    ContentValidationError,
    JobNotReadyError,
    get_job_status,
    resolve_artifact,
    submit_job,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/pdf")


def _clean_job_id(job_id: str) -> str:
    if not job_id or not job_id.strip():
        raise HTTPException(status_code=400, detail="Job ID is required and must be a non-empty string")
    return job_id.strip()


@router.post("/generate", status_code=201)
async def generate_pdf(request: JobCreateRequest):
    """
    Queue a spiral PDF rendering job
    Returns the job_id to poll
    """
    try:
        job = submit_job(request.content)
    except ContentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Created job: {job.job_id}")
    return {
        "job_id": job.job_id,
        "status": JobStatus.PENDING.value,
    }


@router.get("/status/{job_id}")
async def job_status(job_id: str):
    """
    Get job status and metadata
    """
    job_id = _clean_job_id(job_id)
    try:
        view = get_job_status(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")

    logger.info(f"Retrieved job: {job_id}")
    return view.model_dump(mode="json", exclude_none=True)


@router.get("/download/{job_id}")
async def download_pdf(job_id: str):
    """
    Download the rendered PDF of a completed job
    """
    job_id = _clean_job_id(job_id)
    try:
        path = resolve_artifact(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobNotReadyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ArtifactMissingError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Serving {path.name} for job {job_id}")
    return FileResponse(path, media_type="application/pdf", filename=path.name)
