"""
Manual job triggers. Runs the same Job.run() the scheduler uses.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from app.core.auth_dependency import require_permission
from app.db.models.user import User
from app.jobs.scheduler import get_jobs
from app.schemas.jobs import JobResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("")
def list_jobs(user: User = Depends(require_permission("job_run"))):
    return {"jobs": sorted(get_jobs())}


@router.post("/{name}/run", response_model=JobResult)
async def run_job(name: str, user: User = Depends(require_permission("job_run"))):
    job = get_jobs().get(name)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown job '{name}'")

    logger.info(f"Manual run of job={name} by user_id={user.id}")
    return await run_in_threadpool(job.run)
