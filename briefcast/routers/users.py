"""
Per-user job store views: history, queue, stats and latest brief.
"""
from fastapi import APIRouter, Depends, HTTPException

from briefcast.schemas.job import JobListResponse, JobRecord, JobStats
from briefcast.services.job_store import JobStoreRegistry, get_job_store_registry


router = APIRouter(prefix='/users/{user_id}', tags=['users'])


@router.get('/history', response_model=JobListResponse)
async def get_history(
    user_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> JobListResponse:
    """Finished jobs, most recent first (at most 10)."""
    jobs = await registry.get(user_id).list_history()
    return JobListResponse(user_id=user_id, jobs=jobs)


@router.delete('/history', status_code=204)
async def clear_history(
    user_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
):
    await registry.get(user_id).clear_history()


@router.get('/queue', response_model=JobListResponse)
async def get_queue(
    user_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> JobListResponse:
    """Pending jobs in processing order."""
    jobs = await registry.get(user_id).get_queue()
    return JobListResponse(user_id=user_id, jobs=jobs)


@router.get('/stats', response_model=JobStats)
async def get_stats(
    user_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> JobStats:
    return await registry.get(user_id).stats()


@router.get('/latest', response_model=JobRecord)
async def get_latest(
    user_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> JobRecord:
    """Most recent completed brief."""
    job = await registry.get(user_id).get_latest()
    if not job:
        raise HTTPException(status_code=404, detail=f'No completed briefs for user: {user_id}')
    return job
