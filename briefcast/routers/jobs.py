"""
Job endpoints: submission, status polling and cancellation.
"""
from fastapi import APIRouter, Depends, HTTPException

from briefcast.exceptions import JobExistsError, QueueFullError
from briefcast.schemas.job import CancelResponse, EnqueueResult, JobCreate, JobStatusResponse
from briefcast.services.dispatcher import JobDispatcher, get_job_dispatcher
from briefcast.services.job_store import JobStoreRegistry, get_job_store_registry


router = APIRouter(prefix='/jobs', tags=['jobs'])


@router.post('', response_model=EnqueueResult, status_code=201)
async def create_job(
    job_data: JobCreate,
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
) -> EnqueueResult:
    """
    Submit a new brief generation job.

    Returns immediately with the job id, its position in the user's queue
    and a rough completion estimate. The job is processed in the background.
    """
    try:
        return await dispatcher.enqueue_job(job_data)
    except JobExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except QueueFullError as e:
        raise HTTPException(status_code=429, detail=str(e))


@router.get('/{job_id}', response_model=JobStatusResponse)
async def get_job(
    job_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> JobStatusResponse:
    """
    Poll a job's status.

    Returns status, progress and message; result or error once terminal.
    """
    job = await registry.get_status(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f'Job not found: {job_id}')
    return job


@router.delete('/{job_id}', response_model=CancelResponse)
async def cancel_job(
    job_id: str,
    registry: JobStoreRegistry = Depends(get_job_store_registry),
) -> CancelResponse:
    """
    Cancel a job that has not started processing.

    cancelled is false once the job is processing or finished.
    """
    user_id = await registry.find_owner(job_id)
    if user_id is None:
        raise HTTPException(status_code=404, detail=f'Job not found: {job_id}')

    cancelled = await registry.get(user_id).cancel(job_id)
    return CancelResponse(job_id=job_id, cancelled=cancelled)
