"""
Health check endpoint.
"""
from pydantic import BaseModel
from fastapi import APIRouter, Depends

from briefcast.config import APP_VERSION
from briefcast.services.dispatcher import JobDispatcher, get_job_dispatcher


router = APIRouter(tags=['health'])


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: str
    dispatcher_running: bool
    pending_messages: int
    version: str


@router.get('/health', response_model=HealthResponse)
async def health_check(dispatcher: JobDispatcher = Depends(get_job_dispatcher)) -> HealthResponse:
    """
    Check server health status.

    Returns dispatcher state and server version.
    Fast response - no database queries.
    """
    return HealthResponse(
        status='ok',
        dispatcher_running=dispatcher.is_running,
        pending_messages=dispatcher.pending_count,
        version=APP_VERSION,
    )
