"""
Scheduled trigger endpoint for daily brief generation.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from briefcast import config
from briefcast.services.dispatcher import JobDispatcher, get_job_dispatcher
from briefcast.services.scheduler import SchedulerRun, eligible_users, generate_daily_briefs


router = APIRouter(prefix='/cron', tags=['cron'])


class DailyBriefsRequest(BaseModel):
    """Optional explicit user list; defaults to recently active users."""
    user_ids: Optional[List[str]] = None


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    """Reject calls without the shared cron bearer token."""
    if authorization != f'Bearer {config.CRON_SECRET}':
        raise HTTPException(status_code=401, detail='Unauthorized')


@router.post('/daily-briefs', response_model=SchedulerRun, dependencies=[Depends(verify_cron_secret)])
async def trigger_daily_briefs(
    request: Optional[DailyBriefsRequest] = None,
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
) -> SchedulerRun:
    """
    Fan out one daily brief job per eligible user.

    Called by an external scheduler (e.g. cron at 3am).
    """
    user_ids = request.user_ids if request else None
    if user_ids is None:
        user_ids = await eligible_users(dispatcher.registry)

    return await generate_daily_briefs(user_ids, dispatcher.enqueue_job)
