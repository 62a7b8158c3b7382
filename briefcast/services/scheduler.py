"""
Scheduled fan-out: submit one daily brief per eligible user.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Iterable, List, Optional

from pydantic import BaseModel, Field

from briefcast.config import ACTIVE_USER_WINDOW_DAYS, SCHEDULER_BATCH_SIZE
from briefcast.models.job import JobType
from briefcast.schemas.job import EnqueueResult, JobCreate
from briefcast.services.job_store import JobStoreRegistry

logger = logging.getLogger(__name__)

Submit = Callable[[JobCreate], Awaitable[EnqueueResult]]


class SchedulerError(BaseModel):
    user_id: str
    error: str


class SchedulerRun(BaseModel):
    """Summary of one fan-out run."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    job_ids: List[str] = Field(default_factory=list)
    errors: List[SchedulerError] = Field(default_factory=list)


async def eligible_users(registry: JobStoreRegistry, now: Optional[datetime] = None) -> List[str]:
    """Users who finished a job within the activity window."""
    since = (now or datetime.utcnow()) - timedelta(days=ACTIVE_USER_WINDOW_DAYS)
    return await registry.active_user_ids(since)


async def generate_daily_briefs(
    user_ids: Iterable[str],
    submit: Submit,
    batch_size: int = SCHEDULER_BATCH_SIZE,
) -> SchedulerRun:
    """
    Submit a daily job for each user, ``batch_size`` users at a time.

    A failed submission is recorded and does not stop the run.
    """
    users = list(dict.fromkeys(user_ids))
    run = SchedulerRun(total=len(users))

    for start in range(0, len(users), batch_size):
        batch = users[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(submit(JobCreate(user_id=user_id, type=JobType.daily)) for user_id in batch),
            return_exceptions=True,
        )
        for user_id, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                logger.error('Failed to submit daily brief for user %s: %s', user_id, outcome)
                run.failed += 1
                run.errors.append(SchedulerError(user_id=user_id, error=str(outcome)))
            else:
                run.successful += 1
                run.job_ids.append(outcome.job_id)

    logger.info('Daily brief run: %d submitted, %d failed', run.successful, run.failed)
    return run
