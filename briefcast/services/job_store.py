"""
Per-user job store.

Each user owns one state document (pending queue + bounded history) persisted
as a JSON row in ``user_job_states``. All reads and writes for a user go
through that user's JobStore, which serializes them with an asyncio.Lock.
Every mutation is committed before the call returns.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from briefcast.config import AVERAGE_JOB_SECONDS, HISTORY_LIMIT, MAX_QUEUE_LENGTH
from briefcast.database import async_session_factory
from briefcast.exceptions import JobExistsError, JobNotFoundError, QueueFullError
from briefcast.models.job import JobIndex, JobStatus, UserJobState
from briefcast.schemas.job import (
    EnqueueResult,
    JobCreate,
    JobRecord,
    JobResult,
    JobStats,
    JobStatusResponse,
)

logger = logging.getLogger(__name__)

CANCELLED_ERROR = 'cancelled by user'

SessionFactory = Callable[[], AsyncSession]


class StoreState(BaseModel):
    """Serialized shape of a user's state document."""
    queue: List[JobRecord] = Field(default_factory=list)
    history: List[JobRecord] = Field(default_factory=list)


def merge_update(
    record: JobRecord,
    status: Optional[JobStatus] = None,
    progress: Optional[int] = None,
    message: Optional[str] = None,
    result: Optional[JobResult] = None,
    error: Optional[str] = None,
    attempts: Optional[int] = None,
    retry_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> JobRecord:
    """
    Field-wise merge of an update into a record.

    Rules:
        - entering processing resets progress (to the given value or 0)
        - while processing, progress never decreases
        - result survives only in completed, error only in failed
        - retry_at survives only in failed, and only when given
        - completed_at is stamped on entry to a terminal status and kept if
          the record was already in that status
    """
    new_status = JobStatus(status) if status is not None else record.status
    fields = {'status': new_status}

    if message is not None:
        fields['message'] = message
    if attempts is not None:
        fields['attempts'] = attempts

    if new_status == JobStatus.processing:
        if record.status != JobStatus.processing:
            fields['progress'] = progress or 0
        elif progress is not None:
            fields['progress'] = max(record.progress, progress)
    elif progress is not None:
        fields['progress'] = progress

    if new_status.is_terminal:
        if record.status == new_status and record.completed_at is not None:
            fields['completed_at'] = record.completed_at
        else:
            fields['completed_at'] = now or datetime.utcnow()
    else:
        fields['completed_at'] = None

    if new_status == JobStatus.completed:
        fields['result'] = result if result is not None else record.result
        fields['error'] = None
    elif new_status == JobStatus.failed:
        fields['error'] = error or record.error or 'Unknown error'
        fields['result'] = None
    else:
        fields['result'] = None
        fields['error'] = None

    fields['retry_at'] = retry_at if new_status == JobStatus.failed else None

    return record.model_copy(update=fields)


class JobStore:
    """
    Durable job state for a single user.

    Holds the FIFO pending queue (queued and processing jobs) and the
    most-recent-first history of terminal jobs.
    """

    def __init__(self, user_id: str, session_factory: SessionFactory = async_session_factory):
        self.user_id = user_id
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    async def _load(self, session: AsyncSession) -> Tuple[UserJobState, StoreState]:
        row = await session.get(UserJobState, self.user_id)
        if row is None:
            row = UserJobState(user_id=self.user_id, data={})
            session.add(row)
        return row, StoreState.model_validate(row.data or {})

    async def _save(self, session: AsyncSession, row: UserJobState, state: StoreState):
        row.data = state.model_dump(mode='json')
        row.updated_at = datetime.utcnow()
        await session.commit()

    @staticmethod
    def _locate(state: StoreState, job_id: str) -> Tuple[Optional[JobRecord], Optional[List[JobRecord]], int]:
        for bucket in (state.queue, state.history):
            for index, record in enumerate(bucket):
                if record.id == job_id:
                    return record, bucket, index
        return None, None, -1

    @staticmethod
    def _place(state: StoreState, job_id: str, updated: JobRecord):
        """
        Put an updated record where its status says it belongs.

        Pending records (including failures awaiting redelivery) keep their
        queue position; finished records move to the front of history.
        """
        queue_index = next((i for i, r in enumerate(state.queue) if r.id == job_id), None)
        state.queue = [r for r in state.queue if r.id != job_id]
        state.history = [r for r in state.history if r.id != job_id]

        if updated.is_terminal and not updated.awaiting_retry:
            state.history.insert(0, updated)
            del state.history[HISTORY_LIMIT:]
        elif queue_index is not None:
            state.queue.insert(queue_index, updated)
        else:
            state.queue.insert(0, updated)

    async def enqueue(self, request: JobCreate) -> EnqueueResult:
        """Create a queued job and append it to the pending queue."""
        job_id = request.job_id or str(uuid.uuid4())

        async with self._lock:
            async with self._session_factory() as session:
                if await session.get(JobIndex, job_id) is not None:
                    raise JobExistsError(job_id)

                row, state = await self._load(session)
                if len(state.queue) >= MAX_QUEUE_LENGTH:
                    raise QueueFullError(self.user_id, MAX_QUEUE_LENGTH)

                record = JobRecord(
                    id=job_id,
                    type=request.type,
                    user_id=self.user_id,
                    payload=request.payload,
                    created_at=datetime.utcnow(),
                    status=JobStatus.queued,
                    progress=0,
                    message='Job queued for processing...',
                )
                state.queue.append(record)
                session.add(JobIndex(job_id=job_id, user_id=self.user_id))
                try:
                    await self._save(session, row, state)
                except IntegrityError:
                    # Another user's store claimed the id since the check above
                    await session.rollback()
                    raise JobExistsError(job_id)

        position = len(state.queue)
        logger.info('Queued job %s for user %s at position %d', job_id, self.user_id, position)

        return EnqueueResult(
            job_id=job_id,
            queue_position=position,
            estimated_seconds=position * AVERAGE_JOB_SECONDS,
        )

    async def get_status(self, job_id: str) -> Optional[JobStatusResponse]:
        """Look up a job; None if this store does not know it."""
        async with self._lock:
            async with self._session_factory() as session:
                _, state = await self._load(session)

        record, bucket, index = self._locate(state, job_id)
        if record is None:
            return None

        position = index + 1 if bucket is state.queue else None
        return JobStatusResponse(**record.model_dump(), queue_position=position)

    async def update_status(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        progress: Optional[int] = None,
        message: Optional[str] = None,
        result: Optional[JobResult] = None,
        error: Optional[str] = None,
        attempts: Optional[int] = None,
        retry_at: Optional[datetime] = None,
    ) -> JobRecord:
        """
        Merge fields into an existing job and persist.

        Safe to repeat: an update that leaves the record unchanged is not
        written again, so a duplicated terminal update never adds a second
        history entry.

        A failure with ``retry_at`` stays in the pending queue until it is
        redelivered, so history eviction and clearing never drop it.

        Raises:
            JobNotFoundError: job id unknown to this store
        """
        async with self._lock:
            async with self._session_factory() as session:
                row, state = await self._load(session)
                record, _, _ = self._locate(state, job_id)
                if record is None:
                    raise JobNotFoundError(job_id)

                updated = merge_update(
                    record,
                    status=status,
                    progress=progress,
                    message=message,
                    result=result,
                    error=error,
                    attempts=attempts,
                    retry_at=retry_at,
                )
                if updated == record:
                    return record

                self._place(state, job_id, updated)
                await self._save(session, row, state)

        logger.debug('Job %s -> %s (%d%%) %s', job_id, updated.status.value, updated.progress, updated.message)
        return updated

    async def cancel(self, job_id: str) -> bool:
        """Cancel a job that has not started processing."""
        async with self._lock:
            async with self._session_factory() as session:
                row, state = await self._load(session)
                record, bucket, _ = self._locate(state, job_id)

                if record is None or bucket is not state.queue or record.status != JobStatus.queued:
                    return False

                updated = merge_update(
                    record,
                    status=JobStatus.failed,
                    message='Cancelled',
                    error=CANCELLED_ERROR,
                )
                self._place(state, job_id, updated)
                await self._save(session, row, state)

        logger.info('Cancelled job %s for user %s', job_id, self.user_id)
        return True

    async def list_history(self) -> List[JobRecord]:
        async with self._lock:
            async with self._session_factory() as session:
                _, state = await self._load(session)
        return state.history[:HISTORY_LIMIT]

    async def get_queue(self) -> List[JobRecord]:
        async with self._lock:
            async with self._session_factory() as session:
                _, state = await self._load(session)
        return state.queue

    async def get_latest(self) -> Optional[JobRecord]:
        """Most recent completed job, if any."""
        for record in await self.list_history():
            if record.status == JobStatus.completed:
                return record
        return None

    async def clear_history(self):
        async with self._lock:
            async with self._session_factory() as session:
                row, state = await self._load(session)
                state.history = []
                await self._save(session, row, state)
        logger.info('Cleared history for user %s', self.user_id)

    async def stats(self) -> JobStats:
        """
        Queue length and history success rate.

        success_rate is the percentage of completed jobs among terminal jobs
        in history, or 100.0 when history is empty.
        """
        async with self._lock:
            async with self._session_factory() as session:
                _, state = await self._load(session)

        total = len(state.history)
        successful = sum(1 for r in state.history if r.status == JobStatus.completed)
        success_rate = (successful / total) * 100 if total else 100.0

        return JobStats(
            queue_length=len(state.queue),
            total_generated=total,
            success_rate=round(success_rate, 1),
        )


class JobStoreRegistry:
    """
    Lazily creates one JobStore per user and answers cross-user lookups.
    """

    def __init__(self, session_factory: SessionFactory = async_session_factory):
        self._session_factory = session_factory
        self._stores: Dict[str, JobStore] = {}

    def get(self, user_id: str) -> JobStore:
        store = self._stores.get(user_id)
        if store is None:
            store = JobStore(user_id, self._session_factory)
            self._stores[user_id] = store
        return store

    async def find_owner(self, job_id: str) -> Optional[str]:
        """Resolve a job id to the user whose store holds it."""
        async with self._session_factory() as session:
            entry = await session.get(JobIndex, job_id)
            return entry.user_id if entry else None

    async def get_status(self, job_id: str) -> Optional[JobStatusResponse]:
        user_id = await self.find_owner(job_id)
        if user_id is None:
            return None
        return await self.get(user_id).get_status(job_id)

    async def list_states(self) -> Dict[str, StoreState]:
        """Snapshot of every user's state document."""
        async with self._session_factory() as session:
            rows = (await session.execute(select(UserJobState))).scalars().all()
            return {row.user_id: StoreState.model_validate(row.data or {}) for row in rows}

    async def active_user_ids(self, since: datetime) -> List[str]:
        """Users with at least one job finished at or after ``since``."""
        states = await self.list_states()
        return sorted(
            user_id
            for user_id, state in states.items()
            if any(r.completed_at and r.completed_at >= since for r in state.history)
        )


# Singleton instance
_registry: Optional[JobStoreRegistry] = None


def get_job_store_registry() -> JobStoreRegistry:
    """Get the job store registry singleton instance."""
    global _registry
    if _registry is None:
        _registry = JobStoreRegistry()
    return _registry


def reset_job_store_registry():
    """Reset the job store registry singleton (for testing)."""
    global _registry
    _registry = None
