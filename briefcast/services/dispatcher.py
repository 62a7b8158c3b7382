"""
Background job dispatcher for brief generation.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Set

from briefcast.config import MAX_RETRIES, RETRY_BASE_SECONDS
from briefcast.models.job import JobStatus
from briefcast.schemas.job import EnqueueResult, JobCreate, JobRecord, JobResult
from briefcast.schemas.pipeline import UploadMetadata
from briefcast.services import pipeline
from briefcast.services.factory import build_pipeline_services
from briefcast.services.job_store import JobStore, JobStoreRegistry, get_job_store_registry
from briefcast.services.notifier import failed_notification, ready_notification, send_notification
from briefcast.services.pipeline import Checkpoint, PipelineServices

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobMessage:
    """
    A queued request to run one job.

    Attributes:
        job_id: Job to run
        user_id: Owner of the job's store
        attempts: Deliveries of this job that have already failed (0 on the
            first delivery). With MAX_RETRIES=3 a job gets 4 deliveries: the
            first plus retries after 60s, 120s and 240s.
    """
    job_id: str
    user_id: str
    attempts: int = 0

    def next_attempt(self) -> 'JobMessage':
        return replace(self, attempts=self.attempts + 1)


@dataclass(frozen=True)
class Delivery:
    """Outcome of handling a message: acknowledge it, or redeliver after a delay."""
    ack: bool
    retry_delay: Optional[int] = None


ACK = Delivery(ack=True)


def retry_delay(attempts: int, base_seconds: int = RETRY_BASE_SECONDS) -> int:
    """
    Backoff before redelivery: 1, 2, 4 minutes for attempts 0, 1, 2.

    attempts counts failed deliveries from 0, so the failure of delivery
    MAX_RETRIES + 1 is the final one.
    """
    return (2 ** attempts) * base_seconds


class JobDispatcher:
    """
    Background job dispatcher using asyncio.Queue.

    Handles one message at a time. Each job runs its pipeline stages in
    order, writing a progress checkpoint to the user's job store before each
    stage. Failed deliveries are redelivered with exponential backoff until
    the retry ceiling is reached.
    """

    def __init__(
        self,
        registry: Optional[JobStoreRegistry] = None,
        services: Optional[PipelineServices] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_retries: int = MAX_RETRIES,
        retry_base_seconds: int = RETRY_BASE_SECONDS,
    ):
        if services is None:
            services = build_pipeline_services()

        self.registry = registry or get_job_store_registry()
        self.services = services
        self.max_retries = max_retries
        self.retry_base_seconds = retry_base_seconds
        self._sleep = sleep
        self._queue: asyncio.Queue[Optional[JobMessage]] = asyncio.Queue()
        self._retry_tasks: Set[asyncio.Task] = set()
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending_count(self) -> int:
        """Messages waiting in the queue or sleeping before redelivery."""
        return self._queue.qsize() + len(self._retry_tasks)

    async def start(self):
        """Start the background dispatcher."""
        self._running = True
        self._task = asyncio.create_task(self._process_loop())

    async def stop(self):
        """Stop the background dispatcher gracefully."""
        self._running = False

        for task in list(self._retry_tasks):
            task.cancel()

        if self._task:
            # Put a sentinel to wake up the queue if waiting
            await self._queue.put(None)
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

    async def submit(self, message: JobMessage):
        """Add a job message to the processing queue."""
        await self._queue.put(message)

    async def enqueue_job(self, request: JobCreate) -> EnqueueResult:
        """Record a new job in its owner's store and queue it for processing."""
        result = await self.registry.get(request.user_id).enqueue(request)
        await self.submit(JobMessage(job_id=result.job_id, user_id=request.user_id))
        return result

    async def recover(self) -> int:
        """
        Resubmit jobs left unfinished by a previous run.

        Covers everything in the pending queues: queued and processing jobs,
        and failed jobs that were waiting for a redelivery.
        """
        resubmitted = 0
        states = await self.registry.list_states()

        for user_id, state in states.items():
            for record in state.queue:
                attempts = record.attempts if record.status != JobStatus.queued else 0
                await self.submit(JobMessage(job_id=record.id, user_id=user_id, attempts=attempts))
                resubmitted += 1

        if resubmitted:
            logger.info('Resubmitted %d unfinished jobs', resubmitted)
        return resubmitted

    async def _process_loop(self):
        """Main processing loop - consumes messages from queue."""
        while self._running:
            try:
                # Wait with timeout to allow checking _running flag
                try:
                    message = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                try:
                    # Check for sentinel value
                    if message is None:
                        continue

                    try:
                        delivery = await self.handle_message(message)
                    except Exception:
                        logger.exception('Error handling job %s', message.job_id)
                        delivery = self._retry_or_drop(message)

                    if delivery.retry_delay is not None:
                        self._schedule_retry(message.next_attempt(), delivery.retry_delay)
                finally:
                    self._queue.task_done()

            except Exception:
                # Log but don't crash the loop
                logger.exception('Error in job dispatcher loop')

    def _retry_or_drop(self, message: JobMessage) -> Delivery:
        if message.attempts < self.max_retries:
            return Delivery(ack=False, retry_delay=retry_delay(message.attempts, self.retry_base_seconds))
        logger.error('Dropping job %s after %d attempts', message.job_id, message.attempts + 1)
        return ACK

    def _schedule_retry(self, message: JobMessage, delay: int):
        async def redeliver():
            await self._sleep(delay)
            await self._queue.put(message)

        task = asyncio.create_task(redeliver())
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    @staticmethod
    def _should_process(job: JobRecord, message: JobMessage) -> bool:
        if job.status in (JobStatus.queued, JobStatus.processing):
            return True
        # Redelivery of an attempt that failed and is waiting to be retried
        return job.status == JobStatus.failed and message.attempts > 0 and job.attempts == message.attempts

    async def handle_message(self, message: JobMessage) -> Delivery:
        """
        Run one delivery of a job.

        Returns ACK once the job completed or exhausted its retries, otherwise
        the delay before the message should be redelivered. Job store errors
        propagate.
        """
        store = self.registry.get(message.user_id)
        job = await store.get_status(message.job_id)

        if job is None:
            logger.warning('Job %s not found for user %s', message.job_id, message.user_id)
            return ACK

        if not self._should_process(job, message):
            logger.info('Skipping job %s (status: %s)', job.id, job.status.value)
            return ACK

        attempt = message.attempts + 1
        logger.info('Processing job %s (user: %s, type: %s, attempt %d)', job.id, job.user_id, job.type.value, attempt)

        await store.update_status(
            job.id,
            status=JobStatus.processing,
            progress=pipeline.STARTED.progress,
            message=pipeline.STARTED.message,
            attempts=attempt,
        )

        started = datetime.utcnow()
        try:
            result = await self._run_stages(store, job)
        except Exception as e:
            return await self._handle_failure(store, job, message, e)

        await store.update_status(
            job.id,
            status=JobStatus.completed,
            progress=pipeline.DONE.progress,
            message=pipeline.DONE.message,
            result=result,
        )
        elapsed = (datetime.utcnow() - started).total_seconds()
        logger.info('Job %s completed in %.1fs', job.id, elapsed)

        await send_notification(self.services.notifier, ready_notification(job, result.audio_url))
        return ACK

    async def _checkpoint(self, store: JobStore, job: JobRecord, checkpoint: Checkpoint):
        await store.update_status(job.id, progress=checkpoint.progress, message=checkpoint.message)

    async def _run_stages(self, store: JobStore, job: JobRecord) -> JobResult:
        services = self.services

        await self._checkpoint(store, job, pipeline.FETCHING)
        records = await pipeline.fetch_content(services.content_source, job.type, job.payload)
        logger.info('Fetched %d bills for job %s', len(records), job.id)

        await self._checkpoint(store, job, pipeline.SCRIPTING)
        lines = await pipeline.generate_script(services.script_generator, records, job.type)
        logger.info('Generated %d dialogue lines for job %s', len(lines), job.id)

        await self._checkpoint(store, job, pipeline.SYNTHESIZING)
        audio = await pipeline.synthesize_audio(services.audio_synthesizer, lines)
        duration = pipeline.estimate_duration(audio)
        logger.info('Generated %d bytes of audio (%ds) for job %s', len(audio), duration, job.id)

        content_ids = [r.id for r in records]
        await self._checkpoint(store, job, pipeline.UPLOADING)
        audio_url = await pipeline.upload_audio(
            services.object_storage,
            audio,
            UploadMetadata(
                user_id=job.user_id,
                type=job.type,
                duration=duration,
                content_ids=content_ids,
                generated_at=datetime.utcnow(),
            ),
        )
        logger.info('Uploaded audio to %s for job %s', audio_url, job.id)

        transcript = pipeline.format_transcript(lines)

        await self._checkpoint(store, job, pipeline.SAVING)
        try:
            await pipeline.persist_metadata(
                services.metadata_repository, job, audio_url, transcript, records, duration,
            )
        except Exception as e:
            # The audio exists; missing metadata does not fail the job
            logger.warning('Failed to save podcast metadata for job %s: %s', job.id, e)

        return JobResult(
            audio_url=audio_url,
            transcript=transcript,
            duration=duration,
            content_ids=content_ids,
        )

    async def _handle_failure(
        self,
        store: JobStore,
        job: JobRecord,
        message: JobMessage,
        exc: Exception,
    ) -> Delivery:
        error = str(exc) or exc.__class__.__name__

        if message.attempts < self.max_retries:
            delay = retry_delay(message.attempts, self.retry_base_seconds)
            logger.warning(
                'Job %s failed on attempt %d: %s. Retrying in %ds',
                job.id, message.attempts + 1, error, delay,
            )
            await store.update_status(
                job.id,
                status=JobStatus.failed,
                message=f'Generation failed, retrying in {delay}s',
                error=error,
                retry_at=datetime.utcnow() + timedelta(seconds=delay),
            )
            return Delivery(ack=False, retry_delay=delay)

        logger.error('Job %s failed permanently after %d attempts: %s', job.id, message.attempts + 1, error)
        await store.update_status(
            job.id,
            status=JobStatus.failed,
            message='Podcast generation failed',
            error=error,
        )
        await send_notification(self.services.notifier, failed_notification(job, error))
        return ACK


# Singleton instance
_job_dispatcher: Optional[JobDispatcher] = None


def get_job_dispatcher() -> JobDispatcher:
    """Get the job dispatcher singleton instance."""
    global _job_dispatcher
    if _job_dispatcher is None:
        _job_dispatcher = JobDispatcher()
    return _job_dispatcher


def reset_job_dispatcher():
    """Reset the job dispatcher singleton (for testing)."""
    global _job_dispatcher
    _job_dispatcher = None
