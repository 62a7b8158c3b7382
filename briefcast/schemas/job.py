"""
Pydantic schemas for job records and job API operations.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from briefcast.models.job import JobStatus, JobType


class JobPayload(BaseModel):
    """Content identifiers and generation parameters for a job."""
    content_ids: List[str] = Field(default_factory=list, description='Bill ids, e.g. 119-hr-1234')
    bill_count: Optional[int] = Field(None, ge=1, le=20, description='Bills to cover when no ids are given')
    topics: List[str] = Field(default_factory=list)


class JobCreate(BaseModel):
    """Schema for submitting a new generation job."""
    job_id: Optional[str] = Field(None, min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=100)
    type: JobType = JobType.daily
    payload: JobPayload = Field(default_factory=JobPayload)


class JobResult(BaseModel):
    """Output artifacts of a completed job."""
    audio_url: str
    transcript: str
    duration: int
    content_ids: List[str] = Field(default_factory=list)


class JobRecord(BaseModel):
    """
    The durable unit of work.

    Mutated only through JobStore.update_status.
    """
    id: str
    type: JobType
    user_id: str
    payload: JobPayload
    created_at: datetime
    status: JobStatus = JobStatus.queued
    progress: int = Field(0, ge=0, le=100)
    message: str = ''
    result: Optional[JobResult] = None
    error: Optional[str] = None
    completed_at: Optional[datetime] = None
    attempts: int = 0
    retry_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def awaiting_retry(self) -> bool:
        """Failed, but a redelivery is scheduled; stays in the pending queue."""
        return self.status == JobStatus.failed and self.retry_at is not None


class JobStatusResponse(JobRecord):
    """Job record as returned to polling clients."""
    queue_position: Optional[int] = None


class EnqueueResult(BaseModel):
    """Returned when a job is accepted."""
    job_id: str
    queue_position: int
    estimated_seconds: int


class CancelResponse(BaseModel):
    job_id: str
    cancelled: bool


class JobListResponse(BaseModel):
    """Schema for history and queue listings."""
    user_id: str
    jobs: List[JobRecord]


class JobStats(BaseModel):
    """Aggregate figures for one user's store."""
    queue_length: int
    total_generated: int
    success_rate: float
