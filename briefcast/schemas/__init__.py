"""
Pydantic schemas for API request/response validation and pipeline data.
"""
from briefcast.schemas.job import (
    CancelResponse,
    EnqueueResult,
    JobCreate,
    JobListResponse,
    JobPayload,
    JobRecord,
    JobResult,
    JobStats,
    JobStatusResponse,
)
from briefcast.schemas.notification import Notification
from briefcast.schemas.pipeline import ContentRecord, DialogueLine, UploadMetadata

__all__ = [
    'CancelResponse',
    'EnqueueResult',
    'JobCreate',
    'JobListResponse',
    'JobPayload',
    'JobRecord',
    'JobResult',
    'JobStats',
    'JobStatusResponse',
    'Notification',
    'ContentRecord',
    'DialogueLine',
    'UploadMetadata',
]
