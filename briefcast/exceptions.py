"""
Exceptions raised by the job store, pipeline stages and service clients.
"""
from typing import Optional


class BriefcastError(Exception):
    """Base class for all briefcast errors."""


class JobNotFoundError(BriefcastError):
    """Raised when a job id is unknown to the store it was looked up in."""

    def __init__(self, job_id: str):
        super().__init__(f'Job not found: {job_id}')
        self.job_id = job_id


class JobExistsError(BriefcastError):
    """Raised when a submitted job id is already in use."""

    def __init__(self, job_id: str):
        super().__init__(f'Job already exists: {job_id}')
        self.job_id = job_id


class QueueFullError(BriefcastError):
    """Raised when a user's pending queue is at capacity."""

    def __init__(self, user_id: str, limit: int):
        super().__init__(f'Queue for user {user_id} is full ({limit} pending jobs)')
        self.user_id = user_id
        self.limit = limit


class PipelineError(BriefcastError):
    """A stage produced unusable output."""


class NoContentError(PipelineError):
    def __init__(self, message: str = 'No bills available for podcast generation'):
        super().__init__(message)


class EmptyScriptError(PipelineError):
    def __init__(self, message: str = 'Failed to generate dialogue script'):
        super().__init__(message)


class EmptyAudioError(PipelineError):
    def __init__(self, message: str = 'Failed to generate audio'):
        super().__init__(message)


class ServiceError(BriefcastError):
    """An external service returned an error response."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        detail = f'{service} error: {status_code}' if status_code is not None else f'{service} error'
        super().__init__(f'{detail} - {message}' if message else detail)
        self.service = service
        self.status_code = status_code
