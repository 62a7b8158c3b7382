"""
Pydantic schema for outbound user notifications.
"""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class Notification(BaseModel):
    """Signal sent when a job reaches a terminal state."""
    user_id: str
    type: Literal['ready', 'failed']
    job_id: str
    title: str
    message: str
    audio_url: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
