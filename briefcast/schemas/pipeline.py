"""
Pydantic schemas for data passed between pipeline stages.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, AliasChoices

from briefcast.models.job import JobType


class ContentRecord(BaseModel):
    """A bill returned by the content source."""
    id: str
    bill_type: str
    bill_number: str
    title: str
    sponsor_name: Optional[str] = None
    latest_action: Optional[str] = None


class DialogueLine(BaseModel):
    """One spoken line of a generated script."""
    speaker: str = Field(..., validation_alias=AliasChoices('speaker', 'host'))
    text: str = Field(..., min_length=1)


class UploadMetadata(BaseModel):
    """Metadata stored alongside uploaded audio."""
    user_id: str
    type: JobType
    duration: int
    content_ids: List[str]
    generated_at: datetime
