"""
Job state tables for per-user brief generation.
"""
import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class JobStatus(str, enum.Enum):
    """Status states for generation jobs."""
    queued = 'queued'
    processing = 'processing'
    completed = 'completed'
    failed = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)


class JobType(str, enum.Enum):
    """Brief variants; affects bill count and target length."""
    daily = 'daily'
    weekly = 'weekly'


class UserJobState(Base):
    """
    Durable state document for one user's job store.

    Attributes:
        user_id: Owning user (one row per user)
        data: JSON document holding the pending queue and terminal history
        updated_at: Last write timestamp
    """
    __tablename__ = 'user_job_states'

    user_id = Column(String(100), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f'<UserJobState {self.user_id}>'


class JobIndex(Base):
    """Maps every job id to the user whose store owns it."""
    __tablename__ = 'job_index'

    job_id = Column(String(64), primary_key=True)
    user_id = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f'<JobIndex {self.job_id} user={self.user_id}>'
