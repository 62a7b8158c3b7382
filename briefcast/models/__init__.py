"""
SQLAlchemy models.
"""
from briefcast.models.job import Base, JobIndex, JobStatus, JobType, UserJobState
from briefcast.models.podcast import Podcast

__all__ = ['Base', 'JobIndex', 'JobStatus', 'JobType', 'UserJobState', 'Podcast']
