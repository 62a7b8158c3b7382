"""
Podcast metadata saved after a brief's audio is uploaded.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, JSON

from briefcast.models.job import Base


class Podcast(Base):
    """
    A generated audio brief.

    Attributes:
        id: Unique podcast identifier (UUID)
        job_id: Job that produced this podcast
        user_id: Owning user
        type: Brief variant (daily/weekly)
        audio_url: Durable location of the uploaded audio
        transcript: Speaker-labelled dialogue text
        bills_covered: List of {id, title, sponsor} for the bills discussed
        duration: Estimated audio length in seconds
        generated_at: When the podcast was generated
    """
    __tablename__ = 'podcasts'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    job_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    audio_url = Column(Text, nullable=False)
    transcript = Column(Text, nullable=False)
    bills_covered = Column(JSON, nullable=False, default=list)
    duration = Column(Integer, nullable=False, default=0)
    generated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f'<Podcast {self.id} user={self.user_id} type={self.type}>'
