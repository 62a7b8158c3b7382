"""
Podcast metadata persistence.
"""
import logging
from datetime import datetime
from typing import List

from briefcast.database import async_session_factory
from briefcast.models.podcast import Podcast
from briefcast.schemas.job import JobRecord
from briefcast.schemas.pipeline import ContentRecord

logger = logging.getLogger(__name__)


class PodcastRepository:
    """Writes a podcasts row for each completed brief."""

    def __init__(self, session_factory=async_session_factory):
        self._session_factory = session_factory

    async def save(
        self,
        job: JobRecord,
        audio_url: str,
        transcript: str,
        records: List[ContentRecord],
        duration: int,
    ):
        async with self._session_factory() as session:
            session.add(Podcast(
                job_id=job.id,
                user_id=job.user_id,
                type=job.type.value,
                audio_url=audio_url,
                transcript=transcript,
                bills_covered=[
                    {'id': r.id, 'title': r.title, 'sponsor': r.sponsor_name}
                    for r in records
                ],
                duration=duration,
                generated_at=datetime.utcnow(),
            ))
            await session.commit()
        logger.info('Saved podcast metadata for job %s', job.id)
