"""
Outbound notifications for finished jobs.

Delivery is fire-and-forget: failures are logged and never reach the job.
"""
import logging
from typing import Optional

import httpx

from briefcast.schemas.job import JobRecord
from briefcast.schemas.notification import Notification

logger = logging.getLogger(__name__)


class LogNotifier:
    """Used when no webhook is configured."""

    async def send(self, notification: Notification):
        logger.info(
            'Notification for user %s: %s (job %s)',
            notification.user_id, notification.title, notification.job_id,
        )


class WebhookNotifier:
    """POSTs notifications as JSON to a webhook (email/push relay)."""

    def __init__(self, url: str, client: httpx.AsyncClient):
        self.url = url
        self._client = client

    async def send(self, notification: Notification):
        response = await self._client.post(self.url, json=notification.model_dump(mode='json'))
        response.raise_for_status()


def ready_notification(job: JobRecord, audio_url: str) -> Notification:
    return Notification(
        user_id=job.user_id,
        type='ready',
        job_id=job.id,
        title='Your podcast is ready!',
        message=f'Your {job.type.value} podcast is ready to listen.',
        audio_url=audio_url,
    )


def failed_notification(job: JobRecord, error: Optional[str]) -> Notification:
    return Notification(
        user_id=job.user_id,
        type='failed',
        job_id=job.id,
        title='Podcast generation failed',
        message=f'We could not generate your {job.type.value} podcast. Please try again later.',
        error=error,
    )


async def send_notification(notifier, notification: Notification) -> bool:
    """Send a notification; returns False instead of raising on failure."""
    try:
        await notifier.send(notification)
        return True
    except Exception as e:
        logger.warning(
            'Failed to send %s notification for job %s: %s',
            notification.type, notification.job_id, e,
        )
        return False
