"""
Wiring of the production pipeline collaborators.
"""
import logging
from typing import Optional

import httpx

from briefcast.clients import (
    ClaudeScriptGenerator,
    CongressContentSource,
    ElevenLabsSynthesizer,
    LocalAudioStorage,
    create_http_client,
)
from briefcast.config import NOTIFY_WEBHOOK_URL
from briefcast.services.notifier import LogNotifier, WebhookNotifier
from briefcast.services.pipeline import PipelineServices
from briefcast.services.podcasts import PodcastRepository

logger = logging.getLogger(__name__)


def build_pipeline_services(client: Optional[httpx.AsyncClient] = None) -> PipelineServices:
    """Create the HTTP-backed collaborators sharing one client."""
    client = client or create_http_client()

    if NOTIFY_WEBHOOK_URL:
        notifier = WebhookNotifier(NOTIFY_WEBHOOK_URL, client)
    else:
        logger.info('NOTIFY_WEBHOOK_URL not set; notifications will only be logged')
        notifier = LogNotifier()

    return PipelineServices(
        content_source=CongressContentSource(client),
        script_generator=ClaudeScriptGenerator(client),
        audio_synthesizer=ElevenLabsSynthesizer(client),
        object_storage=LocalAudioStorage(),
        metadata_repository=PodcastRepository(),
        notifier=notifier,
        http_client=client,
    )
