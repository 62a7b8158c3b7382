"""
Object storage for generated audio.
"""
import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Optional

from briefcast.config import AUDIO_DIR, PUBLIC_AUDIO_BASE_URL
from briefcast.schemas.pipeline import UploadMetadata

logger = logging.getLogger(__name__)


class LocalAudioStorage:
    """
    Stores audio under AUDIO_DIR, served by the /audio static mount.

    Layout: <user_id>/<type>-<YYYYmmdd-HHMMSS>.mp3 with a .json metadata
    sidecar.
    """

    def __init__(self, root: Optional[Path] = None, base_url: str = PUBLIC_AUDIO_BASE_URL):
        self.root = Path(root) if root is not None else AUDIO_DIR
        self.base_url = base_url.rstrip('/')

    def _key(self, metadata: UploadMetadata) -> str:
        timestamp = metadata.generated_at.strftime('%Y%m%d-%H%M%S')
        return f'{metadata.user_id}/{metadata.type.value}-{timestamp}.mp3'

    def _write(self, key: str, audio: bytes, metadata: UploadMetadata):
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(audio)
        path.with_suffix('.json').write_text(json.dumps(metadata.model_dump(mode='json')))

    async def upload(self, audio: bytes, metadata: UploadMetadata) -> str:
        key = self._key(metadata)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, functools.partial(self._write, key, audio, metadata))
        logger.info('Stored %d bytes of audio at %s', len(audio), key)
        return f'{self.base_url}/{key}'
