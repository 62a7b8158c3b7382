"""
Audio synthesizer backed by the ElevenLabs text-to-dialogue API.
"""
from typing import Dict, List, Optional

import httpx

from briefcast.clients.base import raise_for_service
from briefcast.config import (
    ELEVENLABS_API_KEY,
    ELEVENLABS_API_URL,
    ELEVENLABS_MODEL,
    ELEVENLABS_OUTPUT_FORMAT,
    SPEAKER_VOICES,
)
from briefcast.schemas.pipeline import DialogueLine


class ElevenLabsSynthesizer:
    """
    Renders a whole dialogue in one request.

    Speakers are mapped to voice ids; unknown speakers use the last voice in
    the map (the second host).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = ELEVENLABS_API_URL,
        api_key: str = ELEVENLABS_API_KEY,
        voices: Optional[Dict[str, str]] = None,
        model_id: str = ELEVENLABS_MODEL,
    ):
        self._client = client
        self.api_url = api_url
        self.api_key = api_key
        self.voices = voices if voices is not None else dict(SPEAKER_VOICES)
        self.model_id = model_id

    def voice_for(self, speaker: str) -> str:
        voice = self.voices.get(speaker.lower())
        if voice is None:
            voice = list(self.voices.values())[-1] if self.voices else ''
        return voice

    async def synthesize(self, lines: List[DialogueLine]) -> bytes:
        response = await self._client.post(
            self.api_url,
            params={'output_format': ELEVENLABS_OUTPUT_FORMAT},
            headers={
                'Accept': 'audio/mpeg',
                'xi-api-key': self.api_key,
            },
            json={
                'inputs': [{'text': line.text, 'voice_id': self.voice_for(line.speaker)} for line in lines],
                'model_id': self.model_id,
                'settings': {'stability': 0.5, 'similarity_boost': 0.75},
            },
        )
        raise_for_service(response, 'ElevenLabs API')
        return response.content
