"""
Script generator backed by the Anthropic Messages API.
"""
import json
import re
from typing import List

import httpx
from pydantic import TypeAdapter, ValidationError

from briefcast.clients.base import raise_for_service
from briefcast.config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_API_URL,
    ANTHROPIC_MODEL,
    SCRIPT_MAX_TOKENS,
    TARGET_LENGTH,
)
from briefcast.exceptions import EmptyScriptError
from briefcast.models.job import JobType
from briefcast.schemas.pipeline import ContentRecord, DialogueLine

JSON_ARRAY = re.compile(r'\[[\s\S]*\]')

_dialogue_adapter = TypeAdapter(List[DialogueLine])


def build_script_prompt(records: List[ContentRecord], job_type: JobType) -> str:
    target = TARGET_LENGTH[JobType(job_type).value]
    bills = '\n\n'.join(
        f'{i}. {r.bill_type.upper()}{r.bill_number}: {r.title}\n   Sponsor: {r.sponsor_name or "Unknown"}'
        for i, r in enumerate(records, start=1)
    )
    return (
        'Create a natural, conversational podcast dialogue between two hosts '
        '(Sarah and James) discussing these congressional bills.\n\n'
        f'Bills to cover:\n{bills}\n\n'
        'Format: Return ONLY a JSON array:\n'
        '[{"host": "sarah", "text": "..."}, {"host": "james", "text": "..."}]\n\n'
        f'Target length: {target}. Explain bills in plain language.'
    )


def parse_dialogue(text: str) -> List[DialogueLine]:
    """Extract the dialogue array from a model reply (may be wrapped in markdown)."""
    match = JSON_ARRAY.search(text)
    if not match:
        raise EmptyScriptError('Failed to parse dialogue JSON from model response')
    try:
        return _dialogue_adapter.validate_python(json.loads(match.group(0)))
    except (ValueError, ValidationError) as e:
        raise EmptyScriptError(f'Invalid dialogue JSON from model response: {e}') from e


class ClaudeScriptGenerator:
    """Generates two-host dialogue scripts with Claude."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = ANTHROPIC_API_URL,
        api_key: str = ANTHROPIC_API_KEY,
        model: str = ANTHROPIC_MODEL,
    ):
        self._client = client
        self.api_url = api_url
        self.api_key = api_key
        self.model = model

    async def generate(self, records: List[ContentRecord], job_type: JobType) -> List[DialogueLine]:
        response = await self._client.post(
            self.api_url,
            headers={
                'x-api-key': self.api_key,
                'anthropic-version': '2023-06-01',
            },
            json={
                'model': self.model,
                'max_tokens': SCRIPT_MAX_TOKENS[JobType(job_type).value],
                'messages': [{'role': 'user', 'content': build_script_prompt(records, job_type)}],
            },
        )
        raise_for_service(response, 'Claude API')

        content = response.json().get('content') or []
        text = ''.join(block.get('text', '') for block in content if block.get('type', 'text') == 'text')
        return parse_dialogue(text)
