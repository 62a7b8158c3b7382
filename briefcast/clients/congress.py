"""
Content source backed by the Congress.gov v3 API.
"""
import logging
from typing import List, Optional

import httpx

from briefcast.clients.base import raise_for_service
from briefcast.config import CONGRESS_API_KEY, CONGRESS_API_URL, CURRENT_CONGRESS
from briefcast.schemas.pipeline import ContentRecord

logger = logging.getLogger(__name__)


def parse_bill_id(content_id: str) -> Optional[tuple]:
    """
    Split a content id into (congress, bill_type, number).

    Format: <congress>-<billtype>-<number>, e.g. 119-hr-1234
    """
    parts = content_id.strip().lower().split('-')
    if len(parts) != 3 or not parts[0].isdigit() or not parts[2].isdigit() or not parts[1].isalpha():
        return None
    return int(parts[0]), parts[1], parts[2]


def bill_record(bill: dict, congress: int) -> ContentRecord:
    bill_type = str(bill.get('type', '')).lower()
    number = str(bill.get('number', ''))
    sponsors = bill.get('sponsors') or []
    latest_action = bill.get('latestAction') or {}

    return ContentRecord(
        id=f'{bill.get("congress", congress)}-{bill_type}-{number}',
        bill_type=bill_type,
        bill_number=number,
        title=bill.get('title', ''),
        sponsor_name=sponsors[0].get('fullName') if sponsors else None,
        latest_action=latest_action.get('text'),
    )


class CongressContentSource:
    """Fetches bills by id, or the most recently updated bills."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = CONGRESS_API_URL,
        api_key: str = CONGRESS_API_KEY,
        congress: int = CURRENT_CONGRESS,
    ):
        self._client = client
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.congress = congress

    async def _get(self, path: str, **params) -> dict:
        response = await self._client.get(
            f'{self.base_url}{path}',
            params={'api_key': self.api_key, 'format': 'json', **params},
        )
        raise_for_service(response, 'Congress.gov')
        return response.json()

    async def fetch(self, content_ids: List[str], limit: int) -> List[ContentRecord]:
        if not content_ids:
            return await self.fetch_recent(limit)

        records = []
        for content_id in content_ids:
            parsed = parse_bill_id(content_id)
            if parsed is None:
                logger.warning('Skipping malformed bill id %r', content_id)
                continue

            congress, bill_type, number = parsed
            data = await self._get(f'/bill/{congress}/{bill_type}/{number}')
            bill = data.get('bill')
            if bill:
                records.append(bill_record(bill, congress))

        return records

    async def fetch_recent(self, limit: int) -> List[ContentRecord]:
        data = await self._get(f'/bill/{self.congress}', limit=limit, sort='updateDate+desc')
        return [bill_record(bill, self.congress) for bill in data.get('bills', [])[:limit]]
