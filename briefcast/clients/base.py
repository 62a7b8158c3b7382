"""
Shared helpers for external service clients.
"""
import httpx

from briefcast.config import HTTP_TIMEOUT_SECONDS
from briefcast.exceptions import ServiceError


def create_http_client() -> httpx.AsyncClient:
    """HTTP client shared by all service clients."""
    return httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)


def raise_for_service(response: httpx.Response, service: str):
    """Raise ServiceError for non-2xx responses."""
    if response.is_success:
        return
    raise ServiceError(service, response.text[:200], status_code=response.status_code)
