"""
Network transport and credential sources used by one-shot provider requests.
"""
import httpx
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

from location_requests.core.config import Settings, settings
from location_requests.core.errors import TransportError
from location_requests.core.logger import logs


@dataclass(frozen=True)
class ProviderQuery:
    """A provider-specific HTTP GET: URL, query parameters and headers."""
    url: str
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)


class Transport(Protocol):
    async def issue(self, query: ProviderQuery, timeout: float) -> bytes: ...


class HttpxTransport:
    """Issues provider queries with httpx; every failure becomes a TransportError."""

    def __init__(self, client_transport: Optional[httpx.AsyncBaseTransport] = None):
        # Tests plug an httpx.MockTransport in here
        self.client_transport = client_transport

    async def issue(self, query: ProviderQuery, timeout: float) -> bytes:
        async with httpx.AsyncClient(transport=self.client_transport) as client:
            try:
                response = await client.get(
                    query.url,
                    params=query.params,
                    headers=query.headers,
                    timeout=timeout
                )
                response.raise_for_status()
                return response.content
            except httpx.TimeoutException as e:
                logs.log(logging.ERROR, f"Provider call timed out after {timeout}s: {query.url}")
                raise TransportError(f"Request timed out after {timeout}s") from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logs.log(logging.ERROR, f"Provider answered HTTP {status}: {query.url}")
                raise TransportError(f"HTTP {status}", status_code=status) from e
            except httpx.HTTPError as e:
                logs.log(logging.ERROR, f"Provider call failed: {str(e)}")
                raise TransportError(str(e) or type(e).__name__) from e


class CredentialSource(Protocol):
    def get_api_key(self, provider: str) -> Optional[str]: ...


class SettingsCredentialSource:
    """API keys read from the application settings."""

    def __init__(self, config: Settings = settings):
        self.config = config

    def get_api_key(self, provider: str) -> Optional[str]:
        if provider == "google":
            return self.config.GOOGLE_API_KEY or None
        return None


class StaticCredentialSource:
    """API keys held in a plain mapping keyed by provider name."""

    def __init__(self, keys: Optional[Mapping[str, str]] = None):
        self.keys = dict(keys or {})

    def get_api_key(self, provider: str) -> Optional[str]:
        return self.keys.get(provider) or None
