# src/apicrawl/core/fetcher.py
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import httpx
import logfire

from ..errors import FetchError, ParseError


@dataclass(frozen=True)
class FetchResponse:
    """Raw outcome of one GET."""

    status_code: int
    body: bytes
    content_type: str = ''

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_json(self) -> bool:
        # application/json, application/hal+json, application/vnd.api+json...
        media_type = self.content_type.split(';', 1)[0].strip().lower()
        return 'json' in media_type


class Fetcher(Protocol):
    """Transport capability the crawler depends on."""

    async def fetch(
        self,
        address: str,
        headers: Mapping[str, str],
        timeout_seconds: float,
        follow_redirects: bool
    ) -> FetchResponse:
        """Return the response or raise FetchError."""
        ...


class HttpxFetcher:
    """Fetcher backed by ``httpx.AsyncClient``.

    Pass a client to control transport (tests use ``httpx.MockTransport``);
    otherwise one is created on first use and closed by ``aclose``.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._owns_client = client is None

    async def fetch(
        self,
        address: str,
        headers: Mapping[str, str],
        timeout_seconds: float,
        follow_redirects: bool
    ) -> FetchResponse:
        if self._client is None:
            self._client = httpx.AsyncClient()
        try:
            response = await self._client.get(
                address,
                headers=dict(headers),
                timeout=timeout_seconds,
                follow_redirects=follow_redirects
            )
        except httpx.TimeoutException as e:
            raise FetchError(f"Timed out after {timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise FetchError(f"{type(e).__name__}: {e}") from e

        return FetchResponse(
            status_code=response.status_code,
            body=response.content,
            content_type=response.headers.get('content-type', '')
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> 'HttpxFetcher':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def decode_json(response: FetchResponse) -> Any:
    """
    Turn a response into a JSON document.

    Raises:
        FetchError: for non-2xx statuses
        ParseError: for non-JSON content types or undecodable bodies
    """
    if not response.is_success:
        raise FetchError(f"HTTP status {response.status_code}", response.status_code)
    if not response.is_json:
        raise ParseError(
            f"Non-JSON content type: {response.content_type or 'missing'}",
            response.status_code
        )
    try:
        return json.loads(response.body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logfire.debug("Undecodable JSON body", error=str(e))
        raise ParseError(f"Invalid JSON body: {e}", response.status_code) from e
