"""Fixtures for apicrawl tests.

HTTP is served by ``httpx.MockTransport`` from a dict of canned responses,
so no real services are required. Run: pytest tests/ -v
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import logfire
import pytest

from apicrawl.core.crawler import crawl_api
from apicrawl.core.fetcher import HttpxFetcher
from apicrawl.models import CrawlResult, EndpointRecord, FrontierItem

API = "http://api.test"


@pytest.fixture(autouse=True, scope="session")
def _quiet_logfire():
    logfire.configure(send_to_logfire=False, console=False)


class CannedApi:
    """Serves canned JSON bodies keyed by absolute URL; unknown URLs get 404.

    A route value is either a JSON-serializable body (served as
    application/json) or a ``(status, content_type, raw_bytes)`` tuple.
    """

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, tuple):
            status, content_type, body = route
            return httpx.Response(status, headers={"content-type": content_type}, content=body)
        return httpx.Response(200, json=route)

    async def crawl_async(self, seed: str, **options) -> CrawlResult:
        options.setdefault("delay_ms", 0)
        options.setdefault("max_concurrent_requests", 1)
        transport = httpx.MockTransport(self.handler)
        async with httpx.AsyncClient(transport=transport) as client:
            return await crawl_api(seed, fetcher=HttpxFetcher(client), **options)

    def crawl(self, seed: str, **options) -> CrawlResult:
        return asyncio.run(self.crawl_async(seed, **options))


@pytest.fixture
def canned_api():
    """Factory: canned_api(routes) -> CannedApi."""
    return CannedApi


@pytest.fixture
def three_level_routes() -> Dict[str, Any]:
    return {
        f"{API}/": {
            "_links": {"self": {"href": "/"}, "users": {"href": "/users"}},
        },
        f"{API}/users": {
            "_links": {"self": {"href": "/users"}},
            "_embedded": {
                "users": [{"id": 1, "_links": {"self": {"href": "/users/1"}}}],
            },
        },
        f"{API}/users/1": {
            "_links": {"self": {"href": "/users/1"}, "orders": {"href": "/users/1/orders"}},
        },
        f"{API}/users/1/orders": {"data": []},
    }


@pytest.fixture
def page():
    """Factory for the FrontierItem a document was fetched from."""
    def _page(address: str = f"{API}/a", depth: int = 0) -> FrontierItem:
        return FrontierItem(address=address, depth=depth)
    return _page


@pytest.fixture
def record():
    """Factory for EndpointRecords with test-friendly defaults."""
    def _record(
        address: str,
        parent: Optional[str],
        relation: Optional[str] = None,
        depth: int = 1,
        **fields
    ) -> EndpointRecord:
        return EndpointRecord(
            address=address,
            parent_address=parent,
            relation=relation,
            depth=depth,
            **fields
        )
    return _record


@pytest.fixture
def make_result():
    """Factory for frozen CrawlResults built from records."""
    def _make(seed: str, records: List[EndpointRecord]) -> CrawlResult:
        now = datetime.now(timezone.utc)
        return CrawlResult(
            seed_url=seed,
            records=tuple(records),
            started_at=now,
            completed_at=now
        )
    return _make
