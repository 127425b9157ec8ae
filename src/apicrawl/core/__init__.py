from .aggregator import ResultAggregator
from .crawler import Crawler, crawl_api
from .dedup import Deduplicator, address_deduplicator, identity_deduplicator
from .fetcher import FetchResponse, Fetcher, HttpxFetcher, decode_json
from .strategies import ExtractionEngine

__all__ = [
    "Crawler",
    "Deduplicator",
    "ExtractionEngine",
    "FetchResponse",
    "Fetcher",
    "HttpxFetcher",
    "ResultAggregator",
    "address_deduplicator",
    "crawl_api",
    "decode_json",
    "identity_deduplicator",
]
