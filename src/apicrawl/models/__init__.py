from .endpoint_model import (
    EndpointRecord,
    FrontierItem,
    IdentityKey,
    KNOWN_LINK_FIELDS,
    RECORD_FIELD_ORDER,
)
from .crawl_result_model import (
    CrawlErrorEntry,
    CrawlResult,
    CrawlState,
    CrawlStatistics,
)
from .json_value import JsonKind, kind_of

__all__ = [
    "EndpointRecord",
    "FrontierItem",
    "IdentityKey",
    "KNOWN_LINK_FIELDS",
    "RECORD_FIELD_ORDER",
    "CrawlErrorEntry",
    "CrawlResult",
    "CrawlState",
    "CrawlStatistics",
    "JsonKind",
    "kind_of",
]
