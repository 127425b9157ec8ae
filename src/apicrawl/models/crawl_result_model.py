# src/apicrawl/models/crawl_result_model.py
from collections import defaultdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from .endpoint_model import EndpointRecord


class CrawlState(str, Enum):
    """Lifecycle of a crawl run."""
    IDLE = 'idle'
    RUNNING = 'running'
    COMPLETED = 'completed'
    ABORTED = 'aborted'


class CrawlErrorEntry(BaseModel):
    """A per-address failure carried into the final result."""
    model_config = ConfigDict(frozen=True)

    address: str
    parent_address: Optional[str] = None
    kind: str = 'fetch'
    message: str

    def __str__(self) -> str:
        return f"URL {self.address}: {self.message}"


class CrawlStatistics(BaseModel):
    """Counters collected while crawling."""
    model_config = ConfigDict(frozen=True)

    urls_processed: int = Field(default=0, ge=0)
    successful_requests: int = Field(default=0, ge=0)
    failed_requests: int = Field(default=0, ge=0)
    urls_skipped: int = Field(default=0, ge=0)
    max_depth_reached: int = Field(default=0, ge=0)
    total_time_ms: int = Field(default=0, ge=0)
    errors: Tuple[CrawlErrorEntry, ...] = ()

    @property
    def success_rate(self) -> float:
        if not self.urls_processed:
            return 0.0
        return self.successful_requests / self.urls_processed * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'urls_processed': self.urls_processed,
            'successful_requests': self.successful_requests,
            'failed_requests': self.failed_requests,
            'urls_skipped': self.urls_skipped,
            'max_depth_reached': self.max_depth_reached,
            'total_time_ms': self.total_time_ms,
            'errors': [
                {
                    'address': e.address,
                    'parent_address': e.parent_address,
                    'kind': e.kind,
                    'message': e.message,
                }
                for e in self.errors
            ],
        }


class CrawlResult(BaseModel):
    """Frozen outcome of one crawl run."""
    model_config = ConfigDict(frozen=True)

    seed_url: str
    state: CrawlState = CrawlState.COMPLETED
    records: Tuple[EndpointRecord, ...] = ()
    statistics: CrawlStatistics = Field(default_factory=CrawlStatistics)
    started_at: datetime
    completed_at: datetime
    config_snapshot: Dict[str, Any] = Field(default_factory=dict)

    def records_at_depth(self, depth: int) -> List[EndpointRecord]:
        return [r for r in self.records if r.depth == depth]

    def discovered_hosts(self) -> Set[str]:
        """Hostnames of every discovered address."""
        hosts = set()
        for record in self.records:
            host = urlparse(record.address).hostname
            if host:
                hosts.add(host)
        return hosts

    def children_by_parent(self) -> Dict[str, List[EndpointRecord]]:
        """Direct children of each parent address, in discovery order."""
        mapping: Dict[str, List[EndpointRecord]] = defaultdict(list)
        for record in self.records:
            mapping[record.parent_address or self.seed_url].append(record)
        return dict(mapping)

    def summary(self) -> str:
        return (
            f"Crawled {self.statistics.urls_processed} URLs, "
            f"found {len(self.records)} endpoints across "
            f"{len(self.discovered_hosts())} hosts in "
            f"{self.statistics.total_time_ms}ms"
        )
