# src/apicrawl/core/aggregator.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import logfire

from ..errors import CrawlerError
from ..models.crawl_result_model import (
    CrawlErrorEntry,
    CrawlResult,
    CrawlState,
    CrawlStatistics,
)
from ..models.endpoint_model import EndpointRecord, FrontierItem


class ResultAggregator:
    """
    Collects accepted records and run statistics while the crawl runs.

    ``freeze`` returns the immutable CrawlResult; any update afterwards
    raises RuntimeError.
    """

    def __init__(self, seed_url: str, config_snapshot: Optional[Dict[str, Any]] = None):
        self.seed_url = seed_url
        self.config_snapshot = dict(config_snapshot or {})
        self.started_at = datetime.now(timezone.utc)
        self._records: List[EndpointRecord] = []
        self._errors: List[CrawlErrorEntry] = []
        self._processed = 0
        self._succeeded = 0
        self._failed = 0
        self._skipped = 0
        self._max_depth = 0
        self._frozen: Optional[CrawlResult] = None

    def _check_open(self) -> None:
        if self._frozen is not None:
            raise RuntimeError("Crawl result is frozen")

    @property
    def records(self) -> List[EndpointRecord]:
        return list(self._records)

    @property
    def processed(self) -> int:
        return self._processed

    def add_record(self, record: EndpointRecord) -> None:
        self._check_open()
        self._records.append(record)

    def record_success(self, item: FrontierItem) -> None:
        self._check_open()
        self._processed += 1
        self._succeeded += 1
        self._max_depth = max(self._max_depth, item.depth)

    def record_failure(self, item: FrontierItem, error: CrawlerError) -> None:
        """Count a failed fetch and keep its error entry."""
        self._check_open()
        self._processed += 1
        self._failed += 1
        self._errors.append(
            CrawlErrorEntry(
                address=item.address,
                parent_address=item.parent_address,
                kind=getattr(error, 'kind', 'fetch'),
                message=str(error)
            )
        )

    def record_anomaly(self, item: FrontierItem, error: CrawlerError) -> None:
        """A skipped link object on an otherwise processed page."""
        self._check_open()
        self._skipped += 1
        path = getattr(error, 'path', '')
        self._errors.append(
            CrawlErrorEntry(
                address=item.address,
                parent_address=item.parent_address,
                kind=getattr(error, 'kind', 'extraction'),
                message=f"{error} at {path}" if path else str(error)
            )
        )

    def record_skip(self, count: int = 1) -> None:
        self._check_open()
        self._skipped += count

    def statistics(self, until: Optional[datetime] = None) -> CrawlStatistics:
        elapsed = (until or datetime.now(timezone.utc)) - self.started_at
        return CrawlStatistics(
            urls_processed=self._processed,
            successful_requests=self._succeeded,
            failed_requests=self._failed,
            urls_skipped=self._skipped,
            max_depth_reached=self._max_depth,
            total_time_ms=int(elapsed.total_seconds() * 1000),
            errors=tuple(self._errors)
        )

    def freeze(self, state: CrawlState = CrawlState.COMPLETED) -> CrawlResult:
        """Stamp completion time and return the immutable result."""
        if self._frozen is not None:
            return self._frozen

        completed_at = datetime.now(timezone.utc)
        self._frozen = CrawlResult(
            seed_url=self.seed_url,
            state=state,
            records=tuple(self._records),
            statistics=self.statistics(completed_at),
            started_at=self.started_at,
            completed_at=completed_at,
            config_snapshot=self.config_snapshot
        )
        logfire.debug(
            "Crawl result frozen",
            seed_url=self.seed_url,
            records=len(self._records),
            state=state.value
        )
        return self._frozen
