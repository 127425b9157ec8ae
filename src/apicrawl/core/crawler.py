# src/apicrawl/core/crawler.py
import asyncio
import time
from typing import Any, List, Optional

import logfire

from .aggregator import ResultAggregator
from .dedup import Deduplicator, address_deduplicator, identity_deduplicator
from .fetcher import Fetcher, HttpxFetcher, decode_json
from .strategies.engine import ExtractionEngine
from ..config.settings import CrawlConfig
from ..errors import ConfigError, CrawlerError, FetchError
from ..models.crawl_result_model import CrawlResult, CrawlState
from ..models.endpoint_model import EndpointRecord, FrontierItem
from ..utils.logging import get_metrics
from ..utils.url_utils import UrlUtils


class Crawler:
   """
   Main crawler class that orchestrates the crawling process.

   A fixed pool of worker tasks pulls FrontierItems from one FIFO queue
   (breadth-first) and pushes newly discovered addresses back into it.
   A semaphore of the same size bounds in-flight fetches. A Crawler
   instance runs once.
   """

   def __init__(
       self,
       config: CrawlConfig,
       fetcher: Optional[Fetcher] = None,
       engine: Optional[ExtractionEngine] = None
   ):
       self.logger = logfire
       self.config = config
       self.fetcher = fetcher
       self.engine = engine or ExtractionEngine()
       self.state = CrawlState.IDLE
       self.metrics = get_metrics()

       # Per-run state, created by crawl()
       self._queue: Optional[asyncio.Queue] = None
       self._gate: Optional[asyncio.Semaphore] = None
       self._admission_lock: Optional[asyncio.Lock] = None
       self._visited: Deduplicator = address_deduplicator()
       self._identities: Deduplicator = identity_deduplicator()
       self._aggregator: Optional[ResultAggregator] = None
       self._fetch_count = 0

   def _validate_seed(self) -> str:
       """Re-check the seed before any fetch; a bad seed aborts the run."""
       try:
           seed = UrlUtils.normalize_url(self.config.seed_url)
       except ValueError as e:
           self.state = CrawlState.ABORTED
           raise ConfigError(f"Invalid seed URL {self.config.seed_url!r}: {e}") from e
       if not self.config.domain_allowed(seed):
           self.state = CrawlState.ABORTED
           raise ConfigError(f"Seed URL {seed} is outside the allowed domains")
       return seed

   async def crawl(self) -> CrawlResult:
       """
       Run the crawl to completion.

       Returns:
           The frozen CrawlResult

       Raises:
           ConfigError: if the seed cannot be crawled; nothing is fetched
       """
       if self.state != CrawlState.IDLE:
           raise RuntimeError(f"Crawler already used (state: {self.state.value})")

       seed = self._validate_seed()
       self.state = CrawlState.RUNNING
       self._queue = asyncio.Queue()
       self._gate = asyncio.Semaphore(self.config.max_concurrent_requests)
       self._admission_lock = asyncio.Lock()
       self._aggregator = ResultAggregator(seed, self.config.snapshot())

       owns_fetcher = self.fetcher is None
       if owns_fetcher:
           self.fetcher = HttpxFetcher()

       with logfire.span('crawl', seed_url=seed):
           self.logger.info(
               "Starting crawl",
               seed_url=seed,
               max_depth=self.config.max_depth,
               concurrency=self.config.max_concurrent_requests
           )
           await self._enqueue(FrontierItem(address=seed, depth=0))

           workers = [
               asyncio.create_task(self._worker(worker_id))
               for worker_id in range(self.config.max_concurrent_requests)
           ]
           try:
               await self._queue.join()
           finally:
               for worker in workers:
                   worker.cancel()
               await asyncio.gather(*workers, return_exceptions=True)
               if owns_fetcher:
                   await self.fetcher.aclose()

           self.state = CrawlState.COMPLETED
           result = self._aggregator.freeze(CrawlState.COMPLETED)
           self.logger.info(
               "Crawling completed",
               urls_processed=result.statistics.urls_processed,
               endpoints=len(result.records),
               total_time_ms=result.statistics.total_time_ms
           )
           return result

   async def _worker(self, worker_id: int) -> None:
       """Worker coroutine: take one item, process it, repeat."""
       while True:
           item = await self._queue.get()
           try:
               await self._process_item(item)
           except Exception as e:
               # One item's failure never stops the others
               self.logger.exception(
                   "Unexpected error processing URL",
                   url=item.address,
                   worker=worker_id
               )
               self._aggregator.record_failure(item, CrawlerError(f"Unexpected error: {e}"))
               self.metrics.processed_urls.add(1)
               self.metrics.failed_urls.add(1)
           finally:
               self._queue.task_done()

   async def _admit(self, item: FrontierItem) -> Optional[str]:
       """
       Apply the frontier gates in order.

       Returns:
           The skip reason, or None when the item may be fetched
       """
       async with self._admission_lock:
           if self.config.max_depth > 0 and item.depth > self.config.max_depth:
               return "max_depth"
           if self.config.max_urls > 0 and self._fetch_count >= self.config.max_urls:
               return "max_urls"
           if not self.config.domain_allowed(item.address):
               return "domain"
           self._fetch_count += 1
           return None

   def _skip(self, address: str, reason: str) -> None:
       self._aggregator.record_skip()
       self.metrics.skipped_urls.add(1, {'reason': reason})
       self.logger.debug("Skipping URL", url=address, reason=reason)

   async def _process_item(self, item: FrontierItem) -> None:
       """
       Fetch one address and feed what it links to back into the frontier.

       Args:
           item: FrontierItem to process
       """
       reason = await self._admit(item)
       if reason:
           self._skip(item.address, reason)
           return

       try:
           document = await self._fetch_document(item)
       except FetchError as e:
           self.logger.warning(
               "Failed to process URL",
               url=item.address,
               parent_url=item.parent_address,
               error=str(e)
           )
           self._aggregator.record_failure(item, e)
           self.metrics.processed_urls.add(1)
           self.metrics.failed_urls.add(1)
           return
       finally:
           if self.config.delay_ms > 0:
               await asyncio.sleep(self.config.delay_ms / 1000)

       outcome = self.engine.extract_with_anomalies(document, item)
       for anomaly in outcome.anomalies:
           self.logger.debug(
               "Skipping malformed link",
               url=item.address,
               path=anomaly.path,
               error=str(anomaly)
           )
           self._aggregator.record_anomaly(item, anomaly)

       accepted = await self._accept_records(outcome.records)
       self._aggregator.record_success(item)
       self.metrics.processed_urls.add(1)
       self.metrics.discovered_endpoints.add(len(accepted))
       self.logger.info(
           "Found endpoints",
           url=item.address,
           depth=item.depth,
           endpoints=len(accepted)
       )

   async def _fetch_document(self, item: FrontierItem) -> Any:
       """Fetch under the concurrency gate and decode the JSON body."""
       async with self._gate:
           self.logger.debug("Processing URL", url=item.address, depth=item.depth)
           started = time.perf_counter()
           try:
               response = await asyncio.wait_for(
                   self.fetcher.fetch(
                       item.address,
                       self.config.request_headers(),
                       self.config.timeout_seconds,
                       self.config.follow_redirects
                   ),
                   timeout=self.config.timeout_seconds
               )
           except asyncio.TimeoutError as e:
               raise FetchError(f"Timed out after {self.config.timeout_seconds}s") from e
           finally:
               self.metrics.url_processing_time.record(time.perf_counter() - started)
       return decode_json(response)

   async def _accept_records(self, candidates: List[EndpointRecord]) -> List[EndpointRecord]:
       """Pass candidates through the output gate and enqueue their addresses."""
       accepted = []
       for record in candidates:
           if self.config.max_depth > 0 and record.depth > self.config.max_depth:
               self._skip(record.address, "max_depth")
               continue
           if not self._identities.accept(record):
               continue
           self._aggregator.add_record(record)
           accepted.append(record)
           await self._enqueue_child(record)
       return accepted

   async def _enqueue_child(self, record: EndpointRecord) -> None:
       if record.is_templated:
           self._skip(record.address, "templated")
           return
       await self._enqueue(
           FrontierItem(
               address=record.address,
               depth=record.depth,
               parent_address=record.parent_address,
               relation_hint=record.relation
           )
       )

   async def _enqueue(self, item: FrontierItem) -> None:
       if not self._visited.accept(item):
           self._skip(item.address, "visited")
           return
       await self._queue.put(item)


async def crawl_api(seed_url: str, fetcher: Optional[Fetcher] = None, **options: Any) -> CrawlResult:
   """
   Crawl an API from seed_url with the given CrawlConfig options.

   Raises:
       ConfigError: for invalid options or an unusable seed
   """
   config = CrawlConfig.build(seed_url=seed_url, **options)
   return await Crawler(config, fetcher=fetcher).crawl()
