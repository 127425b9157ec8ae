from dataclasses import dataclass
from functools import lru_cache

import logfire


@dataclass(frozen=True)
class CrawlMetrics:
    """Metric instruments recorded by the crawler."""

    processed_urls: object
    failed_urls: object
    skipped_urls: object
    discovered_endpoints: object
    url_processing_time: object


def setup_logging(level: str = "info", send_to_logfire: bool = False) -> None:
    """Configure logfire console output and metrics."""

    logfire.configure(
        send_to_logfire='if-token-present' if send_to_logfire else False,
        console=logfire.ConsoleOptions(min_log_level=level.lower(), verbose=level.lower() == "debug"),
    )
    get_metrics()


@lru_cache(maxsize=1)
def get_metrics() -> CrawlMetrics:
    """Create the metric instruments once per process."""
    return CrawlMetrics(
        processed_urls=logfire.metric_counter(
            'processed_urls',
            unit='1',
            description='Number of processed URLs'
        ),
        failed_urls=logfire.metric_counter(
            'failed_urls',
            unit='1',
            description='Number of failed URLs'
        ),
        skipped_urls=logfire.metric_counter(
            'skipped_urls',
            unit='1',
            description='Number of URLs skipped by limits or deduplication'
        ),
        discovered_endpoints=logfire.metric_counter(
            'discovered_endpoints',
            unit='1',
            description='Number of endpoint records accepted'
        ),
        url_processing_time=logfire.metric_histogram(
            'url_processing_time',
            unit='s',
            description='Time taken to process URLs'
        ),
    )
