"""Discover the endpoint graph of a REST API from the links in its JSON."""

__version__ = "0.1.0"

# Avoid circular imports: __version__ must exist before settings is imported
from .config.settings import CrawlConfig, OutputFormat, Settings
from .core.crawler import Crawler, crawl_api
from .errors import ConfigError, CrawlerError, ExtractionAnomaly, FetchError, ParseError
from .models import CrawlResult, EndpointRecord

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "CrawlResult",
    "Crawler",
    "CrawlerError",
    "EndpointRecord",
    "ExtractionAnomaly",
    "FetchError",
    "OutputFormat",
    "ParseError",
    "Settings",
    "crawl_api",
]
