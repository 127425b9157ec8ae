"""Exception hierarchy for the API crawler."""
from typing import Optional


class CrawlerError(Exception):
    """Base class for every error raised by apicrawl."""


class ConfigError(CrawlerError):
    """Invalid or contradictory configuration. Raised before any fetch."""


class FetchError(CrawlerError):
    """A single address could not be fetched (network, timeout, non-2xx)."""

    kind = "fetch"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(FetchError):
    """The response body is not a JSON document."""

    kind = "parse"


class ExtractionAnomaly(CrawlerError):
    """A link object whose href cannot be turned into an absolute address."""

    kind = "extraction"

    def __init__(self, message: str, href: object = None, path: str = ""):
        super().__init__(message)
        self.href = href
        self.path = path
