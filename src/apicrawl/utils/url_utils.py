# src/apicrawl/utils/url_utils.py
from typing import Optional
import re
from urllib.parse import urljoin, urlparse, urlunparse

_DEFAULT_PORTS = {'http': ':80', 'https': ':443'}

# Property names that usually carry an address (next_url, avatar_uri, self_link...)
_LINK_KEY_PATTERN = re.compile(r'(url|uri)|_link$', re.IGNORECASE)


class UrlUtils:
    """Utility functions for address handling."""

    @staticmethod
    def normalize_url(url: str, base_url: Optional[str] = None) -> str:
        """
        Resolve and normalize an address.

        - Resolves relative references against base_url
        - Lower-cases scheme and host
        - Removes default ports
        - Removes fragments
        - Replaces an empty path with '/'

        Args:
            url: Address as found in a document
            base_url: Address of the page the reference came from

        Returns:
            Absolute http(s) URL string

        Raises:
            ValueError: if the address is empty, unparseable, not http(s)
                or has no host
        """
        url = url.strip()
        if not url:
            raise ValueError("Empty address")

        absolute_url = urljoin(base_url, url) if base_url else url
        parsed = urlparse(absolute_url)

        scheme = parsed.scheme.lower()
        if scheme not in ('http', 'https'):
            raise ValueError(f"Unsupported scheme in address: {url!r}")
        if not parsed.hostname:
            raise ValueError(f"Address has no host: {url!r}")
        # Raises ValueError for out-of-range or non-numeric ports
        parsed.port

        netloc = parsed.netloc.lower()
        default_port = _DEFAULT_PORTS[scheme]
        if netloc.endswith(default_port):
            netloc = netloc[:-len(default_port)]

        return urlunparse((
            scheme,
            netloc,
            parsed.path or '/',
            parsed.params,
            parsed.query,
            ''  # No fragment
        ))

    @staticmethod
    def looks_like_url(value: str) -> bool:
        """Absolute http(s) URLs and root-relative paths."""
        return value.startswith(('http://', 'https://', '/'))

    @staticmethod
    def is_link_key(key: str) -> bool:
        """Check if a property name suggests its value is an address."""
        return bool(_LINK_KEY_PATTERN.search(key))

    @staticmethod
    def extract_host(url: str) -> Optional[str]:
        """
        Extract the hostname from URL.

        Returns:
            Lower-cased hostname or None if invalid
        """
        try:
            return urlparse(url).hostname
        except ValueError:
            return None

    @staticmethod
    def last_segment(url: str) -> str:
        """Last non-empty path segment, or the host for root addresses."""
        parsed = urlparse(url)
        segments = [s for s in parsed.path.split('/') if s]
        if segments:
            return segments[-1]
        return parsed.hostname or url
