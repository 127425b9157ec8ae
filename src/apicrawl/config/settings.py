"""Application configuration module."""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__
from ..errors import ConfigError
from ..utils.url_utils import UrlUtils

# Load environment variables from a .env file, if any
load_dotenv()

DEFAULT_USER_AGENT = f"apicrawl/{__version__}"
DEFAULT_ACCEPT = "application/hal+json, application/vnd.api+json, application/json;q=0.9, */*;q=0.1"

# Header values never written to result files
_SENSITIVE_HEADERS = {'authorization', 'cookie', 'proxy-authorization', 'x-api-key'}


class OutputFormat(str, Enum):
    """Shapes of the result artifact."""
    FLAT = 'flat'
    COMPACT = 'compact'
    GROUPED = 'grouped'
    TREE = 'tree'


class CrawlConfig(BaseModel):
    """Immutable settings for one crawl run."""
    model_config = ConfigDict(frozen=True)

    seed_url: str
    max_depth: int = Field(
        default=10,
        ge=0,
        description="Maximum crawl depth (0 = unlimited)"
    )
    max_concurrent_requests: int = Field(
        default=10,
        ge=1,
        description="Maximum simultaneous in-flight fetches"
    )
    timeout_seconds: float = Field(
        default=30,
        gt=0,
        description="Per-request timeout in seconds"
    )
    max_urls: int = Field(
        default=1000,
        ge=0,
        description="Maximum number of addresses fetched (0 = unlimited)"
    )
    delay_ms: int = Field(
        default=100,
        ge=0,
        description="Delay after each request in milliseconds"
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)
    headers: Dict[str, str] = Field(default_factory=dict)
    follow_redirects: bool = True
    allowed_domains: FrozenSet[str] = frozenset()

    @field_validator('seed_url')
    @classmethod
    def _normalize_seed(cls, value: str) -> str:
        return UrlUtils.normalize_url(value)

    @field_validator('allowed_domains', mode='before')
    @classmethod
    def _normalize_domains(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if value is None:
            return frozenset()
        return frozenset(d.strip().lower() for d in value if d and d.strip())

    @field_validator('headers')
    @classmethod
    def _check_headers(cls, value: Dict[str, str]) -> Dict[str, str]:
        for name, header_value in value.items():
            if not name.strip() or any(c in name for c in ':\r\n '):
                raise ValueError(f"Invalid header name: {name!r}")
            if '\r' in header_value or '\n' in header_value:
                raise ValueError(f"Invalid header value for {name!r}")
        return value

    @model_validator(mode='after')
    def _seed_in_allowed_domains(self) -> 'CrawlConfig':
        host = UrlUtils.extract_host(self.seed_url)
        if self.allowed_domains and host not in self.allowed_domains:
            raise ValueError(
                f"Seed host {host!r} is outside the allowed domains "
                f"{sorted(self.allowed_domains)}"
            )
        return self

    @classmethod
    def build(cls, **values: Any) -> 'CrawlConfig':
        """Validate values into a config; failures become ConfigError."""
        try:
            return cls(**values)
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigError(f"Invalid crawl configuration: {messages}") from e

    def request_headers(self) -> Dict[str, str]:
        """Headers sent with every request; custom headers win."""
        headers = {'User-Agent': self.user_agent, 'Accept': DEFAULT_ACCEPT}
        headers.update(self.headers)
        return headers

    def domain_allowed(self, address: str) -> bool:
        if not self.allowed_domains:
            return True
        return UrlUtils.extract_host(address) in self.allowed_domains

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy for result files, with credentials masked."""
        data = self.model_dump(mode='json')
        data['allowed_domains'] = sorted(self.allowed_domains)
        data['headers'] = {
            name: '***' if name.lower() in _SENSITIVE_HEADERS else value
            for name, value in self.headers.items()
        }
        return data


class Settings(BaseSettings):
    """Application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="APICRAWL_"
    )

    seed_url: Optional[str] = Field(default=None, description="Starting URL of the crawl")
    max_depth: int = Field(default=10, description="Maximum crawl depth (0 = unlimited)")
    max_concurrent_requests: int = Field(default=10, description="Maximum concurrent requests")
    timeout_seconds: float = Field(default=30, description="Request timeout in seconds")
    max_urls: int = Field(default=1000, description="Maximum number of URLs to crawl")
    delay_ms: int = Field(default=100, description="Delay between requests (ms)")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent string")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    allowed_domains: List[str] = Field(default_factory=list, description="Hosts the crawl may visit")

    # Output
    output_format: OutputFormat = Field(default=OutputFormat.FLAT, description="Result file shape")
    output_path: Optional[Path] = Field(default=None, description="Result file; summary only when unset")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    send_to_logfire: bool = Field(default=False, description="Ship logs to Logfire")

    @classmethod
    def find_config_file(cls) -> Optional[Path]:
        """Find the configuration file in various locations."""
        possible_paths = [
            Path("config/crawler_config.yaml"),
            Path("crawler_config.yaml"),
            Path.home() / ".config" / "apicrawl" / "crawler_config.yaml",
        ]

        for path in possible_paths:
            if path.exists():
                return path
        return None

    @classmethod
    def from_yaml(cls, yaml_file: Optional[Path] = None, **overrides: Any) -> "Settings":
        """
        Load settings from a YAML file, environment variables and overrides.

        Keyword overrides (command-line flags) win over the YAML ``crawler``
        section, which wins over the environment.

        Raises:
            ConfigError: if the file cannot be read or values do not validate
        """
        config_data: Dict[str, Any] = {}

        if yaml_file is None:
            yaml_file = cls.find_config_file()
        elif not yaml_file.exists():
            raise ConfigError(f"Configuration file not found: {yaml_file}")

        if yaml_file is not None:
            try:
                with yaml_file.open(encoding="utf-8") as f:
                    yaml_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Error loading YAML configuration: {e}") from e
            if not isinstance(yaml_config, dict):
                raise ConfigError(f"YAML configuration must be a mapping: {yaml_file}")
            crawler_section = yaml_config.get('crawler', {}) or {}
            if not isinstance(crawler_section, dict):
                raise ConfigError("The 'crawler' section must be a mapping")
            config_data.update(crawler_section)

        config_data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e

    def to_crawl_config(self) -> CrawlConfig:
        """Validate the crawl-related settings into a frozen CrawlConfig."""
        if not self.seed_url:
            raise ConfigError("A seed URL is required")
        return CrawlConfig.build(
            seed_url=self.seed_url,
            max_depth=self.max_depth,
            max_concurrent_requests=self.max_concurrent_requests,
            timeout_seconds=self.timeout_seconds,
            max_urls=self.max_urls,
            delay_ms=self.delay_ms,
            user_agent=self.user_agent,
            headers=self.headers,
            follow_redirects=self.follow_redirects,
            allowed_domains=self.allowed_domains
        )
