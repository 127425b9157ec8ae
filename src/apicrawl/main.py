import argparse
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import logfire

from apicrawl import __version__
from apicrawl.config.settings import OutputFormat, Settings
from apicrawl.core.crawler import Crawler
from apicrawl.core.fetcher import Fetcher
from apicrawl.errors import ConfigError
from apicrawl.models.crawl_result_model import CrawlResult
from apicrawl.output.writer import format_endpoints, format_summary, save_results
from apicrawl.utils.logging import setup_logging


def parse_header(raw: str) -> Tuple[str, str]:
    """Split a ``key:value`` header flag."""
    key, sep, value = raw.partition(':')
    if not sep or not key.strip():
        raise ConfigError(f"Invalid header format {raw!r}. Expected 'key:value'")
    return key.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apicrawl",
        description="Crawl a REST API by following the links in its JSON responses"
    )
    parser.add_argument("url", help="Starting URL for the API crawl")
    parser.add_argument("-o", "--output", type=Path, help="Output file path for JSON results")
    parser.add_argument("-m", "--max-depth", type=int, help="Maximum crawling depth (0 = unlimited)")
    parser.add_argument("-c", "--concurrency", type=int, help="Maximum concurrent requests")
    parser.add_argument("-t", "--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--max-urls", type=int, help="Maximum number of URLs to crawl (0 = unlimited)")
    parser.add_argument("-d", "--delay", type=int, help="Delay between requests (ms)")
    parser.add_argument("--user-agent", help="User-Agent string")
    parser.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        help="Output format (default: flat)"
    )
    parser.add_argument(
        "--allowed-domain",
        action="append",
        default=None,
        help="Restrict crawling to this host (repeatable)"
    )
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        help="Custom header in key:value format (repeatable)"
    )
    parser.add_argument("--no-redirects", action="store_true", help="Don't follow HTTP redirects")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--detailed", action="store_true", help="Show detailed endpoint information")
    parser.add_argument("--max-show", type=int, default=50, help="Max endpoints in detailed view")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Merge command-line flags over the YAML file and environment."""
    headers: Dict[str, str] = dict(parse_header(h) for h in args.header)
    overrides = {
        'seed_url': args.url,
        'output_path': args.output,
        'max_depth': args.max_depth,
        'max_concurrent_requests': args.concurrency,
        'timeout_seconds': args.timeout,
        'max_urls': args.max_urls,
        'delay_ms': args.delay,
        'user_agent': args.user_agent,
        'output_format': args.format,
        'allowed_domains': args.allowed_domain,
        'follow_redirects': False if args.no_redirects else None,
        'log_level': "DEBUG" if args.verbose else None,
    }
    settings = Settings.from_yaml(args.config, **overrides)
    if headers:
        settings = settings.model_copy(update={'headers': {**settings.headers, **headers}})
    return settings


class CrawlerApp:
    """Main application class for the API crawler."""

    def __init__(self, settings: Settings, fetcher: Optional[Fetcher] = None):
        self.settings = settings
        self.fetcher = fetcher
        self.logger = logfire

    async def run(self) -> CrawlResult:
        """
        Crawl, write the artifact if an output path is set, return the result.

        Raises:
            ConfigError: for invalid settings; nothing is fetched
            OSError: if the artifact cannot be written
        """
        with logfire.span('app_run'):
            config = self.settings.to_crawl_config()
            crawler = Crawler(config, fetcher=self.fetcher)
            result = await crawler.crawl()

            if self.settings.output_path:
                save_results(result, self.settings.output_path, self.settings.output_format)
            else:
                self.logger.debug("No output path set, printing summary only")
            return result


def report(result: CrawlResult, detailed: bool = False, max_show: int = 50) -> List[str]:
    """Console blocks printed after a run."""
    blocks = [format_summary(result)]
    if detailed:
        blocks.append(format_endpoints(result, max_show))
    return blocks


async def run_cli(argv: Optional[Sequence[str]] = None, fetcher: Optional[Fetcher] = None) -> int:
    """
    Parse arguments, run the crawl and print the summary.

    Returns:
        0 when the run completes (even with failed fetches), 1 on
        configuration or output errors
    """
    args = build_parser().parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ConfigError as e:
        setup_logging()
        logfire.error("Invalid configuration", error=str(e))
        return 1

    setup_logging(settings.log_level, settings.send_to_logfire)

    try:
        result = await CrawlerApp(settings, fetcher=fetcher).run()
    except ConfigError as e:
        logfire.error("Invalid configuration", error=str(e))
        return 1
    except OSError as e:
        logfire.error("Failed to save results", path=str(settings.output_path), error=str(e))
        return 1

    for block in report(result, args.detailed, args.max_show):
        print(block)
        print()
    return 0
