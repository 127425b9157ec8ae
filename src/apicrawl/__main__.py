"""Command-line entry point for apicrawl."""
import asyncio
import sys

import logfire


def main():
    """Main entry point for the application."""
    from apicrawl.main import run_cli

    try:
        exit_code = asyncio.run(run_cli(sys.argv[1:]))
    except KeyboardInterrupt:
        logfire.warn("Crawl interrupted")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
