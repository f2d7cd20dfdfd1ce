"""CLI for scraping JobsDB listings with a pool of browser worker nodes.

Usage::

    # Find how many listing pages a region currently has
    python -m jobsdb_scraper.cli max-pages hk

    # Scrape every available page of Hong Kong listings
    python -m jobsdb_scraper.cli scrape --region hk

    # Scrape the first 20 pages of Thailand listings into ./out, keeping
    # only jobs that mention python or data
    python -m jobsdb_scraper.cli scrape -r th -n 20 -s ./out -k python,data

``scrape`` is the default command, so ``python -m jobsdb_scraper.cli -r hk``
works too.  Set ``LOG_ENABLED=true`` to write logs under
``./jobsdb_scrape_logs`` and keep worker temp files for inspection.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
from collections.abc import Awaitable
from pathlib import Path

from jobsdb_scraper.config.settings import Settings
from jobsdb_scraper.services.last_page_finder import NOT_FOUND, LastPageFinder
from jobsdb_scraper.services.urls import REGIONS, get_base_url
from jobsdb_scraper.utils.errors import ConfigurationError, JobsDBScraperError, PageDiscoveryError
from jobsdb_scraper.utils.logging import configure_from_settings, get_logger

_COMMANDS = ("scrape", "max-pages")

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------


def parse_region(value: str) -> str:
    """Return *value* when it is a supported region code."""
    region = value.strip().lower()
    if region not in REGIONS:
        raise ConfigurationError("Region must be hk (hong kong) or th (thailand)")
    return region


def parse_save_dir(value: str | Path) -> Path:
    """Return *value* as a path after checking it is a writable directory."""
    path = Path(value)
    if not path.is_dir():
        raise ConfigurationError(
            "The directory specified to save results file to is invalid, "
            "try specifying the absolute path"
        )
    if not os.access(path, os.W_OK):
        raise ConfigurationError("Directory path to results folder does not have write permissions")
    return path


def resolve_num_pages(value: str | int, max_pages: int) -> int:
    """Resolve the requested page count against the pages available.

    ``"all"`` means every available page; otherwise *value* must be an
    integer in ``[1, max_pages]``.
    """
    if isinstance(value, str) and value.strip().lower() == "all":
        return max_pages
    try:
        num_pages = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("Not a number.") from exc
    if num_pages < 1:
        raise ConfigurationError("numPages>=1")
    if num_pages > max_pages:
        raise ConfigurationError(f"numPages <= {max_pages}")
    return num_pages


async def find_max_pages(region: str, settings: Settings, finder: LastPageFinder | None = None) -> int:
    """Discover the last page with results for *region*.

    Raises
    ------
    PageDiscoveryError
        The search found no boundary.
    """
    finder = finder or LastPageFinder(upper_bound=settings.search_upper_bound)
    last_page = await finder.find_last_page(region)
    if last_page == NOT_FOUND:
        raise PageDiscoveryError(
            "Couldn't find the pages available to scrape, please file an issue on github"
        )
    return last_page


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_max_pages(args: argparse.Namespace, settings: Settings) -> int:
    """Print how many pages can be scraped for a region."""
    region = parse_region(args.region)
    last_page = await find_max_pages(region, settings)
    print(f"You can scrape up to {last_page} pages of jobs")
    return 0


async def _handle_scrape(args: argparse.Namespace, settings: Settings) -> int:
    """Discover the page count, then run a full multi-worker scrape."""
    from jobsdb_scraper.pipeline.coordinator import ScrapeCoordinator

    region = parse_region(args.region)
    save_dir = parse_save_dir(args.save_dir) if args.save_dir else Path(settings.results_dir)

    print(f"Finding pages available to scrape on {get_base_url(region)}...")
    max_pages = await find_max_pages(region, settings)
    num_pages = resolve_num_pages(args.num_pages, max_pages)

    coordinator = ScrapeCoordinator(settings=settings)
    await coordinator.run(
        region=region,
        num_pages=num_pages,
        max_pages=max_pages,
        save_dir=save_dir,
        keywords=args.keywords or None,
    )
    return 0


async def _run_cancellable(handler: Awaitable[int]) -> int:
    """Await *handler*, cancelling it on SIGTERM / SIGINT.

    Cancellation unwinds through the coordinator's cleanup, so workers are
    stopped and temp files removed before the process exits.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(handler)
    for signum in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(signum, task.cancel)
        except (NotImplementedError, RuntimeError):
            pass  # not supported on this platform / thread
    try:
        return await task
    except asyncio.CancelledError:
        print("Scrape cancelled.", file=sys.stderr)
        return 1
    finally:
        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    try:
        if args.command == "max-pages":
            return await _run_cancellable(_handle_max_pages(args, settings))
        return await _run_cancellable(_handle_scrape(args, settings))
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except JobsDBScraperError as exc:
        logger.error("scrape_failed", error=str(exc))
        print(str(exc), file=sys.stderr)
        return 1


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the JobsDB scrape CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m jobsdb_scraper.cli",
        description="Scrape job listings from JobsDB with parallel headless browsers.",
    )
    subparsers = parser.add_subparsers(dest="command", help="JobsDB scraper commands")

    # -- max-pages --
    max_parser = subparsers.add_parser(
        "max-pages", help="Find the max number of pages you can scrape for a region"
    )
    max_parser.add_argument("region", help="hk (Hong Kong) or th (Thailand)")

    # -- scrape --
    scrape_parser = subparsers.add_parser("scrape", help="Scrape job listings (default)")
    scrape_parser.add_argument(
        "-r",
        "--region",
        required=True,
        help="hk (Hong Kong) or th (Thailand)",
    )
    scrape_parser.add_argument(
        "-n",
        "--num-pages",
        default="all",
        help="Number of pages to scrape, or 'all' (default: all)",
    )
    scrape_parser.add_argument(
        "-s",
        "--save-dir",
        default=None,
        help="Directory to store the results file (default: ./jobsdb_scrape_results)",
    )
    scrape_parser.add_argument(
        "-k",
        "--keywords",
        default="",
        help="Comma-separated keywords to filter jobs",
    )

    return parser


def _with_default_command(argv: list[str]) -> list[str]:
    """Insert ``scrape`` when no subcommand is given."""
    if argv and (argv[0] in _COMMANDS or argv[0] in ("-h", "--help")):
        return argv
    return ["scrape", *argv]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the JobsDB scraper."""
    raw = sys.argv[1:] if argv is None else argv
    parser = _build_parser()
    args = parser.parse_args(_with_default_command(raw))

    settings = Settings()
    configure_from_settings(settings.log_enabled, "client", settings.log_dir, settings.log_level)

    exit_code = asyncio.run(_dispatch(args, settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
