"""
1.0 Main Entry Point
Command-line trigger for the sitemap monitor.

Usage:
    python -m sitebot.main                      (periodic pass, daily throttle)
    python -m sitebot.main --force              (manual pass, always fetch)
    python -m sitebot.main --add https://example.com/sitemap.xml
    python -m sitebot.main --remove https://example.com/sitemap.xml
    python -m sitebot.main --single https://example.com/sitemap.xml --force
    python -m sitebot.main --list
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from sitebot.config import DEFAULT_CONFIG, load_config
from sitebot.monitor import SitemapMonitor
from sitebot.reporting import LoggingSink
from sitebot.sitemap_fetcher import SitemapFetcher
from sitebot.storage import FileKeyValueStore

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """1.1 Setup logging"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler("sitebot.log"),
            logging.StreamHandler()
        ]
    )


def build_monitor(config: Dict[str, Any]) -> SitemapMonitor:
    """
    2.0 Construct the monitor and its collaborators from configuration.
    """
    store = FileKeyValueStore(data_dir=config.get("data_directory", "output"))
    fetcher = SitemapFetcher(config=config)
    return SitemapMonitor(kv=store, fetcher=fetcher, sink=LoggingSink(), config=config)


def seed_feeds(monitor: SitemapMonitor, feeds: List[str]) -> List[str]:
    """
    3.0 Register configured feeds that are not in the registry yet.

    Returns:
        Feeds added, each already fetched once by its registration
    """
    registered = set(monitor.list_sources())
    added = []
    for feed in feeds:
        if feed in registered:
            continue
        outcome = monitor.add_source(feed, notify=False)
        if outcome.success:
            added.append(feed)
        else:
            logger.warning(f"Could not seed {feed}: {outcome.error_message}")
    return added


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch sitemaps and report newly added URLs"
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--list",
        action="store_true",
        help="List monitored sitemaps"
    )
    action.add_argument(
        "--add",
        metavar="URL",
        default=None,
        help="Fetch a sitemap and start monitoring it"
    )
    action.add_argument(
        "--remove",
        metavar="URL",
        default=None,
        help="Stop monitoring a sitemap"
    )
    action.add_argument(
        "--single",
        metavar="URL",
        default=None,
        help="Check one sitemap without touching the registry"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Fetch even if already updated today"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to config.json (default: $SITEBOT_CONFIG or ./config.json)"
    )
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Do not send notifications or reports"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    4.0 Run the requested action.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    setup_logging()

    config = load_config(args.config)
    if config is None:
        logger.warning("Falling back to default configuration")
        config = dict(DEFAULT_CONFIG)

    monitor = build_monitor(config)
    notify = not args.no_notify

    if args.list:
        feeds = monitor.list_sources()
        logger.info(f"{len(feeds)} monitored sitemaps")
        for feed in feeds:
            print(feed)
        return 0

    if args.add:
        outcome = monitor.add_source(args.add, notify=notify)
    elif args.remove:
        outcome = monitor.remove_source(args.remove)
    elif args.single:
        outcome = monitor.run_single(args.single, force=args.force, notify=notify)
    else:
        added = seed_feeds(monitor, config.get("feeds", []))
        if added:
            logger.info(f"Seeded {len(added)} feeds from configuration")
        result = monitor.run_pass(force=args.force, notify=notify, skip=added)
        return 0 if result.error_count == 0 else 1

    if outcome.success:
        logger.info(f"[OK] {outcome.error_message or 'Done'} ({len(outcome.new_urls)} new URLs)")
        return 0
    logger.error(f"[FAIL] {outcome.error_message}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
