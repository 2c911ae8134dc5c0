"""
1.0 Monitor Orchestrator Module
Per-source monitoring attempts and full passes over the feed registry.

Key features:
- At most one network fetch per domain per UTC day (unless forced)
- current -> latest snapshot rotation plus a per-day archive copy
- New-URL detection against the previous snapshot
- Sequential passes with a fixed pause between sources
- Failures are contained per source and counted, never raised
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from sitebot.diff import diff_sitemaps
from sitebot.models import RunResult, SourceOutcome
from sitebot.registry import FeedRegistry, domain_of
from sitebot.reporting import ReportSink
from sitebot.sitemap_fetcher import SitemapFetcher
from sitebot.sitemap_parser import is_valid_sitemap
from sitebot.storage import KeyValueStore, SnapshotStore, today_utc

logger = logging.getLogger(__name__)

# 1.1 Outcome messages
MSG_THROTTLED = "Already updated today"
MSG_THROTTLED_UNSENT = "Already updated today, not sent"

DEFAULT_INTER_SOURCE_DELAY = 0.3


class SitemapMonitor:
    """
    2.0 SitemapMonitor Class
    Built once at process start and shared by every trigger handler.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        fetcher: Optional[SitemapFetcher] = None,
        sink: Optional[ReportSink] = None,
        config: Optional[Dict[str, Any]] = None,
        extractor=None,
        clock: Callable[[], str] = today_utc,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        2.1 Wire the monitor to its collaborators.

        Args:
            kv: Key-value store holding snapshots and the registry
            fetcher: Document fetcher (default: SitemapFetcher built from config)
            sink: Where notifications and reports go (default: none)
            config: Configuration dictionary (inter_source_delay, fetcher keys)
            extractor: URL extractor used for diffs (default: regex scan)
            clock: Returns today's date as YYYYMMDD
            sleep: Pause function between sources
        """
        config = config or {}
        self.snapshots = SnapshotStore(kv)
        self.registry = FeedRegistry(kv, attempt=self.download_sitemap)
        self.fetcher = fetcher or SitemapFetcher(config=config)
        self.sink = sink
        self.extractor = extractor
        self.clock = clock
        self.sleep = sleep
        self.inter_source_delay = float(config.get("inter_source_delay", DEFAULT_INTER_SOURCE_DELAY))

        # 2.1.1 One lock per domain so overlapping passes cannot interleave a rotation
        self._domain_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _domain_lock(self, domain: str) -> threading.Lock:
        with self._locks_guard:
            return self._domain_locks.setdefault(domain, threading.Lock())

    # =========================================================================
    # 3.0 PER-SOURCE ATTEMPT
    # =========================================================================

    def download_sitemap(self, source: str, force: bool = False) -> SourceOutcome:
        """
        3.1 Fetch a sitemap if needed, rotate its snapshots and diff it.

        Args:
            source: Sitemap URL
            force: Skip the once-per-day check

        Returns:
            SourceOutcome; errors are reported through it, never raised
        """
        try:
            domain = domain_of(source)
            today = self.clock()
            logger.info(f"Checking sitemap: {source} (domain={domain}, force={force})")

            with self._domain_lock(domain):
                return self._download_locked(source, domain, today, force)

        except Exception as e:
            logger.error(f"Failed to download sitemap {source}: {type(e).__name__}: {e}")
            return SourceOutcome.failure(f"Download failed: {e}")

    def _download_locked(self, source: str, domain: str, today: str, force: bool) -> SourceOutcome:
        # 3.1.1 Throttle branch: already fetched today, answer from stored snapshots
        if not force and self.snapshots.get_last_update(domain) == today:
            current = self.snapshots.get_current(domain)
            latest = self.snapshots.get_latest(domain)
            if current and latest:
                new_urls = diff_sitemaps(current, latest, extractor=self.extractor)
                logger.info(f"{domain} already updated today, reusing stored diff ({len(new_urls)} new)")
                return SourceOutcome(success=True, error_message=MSG_THROTTLED_UNSENT, new_urls=new_urls)

            logger.info(f"{domain} already updated today")
            return SourceOutcome(success=True, error_message=MSG_THROTTLED)

        # 3.1.2 Fetch; a failure here leaves every slot untouched
        body = self.fetcher.fetch(source)
        if not is_valid_sitemap(body):
            logger.warning(f"Body fetched from {source} does not look like a sitemap")

        # 3.1.3 Diff against the previous current, then promote it to latest
        new_urls: List[str] = []
        current = self.snapshots.get_current(domain)
        if current:
            new_urls = diff_sitemaps(body, current, extractor=self.extractor)
            self.snapshots.put_latest(domain, current)

        # 3.1.4 Store the new body and mark the day
        self.snapshots.put_current(domain, body)
        dated_key = self.snapshots.put_dated(domain, today, body)
        self.snapshots.put_last_update(domain, today)

        logger.info(f"Sitemap saved for {domain}: {dated_key}, {len(new_urls)} new URLs")
        return SourceOutcome(success=True, error_message="", dated_key=dated_key, new_urls=new_urls)

    # =========================================================================
    # 4.0 FULL PASS
    # =========================================================================

    def run_pass(
        self, force: bool = False, notify: bool = True, skip: Optional[Iterable[str]] = None
    ) -> RunResult:
        """
        4.1 Check every registered source once, in registry order.

        Args:
            force: Manual/on-demand pass that bypasses the daily throttle
            notify: Send the aggregate report to the sink
            skip: Sources already fetched in this run; counted as checked
                with no new URLs and not fetched again

        Returns:
            RunResult, even when every source failed
        """
        logger.info("=" * 60)
        logger.info(f"Starting monitoring pass (force={force})")
        logger.info(f"Run timestamp: {datetime.now(timezone.utc).isoformat()}")
        logger.info("=" * 60)

        result = RunResult()
        feeds = self.list_sources()
        logger.info(f"{len(feeds)} sources registered")

        if not feeds:
            logger.info("No sources configured")
            return result

        skipped = set(skip or ())
        for i, source in enumerate(feeds):
            if source in skipped:
                logger.info(f"Skipping source [{i + 1}/{len(feeds)}]: {source} (already fetched this run)")
                result.record(domain_of(source), SourceOutcome(success=True))
                continue

            logger.info(f"Checking source [{i + 1}/{len(feeds)}]: {source}")
            try:
                outcome = self.download_sitemap(source, force=force)
                domain = domain_of(source) if outcome.success else source
                result.record(domain, outcome)

                if not outcome.success:
                    logger.warning(f"Source {source} failed: {outcome.error_message}")
                elif outcome.new_urls:
                    logger.info(f"Domain {domain}: {len(outcome.new_urls)} new URLs")
                else:
                    logger.info(f"Domain {domain}: no new URLs")
            except Exception as e:
                result.record(source, SourceOutcome.failure(str(e)))
                logger.error(f"FAILED checking {source}: {type(e).__name__}: {e}")
                logger.exception("Full traceback:")

            # 4.1.1 Pause between sources to stay gentle on origin servers
            if i < len(feeds) - 1 and self.inter_source_delay > 0:
                self.sleep(self.inter_source_delay)

        logger.info("=" * 60)
        logger.info(
            f"Pass complete: {result.processed_count} processed, "
            f"{result.error_count} failed, {len(result.all_new_urls)} new URLs"
        )
        logger.info("=" * 60)

        if notify and self.sink is not None:
            self.sink.send_report(result)

        return result

    # =========================================================================
    # 5.0 EXTERNAL OPERATIONS
    # =========================================================================

    def run_single(self, source: str, force: bool = False, notify: bool = True) -> SourceOutcome:
        """5.1 One attempt on one source; notifies only when new URLs exist."""
        outcome = self.download_sitemap(source, force=force)
        if notify and self.sink is not None and outcome.success and outcome.new_urls:
            self.sink.send_update(source, outcome.new_urls)
        return outcome

    def list_sources(self) -> List[str]:
        return self.registry.list()

    def add_source(self, source: str, notify: bool = True) -> SourceOutcome:
        outcome = self.registry.add(source)
        if notify and self.sink is not None and outcome.success and outcome.new_urls:
            self.sink.send_update(source, outcome.new_urls)
        return outcome

    def remove_source(self, source: str) -> SourceOutcome:
        return self.registry.remove(source)

    def get_snapshot(self, domain: str, role: str = "current", day: Optional[str] = None) -> Optional[str]:
        """5.2 Stored body for a domain's current, latest or dated slot."""
        if role == "dated" and day is None:
            day = self.clock()
        return self.snapshots.get_snapshot(domain, role, day)
