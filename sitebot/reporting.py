"""
Reporting
Turns per-source outcomes and pass results into human-readable messages and
hands them to a sink. Delivery is best effort: sink failures are logged and
never retried.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlparse

from sitebot.insights import domain_stats, keyword_stats
from sitebot.models import RunResult

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 36
BATCH_URL_LIMIT = 5
REPORT_SAMPLE_SIZE = 3


def format_update_notification(source: str, new_urls: List[str], batch_mode: bool = False) -> Optional[str]:
    """
    Message announcing new URLs for one source.

    Returns None when there is nothing new (silent mode). In batch mode only
    the first few URLs are listed.
    """
    if not new_urls:
        return None

    domain = urlparse(source).hostname or source
    shown = new_urls[:BATCH_URL_LIMIT] if batch_mode else list(new_urls)

    lines = [
        f"{domain}",
        "-" * 36,
        f"New content found ({len(new_urls)} URLs)",
        f"Source: {source}",
        "",
        f"New links ({len(shown)}/{len(new_urls)})",
    ]
    lines.extend(f"{i}. {url}" for i, url in enumerate(shown, start=1))
    hidden = len(new_urls) - len(shown)
    if hidden > 0:
        lines.append(f"... {hidden} more links not shown")
    return "\n".join(lines)


def format_unified_report(result: RunResult, now: Optional[datetime] = None) -> str:
    """Cross-source summary of one monitoring pass."""
    now = now or datetime.now(timezone.utc)

    lines = [
        "Monitoring summary report",
        f"Generated: {now.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        SEPARATOR,
        "",
        "Domain check summary",
    ]
    checked = f"Checked: {result.processed_count} sitemaps"
    if result.error_count > 0:
        checked += f", failed: {result.error_count}"
    lines.extend([checked, ""])

    domains = sorted(
        (d for d in result.domain_results.values() if d.total_new > 0),
        key=lambda d: d.total_new,
        reverse=True,
    )
    if not domains:
        lines.extend(["No new content", ""])
    for domain_result in domains:
        lines.append(domain_result.domain)
        lines.append(f"{domain_result.total_new} new links")
        for i, url in enumerate(domain_result.new_urls[:REPORT_SAMPLE_SIZE], start=1):
            lines.append(f"{i}. {url}")
        remaining = len(domain_result.new_urls) - REPORT_SAMPLE_SIZE
        if remaining > 0:
            lines.append(f"...({remaining} more)")
        lines.append("")

    lines.append("Keyword summary")
    if result.all_new_urls:
        stats = keyword_stats(result.all_new_urls)
        if stats:
            lines.extend(f"{i}. {s.keyword} ({s.count})" for i, s in enumerate(stats, start=1))
        else:
            lines.append("No keywords extracted")
    else:
        lines.append("No new content in this check")

    lines.extend(["", SEPARATOR, f"Total new: {len(result.all_new_urls)} links"])
    return "\n".join(lines)


def format_keywords_summary(urls: List[str]) -> Optional[str]:
    """Keyword and domain distribution for a batch of URLs; None if empty."""
    if not urls:
        return None

    keywords = keyword_stats(urls)
    domains = domain_stats(urls)
    keyword_text = ", ".join(f"{s.keyword} ({s.count})" for s in keywords) or "No keywords"
    domain_text = "\n".join(f"{s.domain}: {s.count}" for s in domains) or "No domain stats"

    return "\n".join([
        "Keyword summary",
        SEPARATOR,
        f"Total new: {len(urls)}",
        "",
        "Top keywords:",
        keyword_text,
        "",
        "Domains:",
        domain_text,
        SEPARATOR,
    ])


class ReportSink:
    """Receives formatted results. Subclasses deliver them somewhere."""

    def deliver(self, message: str) -> None:
        raise NotImplementedError

    def _safe_deliver(self, message: str) -> bool:
        try:
            self.deliver(message)
            return True
        except Exception as e:
            logger.error(f"Failed to deliver message via {type(self).__name__}: {e}")
            return False

    def send_update(self, source: str, new_urls: List[str], batch_mode: bool = False) -> bool:
        """Per-source notification; silent when there are no new URLs."""
        message = format_update_notification(source, new_urls, batch_mode=batch_mode)
        if message is None:
            logger.info(f"Silent mode: no new URLs for {source}, skipping notification")
            return False
        return self._safe_deliver(message)

    def send_report(self, result: RunResult) -> bool:
        return self._safe_deliver(format_unified_report(result))


class LoggingSink(ReportSink):
    """Writes messages to the log."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def deliver(self, message: str) -> None:
        logger.log(self.level, "\n" + message)


class CollectingSink(ReportSink):
    """Keeps delivered messages in memory (used by tests and dry runs)."""

    def __init__(self):
        self.messages: List[str] = []

    def deliver(self, message: str) -> None:
        self.messages.append(message)
