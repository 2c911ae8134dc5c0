"""
Feed Registry
The durable, ordered list of monitored sitemap URLs.

The list lives under a single key as a JSON array and is rewritten wholesale
on every mutation.
"""

import json
import logging
from typing import Callable, List, Optional
from urllib.parse import urlparse

from sitebot.exceptions import NotFoundError
from sitebot.models import SourceOutcome
from sitebot.storage import FEEDS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

MSG_ADDED = "Added"
MSG_UPDATED = "Already existed, updated"
MSG_NOT_FOUND = "Source not found"


def domain_of(source: str) -> str:
    """Host component of a sitemap URL, used as the snapshot namespace."""
    hostname = urlparse(source).hostname
    if not hostname:
        raise ValueError(f"Not an absolute URL: {source}")
    return hostname


class FeedRegistry:
    """
    Registry of monitored sources.

    Args:
        kv: Backing key-value store
        attempt: Callable running one monitoring attempt for a source; `add`
            only persists a new source when that attempt succeeds
    """

    def __init__(self, kv: KeyValueStore, attempt: Callable[[str], SourceOutcome], key: str = FEEDS_KEY):
        self.kv = kv
        self.attempt = attempt
        self.key = key

    def list(self) -> List[str]:
        """Persisted sources in order. Absent or corrupt data reads as empty."""
        try:
            raw = self.kv.get(self.key)
        except Exception as e:
            logger.error(f"Could not read feeds: {e}")
            return []
        if not raw:
            return []
        try:
            feeds = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Feed list is corrupt, treating as empty: {e}")
            return []
        if not isinstance(feeds, list) or not all(isinstance(f, str) for f in feeds):
            logger.warning("Feed list is not a list of strings, treating as empty")
            return []
        return feeds

    def _save(self, feeds: List[str]) -> None:
        self.kv.put(self.key, json.dumps(feeds))

    def _domain_owner(self, feeds: List[str], domain: str) -> Optional[str]:
        for feed in feeds:
            try:
                if domain_of(feed) == domain:
                    return feed
            except ValueError:
                continue
        return None

    def add(self, source: str) -> SourceOutcome:
        """
        Monitor a source, registering it if new.

        A new source is appended only after a successful first attempt. An
        existing source is re-checked without being duplicated.
        """
        logger.info(f"Adding sitemap source: {source}")
        try:
            feeds = self.list()

            if source in feeds:
                result = self.attempt(source)
                if not result.success:
                    return result
                result.error_message = MSG_UPDATED
                return result

            # Snapshots are keyed by host; a second sitemap on the same host
            # would overwrite the first one's slots.
            domain = domain_of(source)
            owner = self._domain_owner(feeds, domain)
            if owner is not None:
                logger.warning(f"Refusing {source}: {domain} is already monitored via {owner}")
                return SourceOutcome.failure(f"Domain {domain} is already monitored via {owner}")

            result = self.attempt(source)
            if not result.success:
                return result

            feeds.append(source)
            self._save(feeds)
            logger.info(f"Added sitemap source: {source}")
            result.error_message = result.error_message or MSG_ADDED
            return result
        except Exception as e:
            logger.error(f"Failed to add {source}: {e}")
            return SourceOutcome.failure(f"Add failed: {e}")

    def remove(self, source: str) -> SourceOutcome:
        """Unregister a source. No fetch is performed."""
        logger.info(f"Removing sitemap source: {source}")
        try:
            feeds = self.list()
            if source not in feeds:
                raise NotFoundError(source)
            feeds.remove(source)
            self._save(feeds)
            logger.info(f"Removed sitemap source: {source}")
            return SourceOutcome(success=True)
        except NotFoundError:
            logger.warning(f"Source not registered: {source}")
            return SourceOutcome.failure(MSG_NOT_FOUND)
        except Exception as e:
            logger.error(f"Failed to remove {source}: {e}")
            return SourceOutcome.failure(f"Remove failed: {e}")
