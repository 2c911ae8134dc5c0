"""
1.0 Storage Module
Key-value persistence and per-domain sitemap snapshot slots.

Key layout (kept stable so existing data stays readable):
    rss_feeds                              (registry JSON array)
    last_update_<domain>                   (YYYYMMDD of last successful fetch)
    sitemap_current_<domain>               (most recently fetched body)
    sitemap_latest_<domain>                (previous current body)
    sitemap_dated_<domain>_<YYYYMMDD>      (per-day archive)
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Dict, Optional

from sitebot.exceptions import StorageError

logger = logging.getLogger(__name__)

FEEDS_KEY = "rss_feeds"
SNAPSHOT_ROLES = ("current", "latest", "dated")


def today_utc() -> str:
    """Current UTC calendar day as YYYYMMDD."""
    return datetime.now(timezone.utc).strftime("%Y%m%d")


# =============================================================================
# 2.0 KEY-VALUE BACKENDS
# =============================================================================

class KeyValueStore:
    """
    2.1 Minimal get/put contract.

    No transactions: every put is an independent write.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """2.2 Dict-backed store for tests and throwaway runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self):
        return sorted(self._data)


class FileKeyValueStore(KeyValueStore):
    """
    2.3 One UTF-8 file per key under a data directory.

    Layout:
        output/
            rss_feeds
            last_update_example.com
            sitemap_current_example.com
            sitemap_dated_example.com_20250101
    """

    def __init__(self, data_dir: str = "output"):
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)
        logger.info(f"FileKeyValueStore initialized with data directory: {data_dir}")

    def _path(self, key: str) -> str:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return os.path.join(self.data_dir, key)

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise StorageError(f"Could not read {key}: {e}") from e

    def put(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp_")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Could not write {key}: {e}") from e
        logger.debug(f"Wrote {len(value):,} chars to {path}")


# =============================================================================
# 3.0 SNAPSHOT SLOTS
# =============================================================================

class SnapshotStore:
    """
    3.1 Per-domain snapshot slots on top of a KeyValueStore.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @staticmethod
    def current_key(domain: str) -> str:
        return f"sitemap_current_{domain}"

    @staticmethod
    def latest_key(domain: str) -> str:
        return f"sitemap_latest_{domain}"

    @staticmethod
    def dated_key(domain: str, day: str) -> str:
        return f"sitemap_dated_{domain}_{day}"

    @staticmethod
    def last_update_key(domain: str) -> str:
        return f"last_update_{domain}"

    def get_current(self, domain: str) -> Optional[str]:
        return self.kv.get(self.current_key(domain))

    def get_latest(self, domain: str) -> Optional[str]:
        return self.kv.get(self.latest_key(domain))

    def get_dated(self, domain: str, day: str) -> Optional[str]:
        return self.kv.get(self.dated_key(domain, day))

    def get_last_update(self, domain: str) -> Optional[str]:
        return self.kv.get(self.last_update_key(domain))

    def put_current(self, domain: str, body: str) -> None:
        self.kv.put(self.current_key(domain), body)

    def put_latest(self, domain: str, body: str) -> None:
        self.kv.put(self.latest_key(domain), body)

    def put_dated(self, domain: str, day: str, body: str) -> str:
        key = self.dated_key(domain, day)
        self.kv.put(key, body)
        return key

    def put_last_update(self, domain: str, day: str) -> None:
        self.kv.put(self.last_update_key(domain), day)

    def get_snapshot(self, domain: str, role: str = "current", day: Optional[str] = None) -> Optional[str]:
        """
        3.2 Read one snapshot slot.

        Args:
            domain: Snapshot namespace (sitemap host)
            role: 'current', 'latest' or 'dated'
            day: YYYYMMDD for 'dated' (default: today, UTC)

        Returns:
            Stored body, or None if absent, unreadable or role is unknown
        """
        try:
            if role == "current":
                return self.get_current(domain)
            if role == "latest":
                return self.get_latest(domain)
            if role == "dated":
                return self.get_dated(domain, day or today_utc())
            raise ValueError(f"Unknown snapshot role: {role}")
        except (StorageError, ValueError) as e:
            logger.error(f"Could not read {role} snapshot for {domain}: {e}")
            return None
