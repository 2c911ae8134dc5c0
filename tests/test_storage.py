"""
STORAGE TESTS - key-value backends and snapshot slots
"""

import os

import pytest

from sitebot.exceptions import StorageError
from sitebot.storage import (
    FileKeyValueStore,
    MemoryKeyValueStore,
    SnapshotStore,
    today_utc,
)

# =============================================================================
# 1. BACKENDS
# =============================================================================


def test_memory_store_get_put():
    kv = MemoryKeyValueStore()
    assert kv.get("missing") is None
    kv.put("k", "v")
    assert kv.get("k") == "v"
    kv.put("k", "v2")
    assert kv.get("k") == "v2"


def test_file_store_round_trip(tmp_path):
    kv = FileKeyValueStore(data_dir=str(tmp_path / "data"))
    assert kv.get("sitemap_current_example.com") is None

    kv.put("sitemap_current_example.com", "<urlset>é</urlset>")
    assert kv.get("sitemap_current_example.com") == "<urlset>é</urlset>"
    assert os.path.exists(tmp_path / "data" / "sitemap_current_example.com")


def test_file_store_leaves_no_temp_files(tmp_path):
    kv = FileKeyValueStore(data_dir=str(tmp_path))
    kv.put("a", "1")
    kv.put("a", "2")
    assert sorted(os.listdir(tmp_path)) == ["a"]


def test_file_store_rejects_path_keys(tmp_path):
    kv = FileKeyValueStore(data_dir=str(tmp_path))
    with pytest.raises(StorageError):
        kv.put("../escape", "x")
    with pytest.raises(StorageError):
        kv.get("")

# =============================================================================
# 2. SNAPSHOT SLOTS
# =============================================================================


def test_key_names():
    assert SnapshotStore.current_key("a.com") == "sitemap_current_a.com"
    assert SnapshotStore.latest_key("a.com") == "sitemap_latest_a.com"
    assert SnapshotStore.dated_key("a.com", "20250101") == "sitemap_dated_a.com_20250101"
    assert SnapshotStore.last_update_key("a.com") == "last_update_a.com"


def test_get_snapshot_roles():
    kv = MemoryKeyValueStore()
    snapshots = SnapshotStore(kv)
    snapshots.put_current("a.com", "C")
    snapshots.put_latest("a.com", "L")
    key = snapshots.put_dated("a.com", "20250101", "D")

    assert key == "sitemap_dated_a.com_20250101"
    assert snapshots.get_snapshot("a.com") == "C"
    assert snapshots.get_snapshot("a.com", "latest") == "L"
    assert snapshots.get_snapshot("a.com", "dated", "20250101") == "D"
    assert snapshots.get_snapshot("a.com", "dated", "20250102") is None


def test_dated_defaults_to_today():
    snapshots = SnapshotStore(MemoryKeyValueStore())
    snapshots.put_dated("a.com", today_utc(), "TODAY")
    assert snapshots.get_snapshot("a.com", "dated") == "TODAY"


def test_unknown_role_returns_none():
    snapshots = SnapshotStore(MemoryKeyValueStore())
    snapshots.put_current("a.com", "C")
    assert snapshots.get_snapshot("a.com", "previous") is None


def test_today_format():
    day = today_utc()
    assert len(day) == 8 and day.isdigit()
