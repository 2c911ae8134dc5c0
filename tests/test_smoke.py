"""
SMOKE TESTS - Fast, Deterministic, No Network

Run: pytest tests/test_smoke.py

These tests verify code structure and wiring without any network calls.
Should pass 100% of the time if code is correct.
"""

import json
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

# =============================================================================
# 1. IMPORTS
# =============================================================================


def test_core_modules_import():
    from sitebot import (  # noqa: F401
        config,
        diff,
        insights,
        main,
        monitor,
        registry,
        reporting,
        sitemap_fetcher,
        sitemap_parser,
        storage,
    )


def test_dependencies_import():
    import lxml.etree  # noqa: F401
    import pandas  # noqa: F401
    import requests  # noqa: F401
    import urllib3  # noqa: F401

# =============================================================================
# 2. CONFIG FILE
# =============================================================================


def test_shipped_config_is_valid():
    from sitebot.config import validate_config

    with open(PROJECT_ROOT / "config.json") as f:
        config = json.load(f)
    assert validate_config(config)

# =============================================================================
# 3. WIRING
# =============================================================================


def test_monitor_wiring(tmp_path):
    from sitebot.main import build_monitor

    monitor = build_monitor({"data_directory": str(tmp_path)})
    assert monitor.list_sources() == []
    assert monitor.get_snapshot("example.com") is None
    assert monitor.fetcher.session is not None
