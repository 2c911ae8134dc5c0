"""
CONFIG TESTS - loading, defaults and validation
"""

import json

from sitebot.config import DEFAULT_CONFIG, load_config, validate_config


def write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return str(path)


def test_defaults_fill_missing_keys(tmp_path):
    config = load_config(write_config(tmp_path, {"feeds": ["https://a.com/sitemap.xml"], "timeout": 10}))
    assert config["feeds"] == ["https://a.com/sitemap.xml"]
    assert config["timeout"] == 10
    assert config["inter_source_delay"] == DEFAULT_CONFIG["inter_source_delay"]
    assert config["data_directory"] == "output"


def test_missing_file_returns_none(tmp_path):
    assert load_config(str(tmp_path / "nope.json")) is None


def test_invalid_json_returns_none(tmp_path):
    assert load_config(write_config(tmp_path, "{broken")) is None


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = write_config(tmp_path, {"cache_ttl": 60})
    monkeypatch.setenv("SITEBOT_CONFIG", path)
    assert load_config()["cache_ttl"] == 60


def test_validation_rules():
    assert validate_config({})
    assert validate_config({"feeds": ["http://a.com/s.xml"], "user_agent": "UA/1.0"})
    assert not validate_config([])
    assert not validate_config({"feeds": "https://a.com/s.xml"})
    assert not validate_config({"feeds": ["a.com/sitemap.xml"]})
    assert not validate_config({"timeout": -1})
    assert not validate_config({"max_retries": "3"})
    assert not validate_config({"inter_source_delay": True})
    assert not validate_config({"data_directory": ""})
