"""
FETCHER TESTS - HTTP behaviour with a mocked session, no network
"""

import gzip
import io
from unittest.mock import Mock

import pytest
import requests

from sitebot.exceptions import DecompressionError, FetchError
from sitebot.sitemap_fetcher import DEFAULT_USER_AGENT, SitemapFetcher

BODY = '<urlset><url><loc>https://a.com/1</loc></url></urlset>'


def make_response(status_code=200, text=BODY, raw=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    response.text = text
    response.raw = raw
    response.encoding = "utf-8"
    return response


def make_fetcher(response=None, side_effect=None, config=None):
    session = Mock()
    session.get.return_value = response
    session.get.side_effect = side_effect
    return SitemapFetcher(config=config, session=session), session

# =============================================================================
# 1. PLAIN DOCUMENTS
# =============================================================================


def test_fetch_returns_text():
    fetcher, session = make_fetcher(make_response())
    assert fetcher.fetch("https://a.com/sitemap.xml") == BODY

    _, kwargs = session.get.call_args
    assert kwargs["stream"] is False
    assert kwargs["timeout"] == 30


def test_browser_user_agent_and_cache_hint_are_sent():
    fetcher, session = make_fetcher(make_response())
    fetcher.fetch("https://a.com/sitemap.xml")

    headers = session.get.call_args.kwargs["headers"]
    assert headers["User-Agent"] == DEFAULT_USER_AGENT
    assert "Mozilla/5.0" in headers["User-Agent"]
    assert headers["Cache-Control"] == "max-age=300"


def test_config_overrides():
    config = {"user_agent": "Custom/2.0", "timeout": 5, "cache_ttl": 60}
    fetcher, session = make_fetcher(make_response(), config=config)
    fetcher.fetch("https://a.com/sitemap.xml")

    kwargs = session.get.call_args.kwargs
    assert kwargs["headers"]["User-Agent"] == "Custom/2.0"
    assert kwargs["headers"]["Cache-Control"] == "max-age=60"
    assert kwargs["timeout"] == 5


def test_blank_user_agent_falls_back_to_default():
    fetcher, _ = make_fetcher(make_response(), config={"user_agent": "  "})
    assert fetcher.user_agent == DEFAULT_USER_AGENT

# =============================================================================
# 2. FAILURES
# =============================================================================


def test_non_success_status_raises_fetch_error():
    fetcher, _ = make_fetcher(make_response(status_code=404, reason="Not Found"))
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch("https://a.com/sitemap.xml")
    assert exc_info.value.status_code == 404
    assert str(exc_info.value) == "HTTP 404: Not Found"


def test_transport_error_raises_fetch_error_without_status():
    fetcher, _ = make_fetcher(side_effect=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch("https://a.com/sitemap.xml")
    assert exc_info.value.status_code is None
    assert "refused" in str(exc_info.value)


def test_timeout_raises_fetch_error():
    fetcher, _ = make_fetcher(side_effect=requests.exceptions.Timeout())
    with pytest.raises(FetchError, match="Timeout"):
        fetcher.fetch("https://a.com/sitemap.xml")


def test_invalid_url_is_rejected_without_request():
    fetcher, session = make_fetcher(make_response())
    with pytest.raises(FetchError):
        fetcher.fetch("ftp://a.com/sitemap.xml")
    session.get.assert_not_called()

# =============================================================================
# 3. GZIP
# =============================================================================


def test_gzip_body_is_streamed_and_decompressed():
    raw = io.BytesIO(gzip.compress(BODY.encode("utf-8")))
    fetcher, session = make_fetcher(make_response(text=None, raw=raw))

    assert fetcher.fetch("https://a.com/sitemap.xml.gz") == BODY
    assert session.get.call_args.kwargs["stream"] is True


def test_gzip_missing_body_raises_decompression_error():
    fetcher, _ = make_fetcher(make_response(raw=None))
    with pytest.raises(DecompressionError):
        fetcher.fetch("https://a.com/sitemap.xml.gz")


def test_gzip_invalid_stream_raises_decompression_error():
    fetcher, _ = make_fetcher(make_response(raw=io.BytesIO(b"definitely not gzip")))
    with pytest.raises(DecompressionError):
        fetcher.fetch("https://a.com/sitemap.xml.gz")


def test_gzip_error_status_is_fetch_error():
    fetcher, _ = make_fetcher(make_response(status_code=503, reason="Service Unavailable"))
    with pytest.raises(FetchError) as exc_info:
        fetcher.fetch("https://a.com/sitemap.xml.gz")
    assert exc_info.value.status_code == 503


def test_default_session_has_retry_adapter():
    fetcher = SitemapFetcher(config={"max_retries": 2})
    adapter = fetcher.session.get_adapter("https://a.com/")
    assert adapter.max_retries.total == 2
    assert 429 in adapter.max_retries.status_forcelist
