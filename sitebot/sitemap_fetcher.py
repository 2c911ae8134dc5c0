"""
1.0 Sitemap Fetcher Module
Fetches sitemap documents over HTTP, including gzip-compressed ones.

Key features:
- Automatic retry on transient failures (429, 500, 502, 503, 504)
- Exponential backoff between retries
- Browser user agent and a short cache hint on every request
- Streamed gzip decompression for *.gz sitemaps
- Session reuse for connection pooling
"""

import gzip
import logging
import zlib
from typing import Optional, Dict, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sitebot.exceptions import DecompressionError, FetchError

logger = logging.getLogger(__name__)

# 1.1 Default request settings
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
DEFAULT_CACHE_TTL = 300  # five minutes
GZIP_SUFFIX = ".gz"


class SitemapFetcher:
    """
    2.0 SitemapFetcher Class
    Fetches sitemap text with built-in retry logic.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        """
        2.1 Initialize the SitemapFetcher with retry strategy.

        Args:
            config: Configuration dictionary with optional keys:
                - user_agent: Custom user agent string
                - timeout: Request timeout in seconds (default: 30)
                - max_retries: Number of retry attempts (default: 3)
                - cache_ttl: Cache hint in seconds sent with each request (default: 300)
            session: Pre-built session (tests inject a mock here)
        """
        config = config or {}

        self.user_agent = config.get("user_agent", DEFAULT_USER_AGENT)
        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            self.user_agent = DEFAULT_USER_AGENT
            logger.warning(f"Invalid user_agent in config. Using default: {self.user_agent}")

        self.timeout = config.get("timeout", 30)
        self.max_retries = config.get("max_retries", 3)
        self.cache_ttl = int(config.get("cache_ttl", DEFAULT_CACHE_TTL))

        self.session = session or self._create_session_with_retries()

        logger.info(
            f"SitemapFetcher initialized: "
            f"User-Agent={self.user_agent[:50]}..., "
            f"timeout={self.timeout}s, "
            f"cache_ttl={self.cache_ttl}s"
        )

    def _create_session_with_retries(self) -> requests.Session:
        """
        2.2 Create a requests Session with automatic retry logic.

        Retry strategy:
        - Retries on: 429 (rate limit), 500, 502, 503, 504 (server errors)
        - Backoff: 1s, 2s, 4s between retries (exponential)
        - Also retries on connection errors
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET"],
            raise_on_status=False,  # final status is inspected in fetch()
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update(self._default_headers())

        return session

    def _default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Cache-Control": f"max-age={self.cache_ttl}",
        }

    def fetch(self, sitemap_url: str, timeout: Optional[int] = None) -> str:
        """
        2.3 Fetch a sitemap document as text.

        Args:
            sitemap_url: The URL of the sitemap to fetch
            timeout: Optional override for request timeout

        Returns:
            Document body as text (decompressed for *.gz URLs)

        Raises:
            FetchError: invalid URL, transport failure or non-2xx status
            DecompressionError: gzip body stream missing or invalid
        """
        # 2.3.1 Validate URL
        if not sitemap_url or not sitemap_url.startswith(("http://", "https://")):
            raise FetchError(sitemap_url, reason=f"Invalid sitemap URL: {sitemap_url}")

        timeout = timeout or self.timeout
        is_gzip = sitemap_url.endswith(GZIP_SUFFIX)

        logger.info(f"Fetching sitemap: {sitemap_url}")

        # 2.3.2 Make request (retries handled automatically by adapter)
        try:
            response = self.session.get(
                sitemap_url,
                headers=self._default_headers(),
                timeout=timeout,
                stream=is_gzip,
            )
        except requests.exceptions.Timeout as e:
            raise FetchError(sitemap_url, reason=f"Timeout after {timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(sitemap_url, reason=f"Request error: {e}") from e

        try:
            # 2.3.3 Check for success
            if not response.ok:
                logger.error(f"Failed to fetch {sitemap_url}: status={response.status_code}")
                raise FetchError(sitemap_url, status_code=response.status_code, reason=response.reason or "")

            # 2.3.4 Decode body
            if is_gzip:
                logger.info(f"Decompressing gzipped sitemap: {sitemap_url}")
                content = self._read_gzip(response)
            else:
                content = response.text
        finally:
            response.close()

        logger.info(
            f"Successfully fetched {sitemap_url} "
            f"(status={response.status_code}, size={len(content):,} chars)"
        )
        return content

    def _read_gzip(self, response: requests.Response) -> str:
        """
        2.4 Stream the raw body through gzip decompression and decode it.
        """
        raw = response.raw
        if raw is None:
            raise DecompressionError("Response body is missing, cannot decompress.")

        try:
            with gzip.GzipFile(fileobj=raw) as stream:
                data = stream.read()
        except (OSError, EOFError, zlib.error) as e:
            raise DecompressionError(f"Invalid gzip stream: {e}") from e

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            encoding = response.encoding or "latin-1"
            logger.warning(f"Body is not UTF-8, decoding as {encoding}")
            return data.decode(encoding, errors="replace")


# Example usage for testing
if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    fetcher = SitemapFetcher(config={"timeout": 10, "max_retries": 2})

    test_url = "https://www.google.com/sitemap.xml"
    try:
        content = fetcher.fetch(test_url)
        logger.info(f"Fetched {len(content):,} chars from {test_url}")
    except (FetchError, DecompressionError) as e:
        logger.error(f"Failed to fetch {test_url}: {e}")
