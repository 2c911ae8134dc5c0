import logging
from typing import List

from sitebot.sitemap_parser import extract_urls

logger = logging.getLogger(__name__)


def diff_sitemaps(newer_content: str, older_content: str, extractor=None) -> List[str]:
    """
    Return URLs present in the newer sitemap but absent from the older one.

    Comparison is exact string equality on extracted <loc> values. Order follows
    the newer document, and a URL repeated in the newer document is repeated in
    the result. Never raises.
    """
    try:
        newer_urls = extract_urls(newer_content, extractor=extractor)
        older_urls = set(extract_urls(older_content, extractor=extractor)) if older_content else set()

        new_urls = [url for url in newer_urls if url not in older_urls]
        logger.info(f"Found {len(new_urls)} new URLs ({len(newer_urls)} in newer, {len(older_urls)} in older)")
        return new_urls
    except Exception as e:
        logger.error(f"Failed to compare sitemaps: {e}")
        return []
