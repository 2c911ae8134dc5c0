"""
Insight Aggregator
Keyword and domain statistics for a batch of newly discovered URLs.
"""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

import pandas as pd

from sitebot.models import DomainStat, KeywordStat

logger = logging.getLogger(__name__)

# Segments that say nothing about the content
STOPWORDS = {"index", "page", "post", "article", "news", "blog"}
NUMERIC_SEGMENT = re.compile(r"^\d+$")
DEFAULT_KEYWORD_LIMIT = 10


def _parse(url: str) -> Optional[Tuple[str, str]]:
    """(host, path) for an absolute URL, None otherwise."""
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except (ValueError, AttributeError):
        return None
    if not parsed.scheme or not host:
        return None
    return host, parsed.path


def path_keywords(path: str) -> List[str]:
    """Keyword candidates from one URL path, in path order."""
    keywords = []
    for segment in path.split("/"):
        if len(segment) <= 2:
            continue
        if NUMERIC_SEGMENT.match(segment) or "." in segment:
            continue
        if segment.lower() in STOPWORDS:
            continue
        cleaned = segment.replace("-", "").lower()
        if len(cleaned) > 2:
            keywords.append(cleaned)
    return keywords


def _ranked_counts(values: List[str]) -> pd.Series:
    """Counts per value, highest first; ties keep first-appearance order."""
    counts = pd.Series(values, dtype="object").groupby(values, sort=False).size()
    return counts.sort_values(ascending=False, kind="stable")


def keyword_stats(urls: List[str], limit: int = DEFAULT_KEYWORD_LIMIT) -> List[KeywordStat]:
    """Top path keywords across the URLs, by descending count."""
    keywords = []
    for url in urls or []:
        parsed = _parse(url)
        if parsed is None:
            continue
        keywords.extend(path_keywords(parsed[1]))

    if not keywords:
        return []

    ranked = _ranked_counts(keywords).head(limit)
    logger.debug(f"Top keywords: {ranked.to_dict()}")
    return [KeywordStat(keyword=str(k), count=int(c)) for k, c in ranked.items()]


def domain_stats(urls: List[str]) -> List[DomainStat]:
    """URL counts per host, by descending count."""
    hosts = []
    for url in urls or []:
        parsed = _parse(url)
        if parsed is not None:
            hosts.append(parsed[0])

    if not hosts:
        return []

    ranked = _ranked_counts(hosts)
    return [DomainStat(domain=str(d), count=int(c)) for d, c in ranked.items()]
