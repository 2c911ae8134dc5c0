import logging
import re
from dataclasses import dataclass, field
from typing import List

from lxml import etree # Stricter alternative to the textual scan

from sitebot.models import UrlEntry

logger = logging.getLogger(__name__)

# <loc> with optional attributes; tolerant of newlines inside the tag body
LOC_PATTERN = re.compile(r"<loc(?:\s[^>]*)?>(.*?)</loc\s*>", re.IGNORECASE | re.DOTALL)
URL_BLOCK_PATTERN = re.compile(r"<url(?:\s[^>]*)?>(.*?)</url\s*>", re.IGNORECASE | re.DOTALL)
LASTMOD_PATTERN = re.compile(r"<lastmod(?:\s[^>]*)?>(.*?)</lastmod\s*>", re.IGNORECASE | re.DOTALL)
ROOT_PATTERN = re.compile(r"<(?:urlset|sitemapindex)(?:\s[^>]*)?>", re.IGNORECASE)

ALLOWED_SCHEMES = ("http://", "https://")


@dataclass
class ExtractionResult:
    """
    URLs pulled out of one sitemap body.

    A result with zero URLs is a parse degradation: logged, never raised.
    """
    urls: List[str] = field(default_factory=list)
    strategy: str = "regex"

    @property
    def degraded(self) -> bool:
        return not self.urls

    def describe(self) -> str:
        if self.degraded:
            return f"parse degraded to zero URLs ({self.strategy})"
        return f"extracted {len(self.urls)} URLs ({self.strategy})"


def _keep(candidate: str) -> bool:
    return bool(candidate) and candidate.startswith(ALLOWED_SCHEMES)


class RegexLocExtractor:
    """
    Best-effort textual scan for <loc>...</loc> pairs.

    Works on documents lxml would reject (stray tags, broken encodings,
    truncated bodies). Values are kept verbatim after trimming, so entity
    references such as &amp; are not unescaped.
    """
    strategy = "regex"

    def extract(self, xml_content: str) -> ExtractionResult:
        try:
            urls = []
            for match in LOC_PATTERN.finditer(xml_content or ""):
                url = match.group(1).strip()
                if _keep(url):
                    urls.append(url)
            return ExtractionResult(urls=urls, strategy=self.strategy)
        except Exception as e:
            logger.error(f"Regex extraction failed: {e}")
            return ExtractionResult(urls=[], strategy=self.strategy)


class LxmlLocExtractor:
    """
    lxml-based extraction in recover mode.

    Matches any element whose local name is 'loc', whatever its namespace.
    Entity references are unescaped by the parser.
    """
    strategy = "lxml"

    def __init__(self):
        # recover mode attempts to parse even mildly malformed XML
        self.parser = etree.XMLParser(recover=True, remove_blank_text=True, resolve_entities=False)

    def extract(self, xml_content: str) -> ExtractionResult:
        if not xml_content:
            return ExtractionResult(urls=[], strategy=self.strategy)
        try:
            root = etree.fromstring(xml_content.encode("utf-8"), parser=self.parser)
            if root is None:
                return ExtractionResult(urls=[], strategy=self.strategy)

            urls = []
            for element in root.iter():
                if not isinstance(element.tag, str):
                    continue  # comments, processing instructions
                if etree.QName(element).localname != "loc" or not element.text:
                    continue
                url = element.text.strip()
                if _keep(url):
                    urls.append(url)
            return ExtractionResult(urls=urls, strategy=self.strategy)
        except Exception as e:
            logger.error(f"lxml extraction failed: {e}")
            return ExtractionResult(urls=[], strategy=self.strategy)


DEFAULT_EXTRACTOR = RegexLocExtractor()


def extract_urls(xml_content: str, extractor=None) -> List[str]:
    """
    Extract absolute http(s) URLs from <loc> entries, in document order.

    Never raises. A body that yields nothing is logged as a parse degradation.
    """
    result = (extractor or DEFAULT_EXTRACTOR).extract(xml_content)
    if result.degraded:
        logger.warning(f"Sitemap body of {len(xml_content or ''):,} chars: {result.describe()}")
    else:
        logger.debug(result.describe())
    return result.urls


def extract_urls_with_lastmod(xml_content: str) -> List[UrlEntry]:
    """Extract each <url> block's <loc> together with its optional <lastmod>."""
    try:
        entries = []
        for block in URL_BLOCK_PATTERN.finditer(xml_content or ""):
            body = block.group(1)
            loc_match = LOC_PATTERN.search(body)
            if not loc_match:
                continue
            url = loc_match.group(1).strip()
            if not _keep(url):
                continue
            lastmod_match = LASTMOD_PATTERN.search(body)
            lastmod = lastmod_match.group(1).strip() if lastmod_match else None
            entries.append(UrlEntry(url=url, lastmod=lastmod or None))
        return entries
    except Exception as e:
        logger.error(f"Could not extract URL entries: {e}")
        return []


def is_valid_sitemap(xml_content: str) -> bool:
    """True when the body has a urlset/sitemapindex root tag and at least one <loc>."""
    try:
        content = xml_content or ""
        return bool(ROOT_PATTERN.search(content)) and bool(LOC_PATTERN.search(content))
    except Exception as e:
        logger.error(f"Could not validate sitemap: {e}")
        return False
