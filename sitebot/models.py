from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional


@dataclass
class SourceOutcome:
    """Result of one monitoring attempt on a sitemap URL."""
    success: bool
    error_message: str = ""
    dated_key: Optional[str] = None
    new_urls: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, message: str) -> "SourceOutcome":
        return cls(success=False, error_message=message, dated_key=None, new_urls=[])

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class DomainResult:
    """New URLs accumulated for one domain during a pass."""
    domain: str
    new_urls: List[str] = field(default_factory=list)
    total_new: int = 0

    def add(self, urls: List[str]) -> None:
        self.new_urls.extend(urls)
        self.total_new += len(urls)


@dataclass
class RunResult:
    """Aggregate of one full pass over the registry."""
    domain_results: Dict[str, DomainResult] = field(default_factory=dict)
    all_new_urls: List[str] = field(default_factory=list)
    processed_count: int = 0
    error_count: int = 0

    def record(self, domain: str, outcome: SourceOutcome) -> None:
        """Fold a per-source outcome into the pass totals."""
        self.processed_count += 1
        if not outcome.success:
            self.error_count += 1
            return

        domain_result = self.domain_results.setdefault(domain, DomainResult(domain=domain))
        if outcome.new_urls:
            domain_result.add(outcome.new_urls)
            self.all_new_urls.extend(outcome.new_urls)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class KeywordStat:
    keyword: str
    count: int


@dataclass
class DomainStat:
    domain: str
    count: int


@dataclass
class UrlEntry:
    """A <url> block's location and optional lastmod."""
    url: str
    lastmod: Optional[str] = None
