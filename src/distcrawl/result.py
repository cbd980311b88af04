"""Crawl result handed back to master callers."""

from dataclasses import asdict, dataclass, field


@dataclass
class CrawlResult:
    """Outcome of crawling one URL through a worker."""

    doc_id: int
    url: str
    tokens: list[str] = field(default_factory=list)
    raw_text: str = ""
    discovered_urls: list[str] = field(default_factory=list)
    success: bool = False
    error: str = ""

    @classmethod
    def failure(cls, doc_id: int, url: str, error: str, raw_text: str = "") -> "CrawlResult":
        """Build a failed result; tokens and discovered URLs stay empty."""
        return cls(doc_id=doc_id, url=url, raw_text=raw_text, success=False, error=error)

    def to_dict(self) -> dict:
        return asdict(self)
