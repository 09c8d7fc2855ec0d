"""Data models for the crawl client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Union


@dataclass
class CrawledPage:
    """A single page as returned by the crawl provider."""

    url: str | None = None
    markdown: str = ""
    html: str = ""

    @property
    def content(self) -> str:
        """Markdown when present, else HTML, else an empty string."""
        return self.markdown or self.html or ""

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> CrawledPage:
        """Build a page from one entry of the provider's ``data`` array."""
        metadata = data.get("metadata") or {}
        return cls(
            url=metadata.get("url") or None,
            markdown=data.get("markdown") or "",
            html=data.get("html") or "",
        )


@dataclass
class CrawlSuccess:
    pages: List[CrawledPage] = field(default_factory=list)

    ok = True


@dataclass
class CrawlFailure:
    reason: str

    ok = False


CrawlResult = Union[CrawlSuccess, CrawlFailure]
