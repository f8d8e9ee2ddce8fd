"""Data models for the crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ScopeRules:
    """Path constraints applied to every discovered link.

    ``path_prefixes``: when non-empty, a link's path must start with one.
    ``exclude_paths``: a link whose path contains any of these is skipped.
    """

    path_prefixes: tuple[str, ...] = ()
    exclude_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class FrontierEntry:
    """A URL waiting in the crawl queue, with its BFS distance from the seed."""

    url: str
    depth: int


@dataclass(frozen=True)
class ExtractedPage:
    """Fields read out of one rendered page, before it is tied to a crawl."""

    title: str
    content: str
    headings: tuple[str, ...] = ()
    links: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ScrapedPage:
    """One successfully crawled page."""

    url: str
    title: str
    content: str
    headings: tuple[str, ...] = ()
    links: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict (links sorted for stable output)."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "headings": list(self.headings),
            "links": sorted(self.links),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrapedPage:
        return cls(
            url=data["url"],
            title=data.get("title", ""),
            content=data.get("content", ""),
            headings=tuple(data.get("headings", [])),
            links=frozenset(data.get("links", [])),
        )


@dataclass
class CrawlStats:
    total_pages: int = 0
    total_content: int = 0
    average_content_length: int = 0

    @classmethod
    def from_pages(cls, pages: list[ScrapedPage]) -> CrawlStats:
        total_content = sum(len(p.content) for p in pages)
        average = round(total_content / len(pages)) if pages else 0
        return cls(
            total_pages=len(pages),
            total_content=total_content,
            average_content_length=average,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total_pages": self.total_pages,
            "total_content": self.total_content,
            "average_content_length": self.average_content_length,
        }


@dataclass
class ScrapeResult:
    """Outcome of :func:`sitefaq.scraper.crawler.crawl_site`.

    ``frontier`` and ``visited`` expose the crawler's state at termination so
    callers can see what was left unexplored.
    """

    success: bool
    pages: list[ScrapedPage] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    error: str | None = None
    frontier: list[FrontierEntry] = field(default_factory=list)
    visited: list[str] = field(default_factory=list)
