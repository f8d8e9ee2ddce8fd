"""Bounded breadth-first site crawler.

The :class:`Crawler` owns a FIFO frontier and a monotonic visited set for a
single crawl.  Pages are processed strictly one at a time:

    dequeue → mark visited → render (with retry) → extract → enqueue links

so results come out in BFS order and no locking is needed.  When navigation
ends on a different URL (a redirect), that URL is marked visited as well, and
the page is dropped if it was already scraped.  A page that fails
to render or extract is logged and skipped; only failing to open the
rendering session ends the crawl early.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from typing import Any, Callable
from urllib.parse import urlparse

from sitefaq.config import Settings, settings as default_settings
from sitefaq.errors import ErrorCategory, PipelineError
from sitefaq.retry import with_retry
from sitefaq.scraper.browser import (
    PageHandle,
    RenderingSession,
    RenderProfile,
    open_session,
)
from sitefaq.scraper.extractor import extract_page
from sitefaq.scraper.models import (
    CrawlStats,
    ExtractedPage,
    FrontierEntry,
    ScopeRules,
    ScrapedPage,
    ScrapeResult,
)
from sitefaq.scraper.scope import hostname_of, in_scope, is_skipped_file, normalize_url

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int], Any]


class Crawler:
    """State and loop for one crawl session.

    Args:
        seed_url: Where the crawl starts (depth 0).
        max_pages: Stop once this many pages have been scraped.
        scope: Path rules applied to discovered links.
        on_progress: Called with the running page count after each page.
            May be a plain function or a coroutine function.
        config: Navigation timeout, retry and delay settings.
    """

    def __init__(
        self,
        seed_url: str,
        max_pages: int,
        scope: ScopeRules | None = None,
        on_progress: ProgressSink | None = None,
        config: Settings | None = None,
    ) -> None:
        seed = normalize_url(seed_url)
        if seed is None:
            raise PipelineError(f"Invalid seed URL: {seed_url!r}", ErrorCategory.PERMANENT)
        if max_pages < 1:
            raise PipelineError(
                f"max_pages must be at least 1, got {max_pages}", ErrorCategory.PERMANENT
            )

        self.seed_url = seed
        self.seed_host = hostname_of(seed)
        self.max_pages = max_pages
        self.scope = scope or ScopeRules()
        self.on_progress = on_progress
        self.config = config or default_settings

        self.frontier: deque[FrontierEntry] = deque([FrontierEntry(seed, 0)])
        self.visited: set[str] = set()
        self.pages: list[ScrapedPage] = []
        # Every URL ever queued, so an entry is never inserted twice.
        self._queued: set[str] = {seed}

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    async def run(self, session: RenderingSession) -> list[ScrapedPage]:
        """Crawl until the frontier is empty or ``max_pages`` is reached."""
        while self.frontier and len(self.pages) < self.max_pages:
            entry = self.frontier.popleft()
            if entry.url in self.visited:
                continue
            self.visited.add(entry.url)

            logger.info(
                "[crawl] processing %s (depth %d, queue %d, scraped %d)",
                entry.url, entry.depth, len(self.frontier), len(self.pages),
            )
            try:
                final_url, extracted = await self._scrape(session, entry.url)
            except Exception as exc:
                logger.warning("[crawl] skipping %s: %s", entry.url, exc)
                continue

            if final_url != entry.url:
                if final_url in self.visited:
                    logger.info(
                        "[crawl] skipping %s: redirected to already visited %s",
                        entry.url, final_url,
                    )
                    continue
                self.visited.add(final_url)
                self._queued.add(final_url)

            page = ScrapedPage(
                url=entry.url,
                title=extracted.title,
                content=extracted.content,
                headings=extracted.headings,
                links=frozenset(u for u in extracted.links if self._same_site(u)),
            )
            self.pages.append(page)
            self._enqueue(page.links, entry.depth + 1)

            logger.info(
                "[crawl] scraped page %d/%d: %s (%d chars, %d headings, %d links)",
                len(self.pages), self.max_pages, page.title or page.url,
                len(page.content), len(page.headings), len(page.links),
            )
            await self._report_progress()

            if self.config.crawl_delay_ms > 0 and self.frontier:
                await asyncio.sleep(self.config.crawl_delay_ms / 1000)

        logger.info(
            "[crawl] done: %d page(s) scraped, %d URL(s) visited, %d left in queue",
            len(self.pages), len(self.visited), len(self.frontier),
        )
        return self.pages

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _scrape(self, session: RenderingSession, url: str) -> tuple[str, ExtractedPage]:
        """Render and extract *url*; return the canonical final URL with the page."""
        page = await session.new_page()
        try:
            await with_retry(
                lambda: self._navigate(page, url, session.wait_until),
                ErrorCategory.TRANSIENT,
                max_attempts=self.config.retry_max_attempts,
                base_delay_ms=self.config.retry_base_delay_ms,
            )
            extracted = await extract_page(page)
            return normalize_url(page.url) or url, extracted
        finally:
            await page.close()

    async def _navigate(self, page: PageHandle, url: str, wait_until: str) -> None:
        response = await page.goto(
            url, wait_until=wait_until, timeout=self.config.navigation_timeout_ms
        )
        status = getattr(response, "status", None)
        if status is not None and status >= 400:
            category = ErrorCategory.TRANSIENT if status >= 500 else ErrorCategory.PERMANENT
            raise PipelineError(f"HTTP {status} for {url}", category)

    def _same_site(self, url: str) -> bool:
        return hostname_of(url) == self.seed_host and not is_skipped_file(urlparse(url).path)

    def _enqueue(self, links: frozenset[str], depth: int) -> None:
        # Sorted so that re-running against an unchanged site is repeatable.
        for url in sorted(links):
            if url in self.visited or url in self._queued:
                continue
            if not in_scope(url, self.seed_host, self.scope):
                continue
            self._queued.add(url)
            self.frontier.append(FrontierEntry(url, depth))

    async def _report_progress(self) -> None:
        if self.on_progress is None:
            return
        try:
            result = self.on_progress(len(self.pages))
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.warning("[crawl] progress callback failed: %s", exc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def crawl_site(
    seed_url: str,
    max_pages: int = 5,
    profile: RenderProfile = RenderProfile.PROXY,
    scope: ScopeRules | None = None,
    on_progress: ProgressSink | None = None,
    config: Settings | None = None,
    timeout_s: float | None = None,
    session_factory: Callable[[RenderProfile, Settings], Any] = open_session,
) -> ScrapeResult:
    """Crawl *seed_url* and return every page scraped.

    The rendering session is opened once and closed on every exit path.
    Failures that stop the crawl (bad seed, no session, deadline hit) come
    back as ``ScrapeResult(success=False, error=...)`` rather than raising.
    A crawl that finds no pages still succeeds.

    Args:
        seed_url: Starting URL.
        max_pages: Page budget.
        profile: Which rendering backend to use.
        scope: Path rules for discovered links.
        on_progress: Sink called with the page count after each page.
        config: Settings; defaults to the module-level ``settings``.
        timeout_s: Optional deadline for the whole crawl.
        session_factory: Async context manager factory yielding a
            :class:`RenderingSession`.  Swapped out in tests.
    """
    config = config or default_settings
    logger.info(
        "[crawl] starting %s (max_pages=%d, profile=%s)", seed_url, max_pages, profile.value
    )

    crawler: Crawler | None = None
    deadline = asyncio.timeout(timeout_s)
    try:
        crawler = Crawler(seed_url, max_pages, scope, on_progress, config)
        async with deadline:
            async with session_factory(profile, config) as session:
                await crawler.run(session)
    except Exception as exc:
        if isinstance(exc, TimeoutError) and deadline.expired():
            exc = PipelineError.cancelled_by_timeout("crawl", timeout_s or 0)
        logger.error("[crawl] fatal error crawling %s: %s", seed_url, exc)
        return _failed(crawler, str(exc))

    pages = list(crawler.pages)
    return ScrapeResult(
        success=True,
        pages=pages,
        stats=CrawlStats.from_pages(pages),
        frontier=list(crawler.frontier),
        visited=sorted(crawler.visited),
    )


def _failed(crawler: Crawler | None, error: str) -> ScrapeResult:
    if crawler is None:
        return ScrapeResult(success=False, error=error)
    # Pages scraped before the failure are kept for diagnosis only.
    return ScrapeResult(
        success=False,
        pages=list(crawler.pages),
        error=error,
        frontier=list(crawler.frontier),
        visited=sorted(crawler.visited),
    )
