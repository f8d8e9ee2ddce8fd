"""Tests for the bounded BFS crawler.

Mocking strategy:
- ``FakeSite`` (``conftest.py``) replaces the rendering backend; it is passed
  to ``crawl_site`` as ``session_factory`` so no browser is launched.
- Retry backoff runs with a zero base delay and no jitter.
- The Browserbase path is exercised only up to the missing-key check, which
  fails before Playwright is imported.
"""

from __future__ import annotations

import pytest

from conftest import FakeSite, html_page
from sitefaq.errors import ErrorCategory, PipelineError
from sitefaq.scraper.browser import RenderProfile
from sitefaq.scraper.crawler import Crawler, crawl_site
from sitefaq.scraper.models import FrontierEntry, ScopeRules

_SEED = "https://example.com/"


def _site_with_links(count: int) -> FakeSite:
    links = [f"/p{i}" for i in range(count)]
    pages = {_SEED: html_page("Home", links=links)}
    pages.update({f"https://example.com/p{i}": html_page(f"Page {i}") for i in range(count)})
    return FakeSite(pages)


# ---------------------------------------------------------------------------
# Page budget and frontier
# ---------------------------------------------------------------------------

class TestPageBudget:
    async def test_stops_at_max_pages(self, config) -> None:
        site = _site_with_links(10)
        result = await crawl_site(_SEED, max_pages=3, config=config, session_factory=site.factory)

        assert result.success is True
        assert len(result.pages) == 3
        assert len(result.frontier) >= 7
        assert result.stats.total_pages == 3

    async def test_frontier_is_empty_when_site_exhausted(self, config) -> None:
        site = _site_with_links(2)
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [
            _SEED,
            "https://example.com/p0",
            "https://example.com/p1",
        ]
        assert result.frontier == []

    async def test_stats_match_pages(self, config) -> None:
        site = _site_with_links(2)
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        total = sum(len(p.content) for p in result.pages)
        assert result.stats.total_content == total
        assert result.stats.average_content_length == round(total / len(result.pages))

    def test_rejects_non_positive_budget(self) -> None:
        with pytest.raises(PipelineError) as info:
            Crawler(_SEED, max_pages=0)
        assert info.value.category is ErrorCategory.PERMANENT


# ---------------------------------------------------------------------------
# Ordering and deduplication
# ---------------------------------------------------------------------------

class TestTraversal:
    async def test_breadth_first_order(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/b", "/a"]),
            "https://example.com/a": html_page("A", links=["/a/1"]),
            "https://example.com/b": html_page("B", links=["/b/1"]),
            "https://example.com/a/1": html_page("A1"),
            "https://example.com/b/1": html_page("B1"),
        })
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [
            _SEED,
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/a/1",
            "https://example.com/b/1",
        ]

    async def test_depths_never_decrease(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/a", "/b"]),
            "https://example.com/a": html_page("A", links=["/a/1", "/a/2"]),
            "https://example.com/b": html_page("B", links=["/b/1"]),
        })
        crawler = Crawler(_SEED, max_pages=2, config=config)
        async with site.factory(RenderProfile.TRUSTED, config) as session:
            await crawler.run(session)

        depths = [entry.depth for entry in crawler.frontier]
        assert depths == sorted(depths)
        assert depths[0] == 1

    async def test_no_page_scraped_twice(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/a", "/b", "/a#faq"]),
            "https://example.com/a": html_page("A", links=["/", "/b", "/a"]),
            "https://example.com/b": html_page("B", links=["/a", _SEED]),
        })
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        urls = [p.url for p in result.pages]
        assert len(urls) == len(set(urls)) == 3
        assert len(site.navigations) == 3

    async def test_only_same_host_pages(self, config) -> None:
        site = FakeSite({
            _SEED: html_page(
                "Home",
                links=["https://other.com/x", "/doc.pdf", "/page#frag", "https://blog.example.com/"],
            ),
            "https://example.com/page": html_page("Page"),
        })
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [_SEED, "https://example.com/page"]
        assert result.pages[0].links == frozenset({"https://example.com/page"})

    async def test_fragments_of_one_page_enqueued_once(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/page#a", "/page#b"]),
            "https://example.com/page": html_page("Page"),
        })
        crawler = Crawler(_SEED, max_pages=1, config=config)
        async with site.factory(RenderProfile.TRUSTED, config) as session:
            await crawler.run(session)

        assert list(crawler.frontier) == [FrontierEntry("https://example.com/page", 1)]

    async def test_host_case_and_default_port_are_one_page(self, config) -> None:
        site = FakeSite({
            _SEED: html_page(
                "Home",
                links=["/a", "https://EXAMPLE.com/a", "https://example.com:443/a", "HTTPS://Example.com/a#top"],
            ),
            "https://example.com/a": html_page("A"),
        })
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [_SEED, "https://example.com/a"]
        assert result.visited == [_SEED, "https://example.com/a"]
        assert site.navigations.count("https://example.com/a") == 1

    async def test_seed_is_canonicalised(self, config) -> None:
        site = FakeSite({_SEED: html_page("Home", links=["/"])})
        result = await crawl_site(
            "HTTPS://Example.COM:443", max_pages=10, config=config, session_factory=site.factory
        )

        assert [p.url for p in result.pages] == [_SEED]
        assert site.navigations == [_SEED]

    async def test_redirect_target_not_scraped_again(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/a", "/a/"]),
            "https://example.com/a/": html_page("A"),
        })
        site.redirects["https://example.com/a"] = "https://example.com/a/"
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [_SEED, "https://example.com/a"]
        assert "https://example.com/a/" in result.visited
        assert "https://example.com/a/" not in site.navigations

    async def test_redirect_to_visited_page_is_dropped(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/b", "/a/"]),
            "https://example.com/a/": html_page("A"),
        })
        site.redirects["https://example.com/b"] = "https://example.com/a/"
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [_SEED, "https://example.com/a/"]
        assert "https://example.com/b" in result.visited

    async def test_rerun_visits_same_urls(self, config) -> None:
        first = await crawl_site(
            _SEED, max_pages=4, config=config, session_factory=_site_with_links(6).factory
        )
        second = await crawl_site(
            _SEED, max_pages=4, config=config, session_factory=_site_with_links(6).factory
        )
        assert first.visited == second.visited
        assert [p.url for p in first.pages] == [p.url for p in second.pages]

    async def test_scope_rules_filter_frontier(self, config) -> None:
        site = FakeSite({
            _SEED: html_page("Home", links=["/docs/a", "/docs/admin/b", "/blog/c"]),
            "https://example.com/docs/a": html_page("A"),
        })
        scope = ScopeRules(path_prefixes=("/docs",), exclude_paths=("/admin",))
        result = await crawl_site(
            _SEED, max_pages=10, scope=scope, config=config, session_factory=site.factory
        )

        assert [p.url for p in result.pages] == [_SEED, "https://example.com/docs/a"]
        assert result.visited == sorted([_SEED, "https://example.com/docs/a"])


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures:
    async def test_failed_page_is_skipped(self, config) -> None:
        site = _site_with_links(3)
        site.errors["https://example.com/p1"] = PipelineError("gone", ErrorCategory.PERMANENT)
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        urls = [p.url for p in result.pages]
        assert "https://example.com/p1" not in urls
        assert "https://example.com/p2" in urls
        assert "https://example.com/p1" in result.visited
        assert site.navigations.count("https://example.com/p1") == 1

    async def test_server_error_is_retried_then_skipped(self, config) -> None:
        site = _site_with_links(1)
        site.statuses["https://example.com/p0"] = 503
        result = await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert [p.url for p in result.pages] == [_SEED]
        assert site.navigations.count("https://example.com/p0") == config.retry_max_attempts

    async def test_client_error_is_not_retried(self, config) -> None:
        site = _site_with_links(1)
        site.statuses["https://example.com/p0"] = 404
        await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert site.navigations.count("https://example.com/p0") == 1

    async def test_pages_closed_even_on_failure(self, config) -> None:
        site = _site_with_links(2)
        site.errors["https://example.com/p0"] = RuntimeError("renderer crashed")
        await crawl_site(_SEED, max_pages=10, config=config, session_factory=site.factory)

        assert site.opened_pages
        assert all(page.closed for page in site.opened_pages)
        assert site.closed is True

    async def test_unreachable_seed_gives_empty_success(self, config) -> None:
        site = FakeSite()
        site.errors[_SEED] = PipelineError("dns failure", ErrorCategory.PERMANENT)
        result = await crawl_site(_SEED, max_pages=5, config=config, session_factory=site.factory)

        assert result.success is True
        assert result.pages == []
        assert result.stats.total_pages == 0
        assert result.stats.average_content_length == 0

    async def test_session_failure_is_fatal(self, config) -> None:
        result = await crawl_site(_SEED, max_pages=5, profile=RenderProfile.PROXY, config=config)

        assert result.success is False
        assert "BROWSERBASE_API_KEY" in result.error
        assert result.pages == []

    async def test_invalid_seed_is_fatal(self, config) -> None:
        site = FakeSite()
        result = await crawl_site("ftp://example.com/", config=config, session_factory=site.factory)

        assert result.success is False
        assert "Invalid seed URL" in result.error
        assert site.navigations == []

    async def test_timeout_cancels_crawl(self, config) -> None:
        site = _site_with_links(3)
        site.hang.add("https://example.com/p1")
        result = await crawl_site(
            _SEED, max_pages=10, config=config, timeout_s=0.05, session_factory=site.factory
        )

        assert result.success is False
        assert "cancelled" in result.error
        # Pages completed before the deadline are kept for diagnosis.
        assert [p.url for p in result.pages] == [_SEED, "https://example.com/p0"]
        assert site.closed is True


# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------

class TestProgress:
    async def test_sync_sink_gets_running_count(self, config) -> None:
        seen: list[int] = []
        site = _site_with_links(2)
        await crawl_site(
            _SEED, max_pages=10, on_progress=seen.append, config=config, session_factory=site.factory
        )
        assert seen == [1, 2, 3]

    async def test_async_sink_awaited(self, config) -> None:
        seen: list[int] = []

        async def sink(count: int) -> None:
            seen.append(count)

        site = _site_with_links(1)
        await crawl_site(
            _SEED, max_pages=10, on_progress=sink, config=config, session_factory=site.factory
        )
        assert seen == [1, 2]

    async def test_failing_sink_does_not_stop_crawl(self, config) -> None:
        def sink(count: int) -> None:
            raise RuntimeError("socket closed")

        site = _site_with_links(2)
        result = await crawl_site(
            _SEED, max_pages=10, on_progress=sink, config=config, session_factory=site.factory
        )
        assert result.success is True
        assert len(result.pages) == 3

    async def test_profile_passed_to_factory(self, config) -> None:
        site = _site_with_links(0)
        await crawl_site(
            _SEED, profile=RenderProfile.TRUSTED, config=config, session_factory=site.factory
        )
        assert site.profiles == [RenderProfile.TRUSTED]
