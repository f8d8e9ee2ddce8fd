"""Shared fakes for the crawler, pipeline and surface tests.

``FakeSite`` stands in for a rendering backend: it maps URLs to HTML, can
redirect one URL to another, can be told to fail or return an HTTP status
for specific URLs, and records every navigation.  Its ``factory`` has the
same shape as ``sitefaq.scraper.browser.open_session`` so it can be passed
as ``session_factory``.

``FakeGenerator`` replays canned model replies (or raises canned errors) in
order and counts how often it was called.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any

import pytest

from sitefaq.config import Settings
from sitefaq.faq.llm import TextGenerator


# ---------------------------------------------------------------------------
# Rendering fakes
# ---------------------------------------------------------------------------

class FakePage:
    def __init__(self, site: FakeSite) -> None:
        self._site = site
        self.url = ""
        self._html = ""
        self.closed = False

    async def goto(self, url: str, *, wait_until: str, timeout: float) -> Any:
        self._site.navigations.append(url)
        if url in self._site.hang:
            await asyncio.sleep(10)
        error = self._site.errors.get(url)
        if error is not None:
            raise error
        self.url = self._site.redirects.get(url, url)
        self._html = self._site.pages.get(self.url, "<html><body></body></html>")
        return SimpleNamespace(status=self._site.statuses.get(url, 200))

    async def content(self) -> str:
        return self._html

    async def title(self) -> str:
        return ""

    async def close(self) -> None:
        self.closed = True


class FakeSession:
    wait_until = "domcontentloaded"

    def __init__(self, site: FakeSite) -> None:
        self._site = site

    async def new_page(self) -> FakePage:
        page = FakePage(self._site)
        self._site.opened_pages.append(page)
        return page

    async def close(self) -> None:
        self._site.closed = True


class FakeSite:
    def __init__(self, pages: dict[str, str] | None = None) -> None:
        self.pages = dict(pages or {})
        self.errors: dict[str, Exception] = {}
        self.statuses: dict[str, int] = {}
        self.hang: set[str] = set()
        self.redirects: dict[str, str] = {}
        self.navigations: list[str] = []
        self.opened_pages: list[FakePage] = []
        self.profiles: list[Any] = []
        self.closed = False

    @asynccontextmanager
    async def factory(self, profile, config):
        self.profiles.append(profile)
        session = FakeSession(self)
        try:
            yield session
        finally:
            await session.close()


def html_page(title: str, body: str = "", links: list[str] | None = None) -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links or [])
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><main><h1>{title}</h1><p>{body or title + ' content'}</p>{anchors}</main></body></html>"
    )


# ---------------------------------------------------------------------------
# Generation fakes
# ---------------------------------------------------------------------------

class FakeGenerator(TextGenerator):
    def __init__(self, *replies: Any, delay: float = 0.0) -> None:
        self._replies = list(replies)
        self._delay = delay
        self.calls: list[tuple[str, str]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def complete(self, system_prompt, user_prompt, temperature, max_output_tokens) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self._delay:
            await asyncio.sleep(self._delay)
        reply = self._replies[min(len(self.calls), len(self._replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply


def faq_json(*records: dict) -> str:
    return json.dumps({"faqs": list(records)})


def faq_record(**overrides: Any) -> dict:
    record = {
        "question": "What does the product do?",
        "answer": "It turns website content into frequently asked questions.",
        "confidence": 0.9,
        "sourceUrl": "https://example.com/",
        "sourcePage": "Home",
    }
    record.update(overrides)
    return record


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def config() -> Settings:
    """Settings with fast retries and no crawl delay."""
    return Settings(
        retry_max_attempts=3,
        retry_base_delay_ms=0,
        crawl_delay_ms=0,
        browserbase_api_key="",
    )


@pytest.fixture(autouse=True)
def no_jitter(monkeypatch):
    """Remove retry jitter so backoff sleeps are zero in tests."""
    monkeypatch.setattr("sitefaq.retry.random.uniform", lambda a, b: 0.0)
