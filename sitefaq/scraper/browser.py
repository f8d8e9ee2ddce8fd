"""Rendering backends for the crawler.

Profiles
--------
``trusted``
    Launches a local headless Chromium through Playwright.  Used for sites we
    own.
``proxy``
    Connects over CDP to a remote Browserbase session.  Required for
    third-party sites; needs ``BROWSERBASE_API_KEY``.
``static``
    Plain ``httpx`` fetches with no JavaScript.  Useful for simple sites and
    for running without a browser install.

Every profile hands the crawler a :class:`RenderingSession` whose pages
support ``goto`` / ``content`` / ``title`` / ``url`` / ``close``.  Playwright
pages already satisfy that interface, so they are returned as-is.

Playwright is imported lazily so the static profile and the test suite work
without a browser installed.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Protocol

import httpx

from sitefaq.config import Settings
from sitefaq.errors import ErrorCategory, PipelineError

logger = logging.getLogger(__name__)


class RenderProfile(str, Enum):
    TRUSTED = "trusted"
    PROXY = "proxy"
    STATIC = "static"


def profile_for(site_owner: bool) -> RenderProfile:
    """Owned sites render locally; everything else goes through the proxy."""
    return RenderProfile.TRUSTED if site_owner else RenderProfile.PROXY


class PageHandle(Protocol):
    """The slice of a browser page the crawler relies on."""

    @property
    def url(self) -> str: ...

    async def goto(self, url: str, *, wait_until: str, timeout: float) -> Any: ...

    async def content(self) -> str: ...

    async def title(self) -> str: ...

    async def close(self) -> None: ...


class RenderingSession(ABC):
    """One connection to a rendering backend, held for a whole crawl."""

    #: Playwright ``wait_until`` value used for navigations in this session.
    wait_until: str = "domcontentloaded"

    @abstractmethod
    async def new_page(self) -> PageHandle:
        """Open a fresh page."""

    @abstractmethod
    async def close(self) -> None:
        """Release the backend.  Must be safe to call on every exit path."""


# ---------------------------------------------------------------------------
# Playwright (trusted + proxy)
# ---------------------------------------------------------------------------

class PlaywrightSession(RenderingSession):
    def __init__(self, playwright: Any, browser: Any, config: Settings, wait_until: str) -> None:
        self._playwright = playwright
        self._browser = browser
        self._config = config
        self.wait_until = wait_until

    async def new_page(self) -> PageHandle:
        page = await self._browser.new_page(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self._config.user_agent,
        )
        page.set_default_navigation_timeout(self._config.navigation_timeout_ms)
        return page

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def _connect_playwright(profile: RenderProfile, config: Settings) -> PlaywrightSession:
    from playwright.async_api import async_playwright  # noqa: PLC0415

    pw = await async_playwright().start()
    try:
        if profile is RenderProfile.TRUSTED:
            logger.info("[browser] launching local Chromium for owned site")
            browser = await pw.chromium.launch(headless=config.headless, args=["--no-sandbox"])
            wait_until = "domcontentloaded"
        else:
            logger.info("[browser] connecting to Browserbase proxy for third-party site")
            endpoint = f"{config.browserbase_connect_url}?apiKey={config.browserbase_api_key}"
            browser = await pw.chromium.connect_over_cdp(endpoint)
            # Proxied sessions are slower to settle; wait for the network.
            wait_until = "networkidle"
    except BaseException:
        await pw.stop()
        raise

    return PlaywrightSession(pw, browser, config, wait_until)


# ---------------------------------------------------------------------------
# Static (httpx)
# ---------------------------------------------------------------------------

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)


@dataclass
class StaticResponse:
    """The navigation result reported by :class:`StaticPage.goto`."""

    status: int
    url: str


class StaticPage:
    """A page handle backed by a single HTTP GET."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._url = ""
        self._html = ""

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str, *, wait_until: str = "load", timeout: float = 30000) -> StaticResponse:
        response = await self._client.get(url, timeout=timeout / 1000)
        content_type = response.headers.get("content-type", "")
        if response.status_code < 400 and content_type and "html" not in content_type.lower():
            raise PipelineError(
                f"{url} is not an HTML document ({content_type})",
                ErrorCategory.PERMANENT,
            )
        self._url = str(response.url)
        self._html = response.text
        return StaticResponse(status=response.status_code, url=self._url)

    async def content(self) -> str:
        return self._html

    async def title(self) -> str:
        match = _TITLE_RE.search(self._html)
        return match.group(1).strip() if match else ""

    async def close(self) -> None:
        self._html = ""


class StaticSession(RenderingSession):
    wait_until = "load"

    def __init__(self, config: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=config.request_timeout,
            follow_redirects=True,
        )

    async def new_page(self) -> PageHandle:
        return StaticPage(self._client)

    async def close(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def connect(profile: RenderProfile, config: Settings) -> RenderingSession:
    """Open a rendering session for *profile*.

    Raises:
        PipelineError: ``permanent`` when the proxy profile is selected but
            no Browserbase API key is configured.
    """
    if profile is RenderProfile.STATIC:
        return StaticSession(config)
    if profile is RenderProfile.PROXY and not config.browserbase_api_key:
        raise PipelineError(
            "BROWSERBASE_API_KEY is required to crawl sites you do not own",
            ErrorCategory.PERMANENT,
        )
    return await _connect_playwright(profile, config)


@asynccontextmanager
async def open_session(profile: RenderProfile, config: Settings) -> AsyncIterator[RenderingSession]:
    """Async context manager that always closes the session it opens."""
    session = await connect(profile, config)
    try:
        yield session
    finally:
        await session.close()
