"""Content extraction: turns a rendered page into an :class:`ExtractedPage`."""

from __future__ import annotations

from bs4 import BeautifulSoup

from sitefaq.scraper.browser import PageHandle
from sitefaq.scraper.models import ExtractedPage
from sitefaq.scraper.scope import normalize_url

# Elements whose text never belongs in page content.
NOISE_TAGS = ("script", "style", "noscript", "iframe")

# Tried in order; the first match wins.
MAIN_CONTENT_SELECTORS = (
    "main",
    "article",
    '[role="main"]',
    "#main-content",
    "#content",
    ".content",
    ".main-content",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _main_container(soup: BeautifulSoup):
    for selector in MAIN_CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is not None:
            return node
    return soup.body or soup


def _extract_headings(soup: BeautifulSoup) -> tuple[str, ...]:
    headings = (h.get_text(" ", strip=True) for h in soup.find_all(["h1", "h2", "h3"]))
    return tuple(h for h in headings if h)


def _extract_links(soup: BeautifulSoup, base_url: str) -> frozenset[str]:
    """Absolute, fragment-free targets of every ``<a href>`` on the page."""
    links: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        url = normalize_url(anchor["href"], base_url)
        if url:
            links.add(url)
    return frozenset(links)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_html(html: str, base_url: str, title: str = "") -> ExtractedPage:
    """Extract title, main text, headings and links from rendered *html*.

    Args:
        html: The page DOM as serialised by the rendering backend.
        base_url: The page's final URL; relative links resolve against it.
        title: Title reported by the backend.  When empty, ``<title>`` is
            used instead.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(NOISE_TAGS)):
        tag.decompose()

    if not title and soup.title is not None:
        title = soup.title.get_text(strip=True)

    content = _main_container(soup).get_text("\n", strip=True)

    return ExtractedPage(
        title=title.strip(),
        content=content.strip(),
        headings=_extract_headings(soup),
        links=_extract_links(soup, base_url),
    )


async def extract_page(page: PageHandle) -> ExtractedPage:
    """Read the rendered DOM out of *page* and extract it.

    No retries happen here; the crawler treats any exception as a failure of
    this one page.
    """
    html = await page.content()
    title = await page.title()
    return parse_html(html, page.url, title)
