"""Scraper package — bounded site crawl & page content extraction."""

from sitefaq.scraper.browser import RenderProfile, open_session, profile_for
from sitefaq.scraper.crawler import Crawler, crawl_site
from sitefaq.scraper.extractor import extract_page, parse_html
from sitefaq.scraper.models import (
    CrawlStats,
    FrontierEntry,
    ScopeRules,
    ScrapedPage,
    ScrapeResult,
)

__all__ = [
    "Crawler",
    "crawl_site",
    "extract_page",
    "parse_html",
    "open_session",
    "profile_for",
    "RenderProfile",
    "CrawlStats",
    "FrontierEntry",
    "ScopeRules",
    "ScrapedPage",
    "ScrapeResult",
]
