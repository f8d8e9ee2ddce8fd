"""Plain-text rendering of crawl and FAQ results for the CLI."""

from __future__ import annotations

from typing import Iterable

from sitefaq.faq.models import FAQRecord, FAQStats
from sitefaq.scraper.models import CrawlStats, ScrapedPage

_PREVIEW_CHARS = 150


def render_pages(pages: Iterable[ScrapedPage]) -> str:
    """One block per page: title, URL, content preview and headings."""
    blocks = []
    for i, page in enumerate(pages, start=1):
        preview = page.content[:_PREVIEW_CHARS].replace("\n", " ")
        if len(page.content) > _PREVIEW_CHARS:
            preview += "…"
        lines = [
            f"[{i}] {page.title or '(untitled)'}",
            f"    URL      : {page.url}",
            f"    Preview  : {preview}",
        ]
        if page.headings:
            lines.append(f"    Headings : {', '.join(page.headings)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def render_crawl_stats(stats: CrawlStats) -> str:
    return (
        f"Pages: {stats.total_pages}  "
        f"Content: {stats.total_content} chars  "
        f"Avg/page: {stats.average_content_length} chars"
    )


def render_faqs(faqs: Iterable[FAQRecord]) -> str:
    blocks = []
    for i, faq in enumerate(faqs, start=1):
        category = f" [{faq.metadata.category}]" if faq.metadata else ""
        blocks.append(
            f"Q{i}{category} ({faq.confidence:.2f}): {faq.question}\n"
            f"A: {faq.answer}\n"
            f"   — {faq.source_page} <{faq.source_url}>"
        )
    return "\n\n".join(blocks)


def render_faq_stats(stats: FAQStats) -> str:
    return (
        f"FAQs: {stats.total_faqs}  "
        f"Avg confidence: {stats.average_confidence:.2f}  "
        f"Below threshold: {stats.low_confidence_dropped}  "
        f"Tokens: ~{stats.total_tokens}  "
        f"Model: {stats.model}  "
        f"Time: {stats.processing_time_ms} ms"
    )
