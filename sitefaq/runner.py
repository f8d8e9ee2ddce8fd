"""High-level runner for the crawl → FAQ pipeline.

``run_pipeline`` is the single unit of work the outer surfaces (CLI, HTTP
API, a background job) trigger.  It crawls the site, generates FAQs from the
pages, and returns the scrape and FAQ rows ready for the caller to persist.
Nothing here raises for an ordinary pipeline failure; the rows carry an
``error`` status instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from sitefaq.config import Settings, settings as default_settings
from sitefaq.faq.generator import generate_faqs
from sitefaq.faq.llm import TextGenerator
from sitefaq.faq.models import GenerationOptions
from sitefaq.records import FaqRow, ScrapeRow, new_id, utc_now
from sitefaq.scraper.browser import RenderProfile, open_session, profile_for
from sitefaq.scraper.crawler import ProgressSink, crawl_site
from sitefaq.scraper.models import ScopeRules

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    scrape: ScrapeRow
    faq: FaqRow | None = None

    @property
    def success(self) -> bool:
        return self.scrape.status == "faq_generated" and self.faq is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "scrape": self.scrape.to_dict(),
            "faq": self.faq.to_dict() if self.faq else None,
        }


async def run_pipeline(
    url: str,
    max_pages: int = 5,
    site_owner: bool = False,
    options: GenerationOptions | None = None,
    scope: ScopeRules | None = None,
    on_progress: ProgressSink | None = None,
    generator: TextGenerator | None = None,
    config: Settings | None = None,
    scrape_id: str | None = None,
    profile: RenderProfile | None = None,
    session_factory: Any = open_session,
) -> PipelineResult:
    """Crawl *url* and generate FAQs from what was found.

    Args:
        url: Seed URL.
        max_pages: Crawl page budget.
        site_owner: ``True`` renders with the local browser, ``False`` with
            the Browserbase proxy.  Ignored when *profile* is given.
        options: FAQ generation options.
        scope: Path rules for the crawl.
        on_progress: Progress sink for the crawl.
        generator: Text-generation backend override.
        config: Settings; defaults to the module-level ``settings``.
        scrape_id: Reuse an existing scrape row id instead of minting one.
        profile: Explicit rendering profile.
        session_factory: Rendering session factory override.

    Returns:
        A :class:`PipelineResult`.  ``faq`` is ``None`` when the crawl failed.
    """
    config = config or default_settings
    options = options or GenerationOptions()
    profile = profile or profile_for(site_owner)
    start = time.monotonic()

    scrape = ScrapeRow(url=url, id=scrape_id or new_id())
    logger.info("[pipeline] scrape %s: crawling %s", scrape.id, url)
    scrape.status = "scraping"

    crawl = await crawl_site(
        url,
        max_pages=max_pages,
        profile=profile,
        scope=scope,
        on_progress=on_progress,
        config=config,
        timeout_s=options.timeout_s,
        session_factory=session_factory,
    )
    if not crawl.success:
        scrape.status = "error"
        scrape.error = crawl.error
        scrape.completed_at = utc_now()
        logger.error("[pipeline] scrape %s failed: %s", scrape.id, crawl.error)
        return PipelineResult(scrape=scrape)

    scrape.status = "scraping_completed"
    scrape.pages = [page.to_dict() for page in crawl.pages]

    result = await generate_faqs(crawl.pages, options, generator=generator, config=config)

    faq = FaqRow(
        scrape_id=scrape.id,
        faqs=result.faqs,
        status="completed" if result.success else "error",
        error=result.error,
        metadata={
            "chunks_processed": result.stats.processed_chunks,
            "total_tokens": result.stats.total_tokens,
            "model": result.stats.model,
            "processing_time_ms": result.stats.processing_time_ms,
            "average_confidence": result.stats.average_confidence,
            "options": options.model_dump(by_alias=True, exclude_none=True),
        },
    )

    scrape.status = "faq_generated" if result.success else "error"
    if not result.success:
        scrape.error = result.error
    scrape.completed_at = utc_now()
    scrape.metadata = {
        "processing_time_ms": int((time.monotonic() - start) * 1000),
        "total_faqs": result.stats.total_faqs,
    }

    logger.info(
        "[pipeline] scrape %s finished: status=%s, %d page(s), %d FAQ(s)",
        scrape.id, scrape.status, len(crawl.pages), result.stats.total_faqs,
    )
    return PipelineResult(scrape=scrape, faq=faq)
