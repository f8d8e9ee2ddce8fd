"""Crawl and FAQ pipeline endpoints.

Routes
------
POST /scrape      Body: {"url": "https://...", "max_pages": 5, ...}   → crawl_site
POST /pipeline    Body: scrape fields + {"options": {...}}            → run_pipeline

Pipeline failures (fatal crawl error, invalid model output) are ordinary
outcomes and come back as ``200`` with ``success: false``.  Only malformed
requests are rejected (``422``).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field, HttpUrl

from sitefaq.config import settings
from sitefaq.faq.models import GenerationOptions
from sitefaq.runner import run_pipeline
from sitefaq.scraper.browser import RenderProfile, profile_for
from sitefaq.scraper.crawler import crawl_site
from sitefaq.scraper.models import ScopeRules

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    url: HttpUrl
    max_pages: int = Field(default=5, ge=1, le=50)
    site_owner: bool = False
    # Overrides the profile implied by site_owner (e.g. "static").
    profile: Optional[RenderProfile] = None
    path_prefixes: list[str] = Field(default_factory=list)
    exclude_paths: list[str] = Field(default_factory=list)

    def scope(self) -> ScopeRules:
        return ScopeRules(tuple(self.path_prefixes), tuple(self.exclude_paths))

    def render_profile(self) -> RenderProfile:
        return self.profile or profile_for(self.site_owner)


class PipelineRequest(ScrapeRequest):
    options: Optional[GenerationOptions] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scrape")
async def scrape_endpoint(body: ScrapeRequest) -> dict[str, Any]:
    """Crawl a site and return the scraped pages with crawl statistics."""
    result = await crawl_site(
        str(body.url),
        max_pages=body.max_pages,
        profile=body.render_profile(),
        scope=body.scope(),
        config=settings,
    )
    return {
        "success": result.success,
        "pages": [page.to_dict() for page in result.pages] if result.success else [],
        "stats": result.stats.to_dict(),
        "error": result.error,
    }


@router.post("/pipeline")
async def pipeline_endpoint(body: PipelineRequest) -> dict[str, Any]:
    """Crawl a site, generate FAQs, and return the scrape and FAQ rows."""
    result = await run_pipeline(
        str(body.url),
        max_pages=body.max_pages,
        site_owner=body.site_owner,
        options=body.options,
        scope=body.scope(),
        config=settings,
        profile=body.profile,
    )
    return result.to_dict()
