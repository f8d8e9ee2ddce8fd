"""FastAPI application factory.

Routers
-------
    /scrape    — crawl a site and return its pages
    /pipeline  — crawl a site and generate FAQs from it
    /health    — liveness probe
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitefaq.api.routers import pipeline as pipeline_router


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="SiteFAQ API",
        description=(
            "Crawl a website with a bounded breadth-first crawler and turn the "
            "pages into validated, confidence-scored FAQs."
        ),
        version="0.1.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(pipeline_router.router, tags=["pipeline"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn sitefaq.api.app:app --reload
app = create_app()
