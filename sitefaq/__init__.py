"""SiteFAQ — crawl a website and turn its content into validated FAQs.

Public API::

    from sitefaq import run_pipeline
    result = await run_pipeline("https://example.com", max_pages=5, site_owner=True)
"""

from sitefaq.runner import PipelineResult, run_pipeline

__all__ = ["run_pipeline", "PipelineResult"]
