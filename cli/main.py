"""SiteFAQ CLI — entry-point for crawl and FAQ operations.

Usage:
    python cli/main.py --help

Commands:
    scrape  → crawl a site and print (or save) its pages
    faqs    → generate FAQs from a saved crawl
    run     → crawl and generate in one go, printing the result rows
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from sitefaq.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import logging
from typing import List, Optional

import typer

from cli.rendering import render_crawl_stats, render_faq_stats, render_faqs, render_pages
from sitefaq.config import settings
from sitefaq.faq.generator import generate_faqs
from sitefaq.faq.models import GenerationOptions
from sitefaq.runner import run_pipeline
from sitefaq.scraper.browser import RenderProfile, profile_for
from sitefaq.scraper.crawler import crawl_site
from sitefaq.scraper.models import ScopeRules, ScrapedPage

app = typer.Typer(
    name="sitefaq",
    help="Crawl a website and generate FAQs from its content.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log crawl and generation progress."),
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _profile(owner: bool, static: bool) -> RenderProfile:
    return RenderProfile.STATIC if static else profile_for(owner)


def _progress(max_pages: int):
    def _echo(count: int) -> None:
        typer.echo(f"Scraped {count}/{max_pages} pages")

    return _echo


def _options(
    min_confidence: float,
    max_faqs_per_page: int,
    categories: List[str],
    drop_invalid: bool,
) -> GenerationOptions:
    return GenerationOptions(
        min_confidence=min_confidence,
        max_faqs_per_page=max_faqs_per_page,
        preferred_categories=categories or None,
        drop_invalid=drop_invalid,
    )


def _write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Seed URL to start crawling from."),
    max_pages: int = typer.Option(5, "--max-pages", min=1, help="Maximum pages to scrape."),
    owner: bool = typer.Option(False, "--owner", help="We own the site: render with a local browser."),
    static: bool = typer.Option(False, "--static", help="Fetch plain HTML with httpx (no JavaScript)."),
    path_prefix: List[str] = typer.Option([], "--path-prefix", help="Only follow paths with this prefix."),
    exclude_path: List[str] = typer.Option([], "--exclude-path", help="Skip paths containing this."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save pages as JSON here."),
) -> None:
    """Crawl a site and print what was scraped."""
    typer.echo(f"[scrape] Crawling {url!r} (max {max_pages} pages) …")
    result = asyncio.run(
        crawl_site(
            url,
            max_pages=max_pages,
            profile=_profile(owner, static),
            scope=ScopeRules(tuple(path_prefix), tuple(exclude_path)),
            on_progress=_progress(max_pages),
            config=settings,
        )
    )
    if not result.success:
        typer.echo(f"[scrape] Failed: {result.error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"[scrape] {render_crawl_stats(result.stats)}")
    if output:
        _write_json(output, {"pages": [p.to_dict() for p in result.pages]})
        typer.echo(f"[scrape] Saved scrape results to {output}")
    else:
        typer.echo("")
        typer.echo(render_pages(result.pages))


@app.command("faqs")
def faqs(
    input_path: Path = typer.Option(..., "--input", "-i", exists=True, dir_okay=False, help="JSON file saved by `scrape --output`."),
    min_confidence: float = typer.Option(0.7, "--min-confidence", min=0.0, max=1.0),
    max_faqs_per_page: int = typer.Option(5, "--max-faqs-per-page", min=1, max=10),
    category: List[str] = typer.Option([], "--category", help="Preferred FAQ category (repeatable)."),
    drop_invalid: bool = typer.Option(False, "--drop-invalid", help="Drop bad records instead of failing."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save FAQs as JSON here."),
) -> None:
    """Generate FAQs from a previously saved crawl."""
    data = json.loads(input_path.read_text(encoding="utf-8"))
    pages = [ScrapedPage.from_dict(p) for p in data.get("pages", [])]
    typer.echo(f"[faqs] Generating FAQs from {len(pages)} page(s) …")

    result = asyncio.run(
        generate_faqs(
            pages,
            _options(min_confidence, max_faqs_per_page, category, drop_invalid),
            config=settings,
        )
    )
    if not result.success:
        typer.echo(f"[faqs] Failed ({result.error_category.value}): {result.error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"[faqs] {render_faq_stats(result.stats)}")
    if output:
        _write_json(output, {"faqs": [f.to_wire() for f in result.faqs], "stats": result.stats.to_dict()})
        typer.echo(f"[faqs] Saved FAQs to {output}")
    else:
        typer.echo("")
        typer.echo(render_faqs(result.faqs))


@app.command("run")
def run(
    url: str = typer.Argument(..., help="Seed URL to start crawling from."),
    max_pages: int = typer.Option(5, "--max-pages", min=1),
    owner: bool = typer.Option(False, "--owner", help="We own the site: render with a local browser."),
    static: bool = typer.Option(False, "--static", help="Fetch plain HTML with httpx (no JavaScript)."),
    path_prefix: List[str] = typer.Option([], "--path-prefix"),
    exclude_path: List[str] = typer.Option([], "--exclude-path"),
    min_confidence: float = typer.Option(0.7, "--min-confidence", min=0.0, max=1.0),
    max_faqs_per_page: int = typer.Option(5, "--max-faqs-per-page", min=1, max=10),
    category: List[str] = typer.Option([], "--category"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the rows as JSON here."),
) -> None:
    """Crawl a site, generate FAQs, and print the scrape and FAQ rows as JSON."""
    typer.echo(f"[run] Crawling {url!r} (max {max_pages} pages) …")
    result = asyncio.run(
        run_pipeline(
            url,
            max_pages=max_pages,
            site_owner=owner,
            options=_options(min_confidence, max_faqs_per_page, category, False),
            scope=ScopeRules(tuple(path_prefix), tuple(exclude_path)),
            on_progress=_progress(max_pages),
            config=settings,
            profile=RenderProfile.STATIC if static else None,
        )
    )
    payload = result.to_dict()
    if output:
        _write_json(output, payload)
        typer.echo(f"[run] Saved rows to {output}")
    else:
        typer.echo(json.dumps(payload, indent=2))

    if not result.success:
        typer.echo(f"[run] Pipeline failed: {result.scrape.error}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
