"""FAQ generation from scraped pages.

``generate_faqs`` runs the whole extraction step for one crawl:

    combine pages → prompt → model (with retry) → strip fence → parse JSON
    → validate schema → confidence filter → stats

Only the model call is retried.  A response that does not parse or does not
match the schema is a ``validation`` failure and is reported straight away,
with the raw text attached.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
import time
from typing import Any, Sequence

from pydantic import ValidationError

from sitefaq.config import Settings, settings as default_settings
from sitefaq.errors import ErrorCategory, PipelineError, classify
from sitefaq.faq.llm import LangChainGenerator, TextGenerator
from sitefaq.faq.models import FAQRecord, FAQResponse, FAQResult, FAQStats, GenerationOptions
from sitefaq.faq.prompts import SYSTEM_PROMPT, build_user_prompt, combine_pages
from sitefaq.retry import with_retry
from sitefaq.scraper.models import ScrapedPage

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Rough token count: characters divided by *chars_per_token*, rounded up."""
    return math.ceil(len(text) / chars_per_token)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence (```` ```json ... ``` ````), if any."""
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text.strip()


def parse_response(text: str, drop_invalid: bool = False) -> tuple[list[FAQRecord], int]:
    """Parse the model's reply into validated records.

    Returns:
        ``(records, invalid_count)``.  ``invalid_count`` is always 0 unless
        *drop_invalid* is set.

    Raises:
        PipelineError: ``validation`` when the reply is not JSON, or when it
            does not match the schema (in strict mode, any bad record).
    """
    if not isinstance(text, str):
        raise PipelineError(
            f"Model response is not text ({type(text).__name__})",
            ErrorCategory.VALIDATION,
            raw_response=repr(text),
        )
    try:
        data: Any = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise PipelineError(
            f"Model response is not valid JSON: {exc}",
            ErrorCategory.VALIDATION,
            raw_response=text,
        ) from exc

    if not drop_invalid:
        try:
            return FAQResponse.model_validate(data).faqs, 0
        except ValidationError as exc:
            raise PipelineError(
                f"Model response does not match the FAQ schema: {exc}",
                ErrorCategory.VALIDATION,
                raw_response=text,
            ) from exc

    if not isinstance(data, dict) or not isinstance(data.get("faqs"), list):
        raise PipelineError(
            "Model response has no 'faqs' list",
            ErrorCategory.VALIDATION,
            raw_response=text,
        )

    records: list[FAQRecord] = []
    invalid = 0
    for index, item in enumerate(data["faqs"]):
        try:
            records.append(FAQRecord.model_validate(item))
        except ValidationError as exc:
            invalid += 1
            logger.warning("[faq] dropping invalid record #%d: %s", index, exc.errors()[0]["msg"])
    return records, invalid


def filter_by_confidence(
    records: Sequence[FAQRecord], min_confidence: float
) -> tuple[list[FAQRecord], int]:
    """Split off records below *min_confidence*; return ``(kept, dropped_count)``."""
    kept = [r for r in records if r.confidence >= min_confidence]
    return kept, len(records) - len(kept)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def generate_faqs(
    pages: Sequence[ScrapedPage],
    options: GenerationOptions | None = None,
    generator: TextGenerator | None = None,
    config: Settings | None = None,
) -> FAQResult:
    """Generate validated FAQs from *pages* in a single model request.

    Args:
        pages: Scraped pages, in crawl order.
        options: Confidence threshold, per-page cap, categories, deadline.
        generator: Text-generation backend; defaults to the LangChain model
            selected by ``config.llm_provider``.
        config: Settings; defaults to the module-level ``settings``.

    Returns:
        A :class:`FAQResult`.  Failures are returned, never raised.
    """
    config = config or default_settings
    options = options or GenerationOptions()
    generator = generator or LangChainGenerator(config)

    start = time.monotonic()
    stats = FAQStats(model=generator.model_name)

    def _elapsed_ms() -> int:
        return int((time.monotonic() - start) * 1000)

    if not pages:
        logger.info("[faq] no pages to process; skipping generation")
        stats.processing_time_ms = _elapsed_ms()
        return FAQResult(success=True, stats=stats)

    combined = combine_pages(pages)
    stats.processed_chunks = 1
    stats.total_tokens = estimate_tokens(combined, config.chars_per_token)
    user_prompt = build_user_prompt(combined, options)

    logger.info(
        "[faq] generating from %d page(s), ~%d tokens, model %s",
        len(pages), stats.total_tokens, stats.model,
    )

    deadline = asyncio.timeout(options.timeout_s)
    try:
        async with deadline:
            text = await with_retry(
                lambda: generator.complete(
                    SYSTEM_PROMPT,
                    user_prompt,
                    config.generation_temperature,
                    config.max_output_tokens,
                ),
                ErrorCategory.TRANSIENT,
                max_attempts=config.retry_max_attempts,
                base_delay_ms=config.retry_base_delay_ms,
            )
        logger.info("[faq] response received (%d chars)", len(text))

        records, stats.invalid_dropped = parse_response(text, options.drop_invalid)
    except Exception as exc:
        if isinstance(exc, TimeoutError) and deadline.expired():
            exc = PipelineError.cancelled_by_timeout("FAQ generation", options.timeout_s or 0)
        category = classify(exc, ErrorCategory.TRANSIENT)
        stats.processing_time_ms = _elapsed_ms()
        logger.error("[faq] generation failed (%s): %s", category.value, exc)
        return FAQResult(
            success=False,
            stats=stats,
            error=str(exc),
            error_category=category,
            raw_response=getattr(exc, "raw_response", None),
        )

    accepted, stats.low_confidence_dropped = filter_by_confidence(records, options.min_confidence)
    stats.total_faqs = len(accepted)
    stats.average_confidence = (
        sum(r.confidence for r in accepted) / len(accepted) if accepted else 0.0
    )
    stats.processing_time_ms = _elapsed_ms()

    logger.info(
        "[faq] %d FAQ(s) accepted, %d below confidence %.2f, %d invalid; avg confidence %.2f",
        stats.total_faqs, stats.low_confidence_dropped, options.min_confidence,
        stats.invalid_dropped, stats.average_confidence,
    )
    return FAQResult(success=True, faqs=accepted, stats=stats)
