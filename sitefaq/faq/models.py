"""Schemas for generated FAQs and the options that steer generation.

Field names are snake_case in Python and camelCase on the wire
(``sourceUrl``, ``sourcePage``), matching the JSON the model is asked to
produce and the shape stored by the persistence layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sitefaq.errors import ErrorCategory

FAQCategory = Literal["product", "service", "technical", "support", "pricing", "other"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FAQMetadata(_WireModel):
    relevance: float = Field(ge=0, le=1)
    category: FAQCategory
    keywords: list[str] = Field(default_factory=list)


class FAQRecord(_WireModel):
    question: str = Field(min_length=10, max_length=200)
    answer: str = Field(min_length=20, max_length=1000)
    confidence: float = Field(ge=0, le=1)
    source_url: str
    source_page: str
    metadata: Optional[FAQMetadata] = None

    @field_validator("source_url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"not an absolute http(s) URL: {value!r}")
        return value

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FAQResponse(_WireModel):
    """The top-level object the model must return."""

    faqs: list[FAQRecord]


class GenerationOptions(_WireModel):
    max_faqs_per_page: int = Field(default=5, ge=1, le=10)
    min_confidence: float = Field(default=0.7, ge=0, le=1)
    preferred_categories: Optional[list[str]] = None
    # When set, schema-invalid records are dropped one by one instead of
    # failing the whole response.
    drop_invalid: bool = False
    timeout_s: Optional[float] = Field(default=None, gt=0)


@dataclass
class FAQStats:
    total_faqs: int = 0
    processed_chunks: int = 0
    total_tokens: int = 0
    average_confidence: float = 0.0
    processing_time_ms: int = 0
    model: str = ""
    low_confidence_dropped: int = 0
    invalid_dropped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_faqs": self.total_faqs,
            "processed_chunks": self.processed_chunks,
            "total_tokens": self.total_tokens,
            "average_confidence": self.average_confidence,
            "processing_time_ms": self.processing_time_ms,
            "model": self.model,
            "low_confidence_dropped": self.low_confidence_dropped,
            "invalid_dropped": self.invalid_dropped,
        }


@dataclass
class FAQResult:
    """Outcome of :func:`sitefaq.faq.generator.generate_faqs`.

    Never raised past the pipeline boundary: failures come back with
    ``success=False``, the error text and its category.  Validation failures
    also carry the model's ``raw_response``.
    """

    success: bool
    faqs: list[FAQRecord] = field(default_factory=list)
    stats: FAQStats = field(default_factory=FAQStats)
    error: str | None = None
    error_category: ErrorCategory | None = None
    raw_response: str | None = None
