"""Row shapes handed to the persistence layer.

These are plain Python objects, not ORM models.  SiteFAQ never stores them
itself; :func:`sitefaq.runner.run_pipeline` returns them and the caller
decides where they go.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from sitefaq.faq.models import FAQRecord

ScrapeStatus = Literal["pending", "scraping", "scraping_completed", "faq_generated", "error"]
FaqStatus = Literal["pending", "completed", "error"]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ScrapeRow:
    url: str
    id: str = field(default_factory=new_id)
    status: ScrapeStatus = "pending"
    pages: list[dict[str, Any]] = field(default_factory=list)
    completed_at: str | None = None
    metadata: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "pages": self.pages,
        }
        if self.completed_at is not None:
            data["completed_at"] = self.completed_at
        if self.metadata is not None:
            data["metadata"] = self.metadata
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class FaqRow:
    scrape_id: str
    id: str = field(default_factory=new_id)
    faqs: list[FAQRecord] = field(default_factory=list)
    status: FaqStatus = "pending"
    metadata: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "scrape_id": self.scrape_id,
            "faqs": [faq.to_wire() for faq in self.faqs],
            "status": self.status,
            "metadata": self.metadata,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
