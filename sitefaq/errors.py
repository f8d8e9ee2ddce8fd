"""Error taxonomy shared by the crawler, the FAQ pipeline and the retry executor.

Every failure the pipeline raises on purpose is a :class:`PipelineError`
tagged with an :class:`ErrorCategory`.  The retry executor reads the tag; it
never inspects exception types.

``transient``
    Network, navigation, timeout or rate-limit failures.  Retried.
``permanent``
    Missing credentials, invalid configuration.  Never retried.
``validation``
    Model output that does not parse or does not match the FAQ schema.
    Never retried; the raw response is attached for diagnosis.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    VALIDATION = "validation"


class PipelineError(Exception):
    """A failure carrying an explicit retry classification."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        raw_response: str | None = None,
        cancelled: bool = False,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.raw_response = raw_response
        self.cancelled = cancelled

    @classmethod
    def cancelled_by_timeout(cls, what: str, timeout_s: float) -> PipelineError:
        """Build the error reported when an external deadline cuts *what* short."""
        return cls(
            f"{what} cancelled after {timeout_s:g}s",
            ErrorCategory.TRANSIENT,
            cancelled=True,
        )


def classify(exc: BaseException, default: ErrorCategory) -> ErrorCategory:
    """Return the category tagged on *exc*, or *default* when it carries none."""
    category = getattr(exc, "category", None)
    if isinstance(category, ErrorCategory):
        return category
    return default
