"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from sitefaq.api import app

    uvicorn sitefaq.api:app --reload
"""

from sitefaq.api.app import app

__all__ = ["app"]
