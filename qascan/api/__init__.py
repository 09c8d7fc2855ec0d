"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from qascan.api import app

    uvicorn qascan.api:app --reload
"""

from qascan.api.app import app

__all__ = ["app"]
