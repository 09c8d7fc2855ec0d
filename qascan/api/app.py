"""FastAPI application factory.

Lifespan
--------
On startup the app builds one Firecrawl client, an in-memory credential
store (seeded from ``FIRECRAWL_API_KEY`` when set) and a single
:class:`~qascan.scan.ScanOrchestrator`, all shared across requests via
``request.app.state``.

Routers
-------
    /scan         — start a scan (SSE progress stream) / read the last result
    /credentials  — validate, save and clear the Firecrawl API key
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qascan import __version__
from qascan.config import settings
from qascan.credentials import MemoryCredentialStore
from qascan.crawler import FirecrawlClient
from qascan.scan import ScanOrchestrator

from qascan.api.routers import credentials as credentials_router
from qascan.api.routers import scan as scan_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire the client, credential store and orchestrator on startup."""
    client = FirecrawlClient()
    store = MemoryCredentialStore(
        client.validate_credential, initial=settings.firecrawl_api_key or None
    )
    app.state.credentials = store
    app.state.orchestrator = ScanOrchestrator(client, store)
    yield


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="QA Scan API",
        description=(
            "Crawl a website through Firecrawl and report functional, smoke, "
            "regression, unit and boundary-value issues per page. Scan "
            "progress is streamed as Server-Sent Events."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scan_router.router, prefix="/scan", tags=["scan"])
    app.include_router(
        credentials_router.router, prefix="/credentials", tags=["credentials"]
    )

    return app


# Module-level instance used by uvicorn:
#   uvicorn qascan.api.app:app --reload
app = create_app()
