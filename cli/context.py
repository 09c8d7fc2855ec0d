"""Shared wiring for CLI commands.

The Firecrawl API key is persisted in ``<workspace>/credentials.json`` so it
survives between invocations; ``FIRECRAWL_API_KEY`` is used while no key has
been saved.
"""

from __future__ import annotations

from typing import Optional

from qascan.config import settings
from qascan.credentials import FileCredentialStore
from qascan.crawler import FirecrawlClient


def get_client() -> FirecrawlClient:
    return FirecrawlClient()


def get_credential_store(client: Optional[FirecrawlClient] = None) -> FileCredentialStore:
    """Return the file-backed store, validating through *client*."""
    client = client or get_client()
    return FileCredentialStore(
        client.validate_credential,
        path=settings.credentials_path,
        initial=settings.firecrawl_api_key or None,
    )
