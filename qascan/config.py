"""Centralised settings for the QA scan backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("QASCAN_WORKSPACE", Path.home() / ".qascan")
        )
    )

    @property
    def credentials_path(self) -> Path:
        """Absolute path to the JSON file holding the saved API key."""
        return self.workspace_dir / "credentials.json"

    # ------------------------------------------------------------------
    # Crawl provider (Firecrawl)
    # ------------------------------------------------------------------
    firecrawl_api_key: str = field(
        default_factory=lambda: os.environ.get("FIRECRAWL_API_KEY", "")
    )
    firecrawl_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "FIRECRAWL_BASE_URL", "https://api.firecrawl.dev"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    crawl_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_POLL_INTERVAL", "2.0"))
    )
    crawl_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_TIMEOUT", "300.0"))
    )

    # ------------------------------------------------------------------
    # Scan gating
    # ------------------------------------------------------------------
    # When false, a stored but never-validated key may still be used.
    require_validated_credential: bool = field(
        default_factory=lambda: _env_flag("REQUIRE_VALIDATED_CREDENTIAL", "true")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from qascan.config import settings
settings = Settings()
