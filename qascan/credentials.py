"""API key storage for the crawl provider.

A store holds a single opaque key plus a flag recording whether the provider
has accepted it.  Keys written through :meth:`CredentialStore.save` are
checked with the provider first; keys that already exist when the store is
created (``FIRECRAWL_API_KEY`` or a previously saved file) are trusted as-is.

Two implementations:

- :class:`MemoryCredentialStore` — process lifetime only (API server, tests).
- :class:`FileCredentialStore` — JSON file under the workspace directory so
  the CLI remembers the key between invocations.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Optional

from qascan.config import settings
from qascan.errors import CredentialMissingError, CredentialRejectedError

Validator = Callable[[str], bool]


@dataclass
class StoredCredential:
    api_key: str
    validated: bool = False


class CredentialStore(ABC):
    """Holds the API key used for every crawl."""

    def __init__(self, validator: Validator) -> None:
        self._validator = validator

    @abstractmethod
    def _load(self) -> Optional[StoredCredential]:
        """Return the current credential, if any."""

    @abstractmethod
    def _dump(self, credential: Optional[StoredCredential]) -> None:
        """Replace the current credential (``None`` clears it)."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self) -> Optional[str]:
        stored = self._load()
        return stored.api_key if stored else None

    def set(self, value: str, *, validated: bool = False) -> None:
        """Store *value* without contacting the provider."""
        self._dump(StoredCredential(api_key=value, validated=validated))

    def clear(self) -> None:
        self._dump(None)

    def validate(self, value: str) -> bool:
        """Ask the provider whether *value* is a usable key."""
        return self._validator(value)

    @property
    def is_validated(self) -> bool:
        stored = self._load()
        return bool(stored and stored.validated)

    def save(self, value: str) -> None:
        """Validate *value* with the provider and store it.

        Raises:
            CredentialRejectedError: If *value* is blank or the provider
                refuses it.  The previously stored key is left untouched.
        """
        value = value.strip()
        if not value:
            raise CredentialRejectedError("Please enter a valid API key")
        if not self.validate(value):
            raise CredentialRejectedError("Invalid API key. Please check and try again.")
        self.set(value, validated=True)
        print("[credentials] API key saved successfully")

    def require(self, *, validated: bool = True) -> str:
        """Return the stored key, or raise if the scan must not proceed.

        Raises:
            CredentialMissingError: No key is stored, or *validated* is set
                and the stored key has never been accepted by the provider.
        """
        stored = self._load()
        if stored is None or not stored.api_key:
            raise CredentialMissingError("Please set your Firecrawl API key first")
        if validated and not stored.validated:
            raise CredentialMissingError(
                "The stored Firecrawl API key has not been validated"
            )
        return stored.api_key


class MemoryCredentialStore(CredentialStore):
    """Keeps the key in memory.  *initial* is trusted as pre-validated."""

    def __init__(self, validator: Validator, initial: Optional[str] = None) -> None:
        super().__init__(validator)
        self._credential: Optional[StoredCredential] = (
            StoredCredential(api_key=initial, validated=True) if initial else None
        )

    def _load(self) -> Optional[StoredCredential]:
        return self._credential

    def _dump(self, credential: Optional[StoredCredential]) -> None:
        self._credential = credential


class FileCredentialStore(CredentialStore):
    """Persists the key as JSON at *path*.

    *initial* (typically ``FIRECRAWL_API_KEY``) is used, and trusted, only
    while the file holds no key.
    """

    def __init__(
        self,
        validator: Validator,
        path: Optional[Path] = None,
        initial: Optional[str] = None,
    ) -> None:
        super().__init__(validator)
        self._path = path or settings.credentials_path
        self._initial = initial

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Optional[StoredCredential]:
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
                stored = StoredCredential(**raw)
            except (OSError, ValueError, TypeError) as exc:
                print(f"[credentials] Ignoring unreadable {self._path}: {exc}")
                stored = None
            if stored and isinstance(stored.api_key, str) and stored.api_key:
                stored.validated = stored.validated is True
                return stored
        if self._initial:
            return StoredCredential(api_key=self._initial, validated=True)
        return None

    def _dump(self, credential: Optional[StoredCredential]) -> None:
        if credential is None:
            self._path.unlink(missing_ok=True)
            self._initial = None
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(asdict(credential), indent=2), encoding="utf-8")
