"""Exception types raised across the scan pipeline.

Crawl and scan failures are reported as values (``CrawlFailure`` and the
orchestrator's ``failed`` state).  The exceptions below cover the conditions
a caller has to react to directly: re-prompting for a key, or waiting for a
running scan to finish.
"""

from __future__ import annotations


class QAScanError(Exception):
    """Base class for all qascan errors."""


class CredentialMissingError(QAScanError):
    """No API key is stored, or the stored key has never been validated."""


class CredentialRejectedError(QAScanError):
    """The crawl provider refused a user-supplied API key."""


class ScanInProgressError(QAScanError):
    """A scan was submitted while another one is still running."""

    def __init__(self, message: str = "scan already in progress") -> None:
        super().__init__(message)
