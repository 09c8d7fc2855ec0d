"""Scan orchestration: one user-initiated scan from URL to report.

State machine::

    idle → normalizing → crawling → analyzing → done
                 ↘           ↘
                   failed      failed

``failed`` and ``done`` are terminal for the scan that reached them; the next
:meth:`ScanOrchestrator.scan` call starts over and clears the old report.
Only one scan may run at a time per orchestrator; a second submission raises
:class:`~qascan.errors.ScanInProgressError` instead of queueing.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Optional

from qascan.config import settings
from qascan.credentials import CredentialStore
from qascan.crawler.client import FirecrawlClient
from qascan.crawler.models import CrawlFailure
from qascan.errors import CredentialMissingError, ScanInProgressError
from qascan.rules.engine import evaluate
from qascan.scan.report import ScanReport
from qascan.scan.urls import normalize_url

# Progress checkpoints (percent).
PROGRESS_CRAWL_STARTED = 25
PROGRESS_CRAWL_FINISHED = 75
PROGRESS_DONE = 100


class ScanState(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    CRAWLING = "crawling"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"


class FailureKind(str, Enum):
    CONFIGURATION = "configuration"
    INVALID_INPUT = "invalid_input"
    TRANSPORT = "transport"


_RUNNING = {ScanState.NORMALIZING, ScanState.CRAWLING, ScanState.ANALYZING}


@dataclass(frozen=True)
class ScanSnapshot:
    """Read-only view of the orchestrator at one point in time."""

    state: ScanState
    progress: int
    url: Optional[str] = None
    issue_count: int = 0
    failure_reason: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["failure_kind"] = self.failure_kind.value if self.failure_kind else None
        return data


UpdateCallback = Callable[[ScanSnapshot], None]


def crawl_progress(completed: int, total: int) -> int:
    """Map provider progress into the crawling band, capped below its end."""
    if total <= 0:
        return PROGRESS_CRAWL_STARTED
    span = PROGRESS_CRAWL_FINISHED - PROGRESS_CRAWL_STARTED
    fraction = min(completed, total) / total
    return min(PROGRESS_CRAWL_STARTED + int(span * fraction), PROGRESS_CRAWL_FINISHED - 1)


class ScanOrchestrator:
    """Coordinate the crawl client and rule engine for one scan at a time.

    Args:
        client: Crawl client used for the outbound crawl.
        credentials: Store supplying the API key.
        require_validated: Refuse keys the provider has never accepted.
            Defaults to ``settings.require_validated_credential``.
        on_update: Called with a :class:`ScanSnapshot` on every state or
            progress change.
    """

    def __init__(
        self,
        client: FirecrawlClient,
        credentials: CredentialStore,
        *,
        require_validated: Optional[bool] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._require_validated = (
            settings.require_validated_credential
            if require_validated is None
            else require_validated
        )
        self._on_update = on_update
        self._scan_listener: Optional[UpdateCallback] = None
        self._lock = threading.Lock()

        self._state = ScanState.IDLE
        self._progress = 0
        self._url: Optional[str] = None
        self._report: Optional[ScanReport] = None
        self._failure_reason: Optional[str] = None
        self._failure_kind: Optional[FailureKind] = None

    # ------------------------------------------------------------------
    # Presentation boundary
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def report(self) -> Optional[ScanReport]:
        """The last report, available only once the scan is ``done``."""
        return self._report

    @property
    def failure_reason(self) -> Optional[str]:
        return self._failure_reason

    @property
    def failure_kind(self) -> Optional[FailureKind]:
        return self._failure_kind

    @property
    def busy(self) -> bool:
        return self._lock.locked() or self._state in _RUNNING

    def snapshot(self) -> ScanSnapshot:
        return ScanSnapshot(
            state=self._state,
            progress=self._progress,
            url=self._url,
            issue_count=len(self._report) if self._report else 0,
            failure_reason=self._failure_reason,
            failure_kind=self._failure_kind,
        )

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def reserve(self) -> bool:
        """Claim the orchestrator for a scan that will start later.

        Returns ``False`` if another scan holds it.  A successful reservation
        must be consumed by ``scan(..., reserved=True)`` or given back with
        :meth:`release`.
        """
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        """Give back a reservation that will not be used."""
        self._lock.release()

    def scan(
        self,
        raw_url: str,
        on_update: Optional[UpdateCallback] = None,
        *,
        reserved: bool = False,
    ) -> Optional[ScanReport]:
        """Run a full scan of *raw_url*.

        *on_update*, if given, receives snapshots for this scan only, in
        addition to the orchestrator-wide callback.  Pass ``reserved=True``
        when the caller already holds a reservation from :meth:`reserve`.

        Returns:
            The :class:`ScanReport`, or ``None`` if the scan failed (see
            :attr:`failure_reason` and :attr:`failure_kind`).

        Raises:
            ScanInProgressError: Another scan on this orchestrator has not
                finished yet.
        """
        if not reserved and not self._lock.acquire(blocking=False):
            raise ScanInProgressError()
        self._scan_listener = on_update
        try:
            return self._run(raw_url)
        except Exception as exc:
            # A scan that blew up must not keep reporting a running state.
            self._failure_reason = str(exc) or exc.__class__.__name__
            self._state = ScanState.FAILED
            print(f"[scan] Scan aborted: {exc!r:.120}")
            raise
        finally:
            self._scan_listener = None
            self._lock.release()

    def _run(self, raw_url: str) -> Optional[ScanReport]:
        self._report = None
        self._failure_reason = None
        self._failure_kind = None
        self._url = None
        self._progress = 0

        if not raw_url or not raw_url.strip():
            return self._fail(FailureKind.INVALID_INPUT, "Please enter a URL to scan")
        try:
            credential = self._credentials.require(validated=self._require_validated)
        except CredentialMissingError as exc:
            return self._fail(FailureKind.CONFIGURATION, str(exc))

        self._transition(ScanState.NORMALIZING)
        self._url = normalize_url(raw_url)
        print(f"[scan] Starting scan for URL: {self._url}")

        self._transition(ScanState.CRAWLING, PROGRESS_CRAWL_STARTED)
        result = self._client.crawl(self._url, credential, on_progress=self._on_crawl_progress)
        if isinstance(result, CrawlFailure):
            return self._fail(FailureKind.TRANSPORT, result.reason)

        self._transition(ScanState.ANALYZING, PROGRESS_CRAWL_FINISHED)
        issues = evaluate(result.pages)
        report = ScanReport(url=self._url, issues=tuple(issues), pages_scanned=len(result.pages))
        self._report = report
        self._transition(ScanState.DONE, PROGRESS_DONE)
        print(f"[scan] Scan complete: found {len(report)} potential issue(s).")
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_crawl_progress(self, completed: int, total: int) -> None:
        progress = crawl_progress(completed, total)
        if progress > self._progress:
            self._progress = progress
            self._notify()

    def _transition(self, state: ScanState, progress: Optional[int] = None) -> None:
        self._state = state
        if progress is not None:
            self._progress = progress
        self._notify()

    def _fail(self, kind: FailureKind, reason: str) -> None:
        self._failure_kind = kind
        self._failure_reason = reason
        print(f"[scan] Scan failed ({kind.value}): {reason}")
        self._transition(ScanState.FAILED)
        return None

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in (self._on_update, self._scan_listener):
            if listener is None:
                continue
            try:
                listener(snapshot)
            except Exception as exc:
                print(f"[scan] update listener failed: {exc!r:.120}")
