"""Firecrawl crawl client.

Speaks the Firecrawl v1 REST API directly over ``httpx``:

  1. ``POST /v1/crawl`` submits a crawl job for a root URL.
  2. ``GET /v1/crawl/{id}`` is polled until the job reports ``completed``.
  3. Completed results may be paginated through a ``next`` URL.

``crawl`` never raises on its own account: a missing key, a provider-side
refusal and any transport or protocol error all come back as a
:class:`CrawlFailure`.  Exceptions from the caller's ``on_progress`` callback
propagate unchanged.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx

from qascan.config import settings
from qascan.crawler.models import CrawledPage, CrawlFailure, CrawlResult, CrawlSuccess

CRAWL_PAGE_LIMIT = 50
CRAWL_FORMATS = ("markdown", "html")
VALIDATION_URL = "https://example.com"

MISSING_KEY_REASON = "API key not found"
CRAWL_FAILED_REASON = "Failed to crawl website"
CONNECT_FAILED_REASON = "Failed to connect to Firecrawl API"

ProgressCallback = Callable[[int, int], None]


class _ProviderError(Exception):
    """The provider answered, but with ``success = false`` or a failed job."""


class _ProgressCallbackError(Exception):
    """Carries an exception raised by the caller's ``on_progress`` as its cause."""


def _read(response: httpx.Response) -> dict[str, Any]:
    """Decode a provider response body.

    Firecrawl reports refusals as JSON ``{"success": false, "error": ...}``
    even on 4xx/5xx, so the body is inspected before the status code.
    """
    try:
        data = response.json()
    except ValueError:
        response.raise_for_status()
        raise
    if not isinstance(data, dict):
        raise ValueError("Unexpected response from Firecrawl API")
    if response.is_error and "success" not in data:
        response.raise_for_status()
    return data


class FirecrawlClient:
    """Submit crawl jobs to Firecrawl and wait for their results."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        crawl_timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or settings.firecrawl_base_url).rstrip("/")
        self._timeout = settings.request_timeout if timeout is None else timeout
        self._poll_interval = (
            settings.crawl_poll_interval if poll_interval is None else poll_interval
        )
        self._crawl_timeout = (
            settings.crawl_timeout if crawl_timeout is None else crawl_timeout
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def crawl(
        self,
        url: str,
        credential: Optional[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> CrawlResult:
        """Crawl up to ``CRAWL_PAGE_LIMIT`` pages reachable from *url*.

        Args:
            url: An already-normalised root URL.
            credential: The Firecrawl API key.
            on_progress: Called with ``(completed, total)`` after every poll.
                Anything it raises propagates out of ``crawl``.

        Returns:
            :class:`CrawlSuccess` with the crawled pages, or
            :class:`CrawlFailure` carrying a human-readable reason.
        """
        if not credential:
            return CrawlFailure(MISSING_KEY_REASON)

        print(f"[crawl] Submitting crawl for {url!r} …")
        try:
            with self._client(credential) as client:
                job_id = self._submit(client, url, limit=CRAWL_PAGE_LIMIT)
                pages = self._wait(client, job_id, on_progress)
        except _ProgressCallbackError as exc:
            # Not a crawl failure: hand the caller its own exception back.
            raise exc.__cause__
        except _ProviderError as exc:
            print(f"[crawl] crawl failed: {exc}")
            return CrawlFailure(str(exc) or CRAWL_FAILED_REASON)
        except Exception as exc:
            print(f"[crawl] request failed: {exc!r:.120}")
            return CrawlFailure(str(exc) or CONNECT_FAILED_REASON)

        print(f"[crawl] ✓ {len(pages)} page(s).")
        return CrawlSuccess(pages=pages)

    def validate_credential(self, candidate: Optional[str]) -> bool:
        """Return ``True`` if Firecrawl accepts a one-page crawl with *candidate*.

        Only the job submission is checked; the test crawl is not awaited.
        Never raises.
        """
        if not candidate:
            return False

        print("[crawl] Testing API key …")
        try:
            with self._client(candidate) as client:
                self._submit(client, VALIDATION_URL, limit=1)
        except Exception as exc:
            print(f"[crawl] API key check failed: {exc}")
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _client(self, credential: str) -> httpx.Client:
        return httpx.Client(
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type": "application/json",
            },
            timeout=self._timeout,
            follow_redirects=True,
        )

    def _submit(self, client: httpx.Client, url: str, limit: int) -> str:
        """Start a crawl job and return its id."""
        data = _read(
            client.post(
                f"{self._base_url}/v1/crawl",
                json={
                    "url": url,
                    "limit": limit,
                    "scrapeOptions": {"formats": list(CRAWL_FORMATS)},
                },
            )
        )
        if not data.get("success"):
            raise _ProviderError(data.get("error") or "")
        job_id = data.get("id")
        if not job_id:
            raise _ProviderError("Crawl job id missing from response")
        return job_id

    def _wait(
        self,
        client: httpx.Client,
        job_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> list[CrawledPage]:
        """Poll the job until it finishes and return every crawled page."""
        status_url = f"{self._base_url}/v1/crawl/{job_id}"
        deadline = time.monotonic() + self._crawl_timeout

        while True:
            data = _read(client.get(status_url))
            if data.get("success") is False:
                raise _ProviderError(data.get("error") or "")

            status = data.get("status")
            if on_progress is not None:
                completed, total = int(data.get("completed") or 0), int(data.get("total") or 0)
                try:
                    on_progress(completed, total)
                except Exception as exc:
                    raise _ProgressCallbackError() from exc

            if status == "completed":
                return self._collect(client, data)
            if status in ("failed", "cancelled"):
                raise _ProviderError(data.get("error") or f"Crawl {status}")
            if time.monotonic() >= deadline:
                raise _ProviderError(
                    f"Crawl timed out after {self._crawl_timeout:.0f} seconds"
                )
            time.sleep(self._poll_interval)

    def _collect(self, client: httpx.Client, data: dict[str, Any]) -> list[CrawledPage]:
        pages = [CrawledPage.from_payload(p) for p in data.get("data") or []]
        next_url = data.get("next")
        while next_url:
            data = _read(client.get(next_url))
            pages.extend(CrawledPage.from_payload(p) for p in data.get("data") or [])
            next_url = data.get("next")
        return pages
