"""Tests for the Firecrawl crawl client.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- ``time.sleep`` is patched out of the polling loop.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
import respx

from qascan.crawler.client import (
    CONNECT_FAILED_REASON,
    CRAWL_FAILED_REASON,
    MISSING_KEY_REASON,
    VALIDATION_URL,
    FirecrawlClient,
)
from qascan.crawler.models import CrawledPage, CrawlFailure, CrawlSuccess
from qascan.rules import evaluate

_BASE = "https://firecrawl.test"
_SUBMIT = f"{_BASE}/v1/crawl"
_STATUS = f"{_BASE}/v1/crawl/job-1"

_PAGE_A = {
    "markdown": "# Home",
    "html": "<h1>Home</h1>",
    "metadata": {"url": "https://example.com/", "sourceURL": "https://example.com"},
}
_PAGE_B = {
    "markdown": "",
    "html": "<p>About</p>",
    "metadata": {"url": "https://example.com/about", "sourceURL": "https://example.com/about/"},
}
_PAGE_C = {"markdown": "contact", "metadata": {}}


def _client(**kwargs) -> FirecrawlClient:
    kwargs.setdefault("poll_interval", 0.0)
    kwargs.setdefault("crawl_timeout", 60.0)
    return FirecrawlClient(_BASE, timeout=5.0, **kwargs)


def _submitted() -> httpx.Response:
    return httpx.Response(200, json={"success": True, "id": "job-1", "url": _STATUS})


def _status(status: str, data=None, completed: int = 0, total: int = 0, **extra) -> httpx.Response:
    body = {"success": True, "status": status, "completed": completed, "total": total, "data": data or []}
    body.update(extra)
    return httpx.Response(200, json=body)


@pytest.fixture(autouse=True)
def _no_sleep():
    with patch("qascan.crawler.client.time.sleep"):
        yield


# ---------------------------------------------------------------------------
# CrawledPage
# ---------------------------------------------------------------------------

class TestCrawledPage:
    def test_from_payload_reads_metadata_url(self) -> None:
        page = CrawledPage.from_payload(_PAGE_A)
        assert page.url == "https://example.com/"
        assert page.content == "# Home"

    def test_from_payload_uses_html_when_markdown_empty(self) -> None:
        page = CrawledPage.from_payload(_PAGE_B)
        assert page.url == "https://example.com/about"
        assert page.content == "<p>About</p>"

    def test_source_url_alone_is_not_a_location(self) -> None:
        page = CrawledPage.from_payload({"markdown": "x", "metadata": {"sourceURL": "https://s/"}})

        assert page.url is None
        assert {issue.location for issue in evaluate([page])} == {"Page 1"}

    def test_from_payload_without_url(self) -> None:
        page = CrawledPage.from_payload(_PAGE_C)
        assert page.url is None
        assert page.html == ""

    def test_content_empty_when_nothing_returned(self) -> None:
        assert CrawledPage.from_payload({"markdown": None, "html": None}).content == ""


# ---------------------------------------------------------------------------
# crawl
# ---------------------------------------------------------------------------

class TestCrawl:
    def test_missing_credential_skips_network(self) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(_SUBMIT)
            result = _client().crawl("https://example.com", None)

        assert result == CrawlFailure(MISSING_KEY_REASON)
        assert not route.called

    def test_completed_crawl_returns_pages(self) -> None:
        with respx.mock:
            submit = respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS).mock(
                return_value=_status("completed", [_PAGE_A, _PAGE_B], completed=2, total=2)
            )
            result = _client().crawl("https://example.com", "fc-key")

        assert isinstance(result, CrawlSuccess)
        assert [p.url for p in result.pages] == ["https://example.com/", "https://example.com/about"]

        request = submit.calls.last.request
        assert request.headers["Authorization"] == "Bearer fc-key"
        assert json.loads(request.content) == {
            "url": "https://example.com",
            "limit": 50,
            "scrapeOptions": {"formats": ["markdown", "html"]},
        }

    def test_polls_until_completed_and_reports_progress(self) -> None:
        progress: list[tuple[int, int]] = []
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            status = respx.get(_STATUS).mock(
                side_effect=[
                    _status("scraping", completed=0, total=3),
                    _status("scraping", completed=1, total=3),
                    _status("completed", [_PAGE_A, _PAGE_B, _PAGE_C], completed=3, total=3),
                ]
            )
            result = _client().crawl(
                "https://example.com", "fc-key", on_progress=lambda c, t: progress.append((c, t))
            )

        assert isinstance(result, CrawlSuccess)
        assert len(result.pages) == 3
        assert status.call_count == 3
        assert progress == [(0, 3), (1, 3), (3, 3)]

    def test_follows_pagination(self) -> None:
        next_url = f"{_STATUS}?skip=1"
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS, params={"skip": "1"}).mock(
                return_value=_status("completed", [_PAGE_B])
            )
            respx.get(_STATUS).mock(return_value=_status("completed", [_PAGE_A], next=next_url))
            result = _client().crawl("https://example.com", "fc-key")

        assert isinstance(result, CrawlSuccess)
        assert [p.url for p in result.pages] == ["https://example.com/", "https://example.com/about"]

    def test_completed_with_zero_pages_is_success(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS).mock(return_value=_status("completed", []))
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlSuccess(pages=[])

    def test_provider_refusal_uses_provider_message(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(
                return_value=httpx.Response(402, json={"success": False, "error": "Insufficient credits"})
            )
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlFailure("Insufficient credits")

    def test_provider_refusal_without_message_uses_fallback(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=httpx.Response(200, json={"success": False}))
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlFailure(CRAWL_FAILED_REASON)

    def test_failed_job(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS).mock(return_value=_status("failed"))
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlFailure("Crawl failed")

    def test_timeout_while_polling(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS).mock(return_value=_status("scraping"))
            result = _client(crawl_timeout=0.0).crawl("https://example.com", "fc-key")

        assert result == CrawlFailure("Crawl timed out after 0 seconds")

    def test_transport_error_message_becomes_reason(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(side_effect=httpx.ConnectError("connection refused"))
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlFailure("connection refused")

    def test_transport_error_without_message_uses_fallback(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(side_effect=httpx.ConnectError(""))
            result = _client().crawl("https://example.com", "fc-key")

        assert result == CrawlFailure(CONNECT_FAILED_REASON)

    def test_progress_callback_error_propagates(self) -> None:
        def _boom(completed: int, total: int) -> None:
            raise ValueError("listener broke")

        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=_submitted())
            respx.get(_STATUS).mock(return_value=_status("scraping", completed=1, total=2))
            with pytest.raises(ValueError, match="listener broke"):
                _client().crawl("https://example.com", "fc-key", on_progress=_boom)

    def test_non_json_server_error_is_a_failure(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(return_value=httpx.Response(500, text="Internal Server Error"))
            result = _client().crawl("https://example.com", "fc-key")

        assert isinstance(result, CrawlFailure)
        assert "500" in result.reason


# ---------------------------------------------------------------------------
# validate_credential
# ---------------------------------------------------------------------------

class TestValidateCredential:
    def test_accepted_key(self) -> None:
        with respx.mock:
            submit = respx.post(_SUBMIT).mock(return_value=_submitted())
            assert _client().validate_credential("fc-good") is True

        body = json.loads(submit.calls.last.request.content)
        assert body["url"] == VALIDATION_URL
        assert body["limit"] == 1

    def test_rejected_key(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(
                return_value=httpx.Response(401, json={"success": False, "error": "Unauthorized"})
            )
            assert _client().validate_credential("fc-bad") is False

    def test_exception_means_invalid(self) -> None:
        with respx.mock:
            respx.post(_SUBMIT).mock(side_effect=httpx.ReadTimeout("timed out"))
            assert _client().validate_credential("fc-key") is False

    def test_blank_key_is_invalid_without_network(self) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(_SUBMIT)
            assert _client().validate_credential("") is False

        assert not route.called
