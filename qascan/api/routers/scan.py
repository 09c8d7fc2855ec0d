"""Scan endpoints with Server-Sent Events (SSE) streaming.

Routes
------
POST /scan    Body: {"url": "example.com"}
GET  /scan    Current orchestrator snapshot plus the last report

The POST endpoint runs the scan in a background thread and streams every
state / progress change as an SSE event, followed by a terminal ``done`` or
``error`` event.

SSE event format
----------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"event": "progress", "state": "crawling", "progress": 25, ...}

    data: {"event": "done", "report": {...}}

    data: {"event": "error", "kind": "transport", "detail": "..."}
"""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from qascan.errors import ScanInProgressError
from qascan.scan import ScanOrchestrator, ScanSnapshot

router = APIRouter()

# One worker: the orchestrator is reserved per request, so at most one scan runs.
_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scan")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScanRequest(BaseModel):
    url: str


class ScanStatusResponse(BaseModel):
    state: str
    progress: int
    url: Optional[str] = None
    issue_count: int = 0
    failure_reason: Optional[str] = None
    failure_kind: Optional[str] = None
    report: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload)}\n\n"


# ---------------------------------------------------------------------------
# Background runner
# ---------------------------------------------------------------------------

def _run_scan(
    orchestrator: ScanOrchestrator,
    url: str,
    queue: "asyncio.Queue[str | None]",
    loop: asyncio.AbstractEventLoop,
) -> None:
    """Run one scan and push SSE-formatted strings into *queue*.

    The caller must already hold a reservation on *orchestrator*; the scan
    consumes it.  A ``None`` sentinel is enqueued when the thread finishes
    so the async generator knows to stop.
    """
    def _put(payload: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, _sse(payload))

    def _on_update(snapshot: ScanSnapshot) -> None:
        _put({"event": "progress", **snapshot.to_dict()})

    try:
        report = orchestrator.scan(url, on_update=_on_update, reserved=True)
        if report is not None:
            _put({"event": "done", "report": report.to_dict()})
        else:
            kind = orchestrator.failure_kind
            _put(
                {
                    "event": "error",
                    "kind": kind.value if kind else None,
                    "detail": orchestrator.failure_reason,
                }
            )
    except Exception as exc:  # noqa: BLE001
        _put({"event": "error", "kind": None, "detail": str(exc)})
    finally:
        loop.call_soon_threadsafe(queue.put_nowait, None)  # sentinel


# ---------------------------------------------------------------------------
# Async SSE generator
# ---------------------------------------------------------------------------

def _start_scan(orchestrator: ScanOrchestrator, url: str) -> AsyncIterator[str]:
    """Reserve *orchestrator* and start scanning *url* in the background.

    The scan is submitted before anything is streamed, so the reservation is
    always consumed even if the client never reads the response.

    Raises:
        ScanInProgressError: Another scan holds the orchestrator.
    """
    if not orchestrator.reserve():
        raise ScanInProgressError()

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    try:
        future = loop.run_in_executor(_executor, _run_scan, orchestrator, url, queue, loop)
    except Exception:
        orchestrator.release()
        raise
    return _scan_sse_generator(queue, future)


async def _scan_sse_generator(
    queue: "asyncio.Queue[str | None]",
    future: "asyncio.Future[None]",
) -> AsyncIterator[str]:
    """Yield SSE-formatted strings until the scan thread sends its sentinel."""
    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
    finally:
        await asyncio.shield(future)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("")
async def start_scan(body: ScanRequest, request: Request) -> StreamingResponse:
    """Scan a website and stream progress as SSE.

    - ``progress`` — emitted on every state or progress change.
    - ``done``     — the full report, grouped by category.
    - ``error``    — the failure kind and a human-readable reason.

    Returns 409 if a scan is already running.
    """
    orchestrator: ScanOrchestrator = request.app.state.orchestrator
    try:
        stream = _start_scan(orchestrator, body.url)
    except ScanInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )


@router.get("", response_model=ScanStatusResponse)
def scan_status(request: Request) -> dict[str, Any]:
    """Return the current scan state and, once done, its report."""
    orchestrator: ScanOrchestrator = request.app.state.orchestrator
    report = orchestrator.report
    return {
        **orchestrator.snapshot().to_dict(),
        "report": report.to_dict() if report else None,
    }
