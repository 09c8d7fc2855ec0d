"""QA Scan CLI — entry-point for scanning websites from the terminal.

Usage:
    python cli/main.py --help

Commands:
    scan   → crawl a site and print the categorised issue report
    key    → save / inspect / clear the Firecrawl API key
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from qascan.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from qascan.scan import ScanOrchestrator, ScanSnapshot, ScanState
from cli.commands.key import key_app
from cli.context import get_client, get_credential_store
from cli.rendering import render_report

app = typer.Typer(
    name="qascan",
    help="Crawl a website and report functional, smoke, regression, unit and boundary issues.",
    no_args_is_help=True,
)
app.add_typer(key_app, name="key")


def _echo_progress(snapshot: ScanSnapshot) -> None:
    if snapshot.state in (ScanState.DONE, ScanState.FAILED):
        return
    typer.echo(f"[scan] {snapshot.state.value:<11} {snapshot.progress:>3}%")


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------
@app.command("scan")
def scan(
    url: str = typer.Option(..., help="URL or IPv4 address to scan."),
) -> None:
    """Crawl a website (up to 50 pages) and print the issues found."""
    client = get_client()
    orchestrator = ScanOrchestrator(client, get_credential_store(client))

    report = orchestrator.scan(url, on_update=_echo_progress)

    if report is None:
        typer.echo(f"❌ Scan failed: {orchestrator.failure_reason}")
        raise typer.Exit(code=1)

    typer.echo("")
    typer.echo(render_report(report))


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
