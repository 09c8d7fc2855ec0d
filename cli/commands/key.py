"""API key commands: save, inspect and forget the Firecrawl key."""

from __future__ import annotations

import typer

from qascan.errors import CredentialRejectedError
from cli.context import get_credential_store

key_app = typer.Typer(help="Manage the Firecrawl API key.", no_args_is_help=True)


@key_app.command("set")
def key_set(
    api_key: str = typer.Option(
        ..., "--api-key", prompt=True, hide_input=True, help="Firecrawl API key."
    ),
) -> None:
    """Validate a key against Firecrawl and save it."""
    store = get_credential_store()
    typer.echo("🔑 Testing API key with Firecrawl …")
    try:
        store.save(api_key)
    except CredentialRejectedError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    typer.echo("✅ API key saved and validated successfully")


@key_app.command("status")
def key_status() -> None:
    """Show whether a key is stored and whether it has been validated."""
    store = get_credential_store()
    if store.get() is None:
        typer.echo("No API key configured. Run 'key set' first.")
        return
    state = "validated" if store.is_validated else "not validated"
    typer.echo(f"API key configured ({state}).")


@key_app.command("clear")
def key_clear() -> None:
    """Forget the saved key."""
    get_credential_store().clear()
    typer.echo("API key removed.")
