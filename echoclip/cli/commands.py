"""CLI commands for echoclip using Typer and Rich.

Stands in for the desktop window during development and scripting:
- run: apply an action to text (argument or stdin) and/or an image file
- prompt: show the system instruction an action would use
- providers list/add/remove/default/check/set-key: manage the registry
"""

import asyncio
import base64
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import typer
from keyring.errors import KeyringError
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from echoclip.config import settings
from echoclip.schemas.run import Action, RunRequest
from echoclip.services.credentials import KeyringCredentialResolver, get_credential_resolver
from echoclip.services.llm.router import adapter_class_for, probe_provider
from echoclip.services.prompts import system_prompt_for
from echoclip.services.registry import ProviderNotFoundError, get_registry
from echoclip.services.runner import run_action

app = typer.Typer(name="echoclip", help="Clipboard text actions routed to LLM providers")
providers_app = typer.Typer(help="Manage configured providers")
app.add_typer(providers_app, name="providers")
console = Console()
err_console = Console(stderr=True)

_ACTIONS = [a.value for a in Action]

# httpx logs full request URLs at INFO, including Gemini's ?key= parameter.
_HTTP_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int) -> None:
    """Log to stderr at ``level``, keeping the HTTP client loggers at WARNING."""
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log provider calls to stderr"),
):
    """Configure logging before any command runs."""
    level = logging.DEBUG if verbose else getattr(logging, settings.logging.level.upper(), logging.WARNING)
    configure_logging(level)


def _read_image(path: Path) -> str:
    """Encode an image file as a data URI."""
    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode()
    return f"data:{mime_type};base64,{encoded}"


@app.command()
def run(
    action: str = typer.Argument(..., help=f"One of: {', '.join(_ACTIONS)}"),
    text: Optional[str] = typer.Argument(None, help="Input text (read from stdin when omitted)"),
    image: Optional[Path] = typer.Option(None, "--image", "-i", exists=True, dir_okay=False, help="Image file to attach"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider id (default provider otherwise)"),
    target_lang: Optional[str] = typer.Option(None, "--target-lang", "-t", help="Target language for translate_to"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="Style for rewrite_style"),
):
    """Apply an action to text and/or an image and print the result."""
    if action not in _ACTIONS:
        err_console.print(f"[yellow]Warning:[/yellow] unknown action {action!r}, using proofread instructions")

    if text is None and not sys.stdin.isatty():
        text = sys.stdin.read()

    request = RunRequest(
        action=action,
        input_text=text or "",
        image_data=_read_image(image) if image else None,
        provider_id=provider,
        target_language=target_lang,
        style_hint=style,
    )
    result = asyncio.run(run_action(request))

    if not result.ok:
        err_console.print(f"[red]Error:[/red] {result.message}")
        raise typer.Exit(code=1)
    console.print(result.text, markup=False, highlight=False, soft_wrap=True)


@app.command()
def prompt(
    action: str = typer.Argument(..., help=f"One of: {', '.join(_ACTIONS)}"),
    image: bool = typer.Option(False, "--image", help="Include the image transcription hint"),
):
    """Print the system instruction used for an action."""
    console.print(system_prompt_for(action, image), markup=False, highlight=False, soft_wrap=True)


@providers_app.command("list")
def list_providers():
    """List configured providers in a table."""
    listing = get_registry().list()
    if not listing.providers:
        console.print("No providers configured.")
        return

    table = Table(title="Providers")
    table.add_column("", width=1)
    table.add_column("ID", style="cyan")
    table.add_column("Label")
    table.add_column("Type")
    table.add_column("Endpoint")
    table.add_column("Model", style="green")

    for spec in listing.providers:
        marker = "*" if spec.id == listing.default_provider_id else ""
        table.add_row(
            marker,
            spec.id,
            spec.label,
            spec.type,
            spec.host or spec.api_base or "(default)",
            spec.model,
        )
    console.print(table)


@providers_app.command("add")
def add_provider(
    type_: str = typer.Option(..., "--type", help="openai | openaiCompatible | ollama | gemini"),
    model: str = typer.Option(..., "--model", "-m", help="Model identifier"),
    provider_id: Optional[str] = typer.Option(None, "--id", help="Provider id (generated when omitted)"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Display label"),
    api_base: Optional[str] = typer.Option(None, "--api-base", help="API base URL (OpenAI family, Gemini)"),
    host: Optional[str] = typer.Option(None, "--host", help="Ollama host URL"),
    api_key_env: Optional[str] = typer.Option(None, "--api-key-env", help="Environment variable holding the API key"),
):
    """Add a provider, or update the one with the same --id."""
    record = {
        "id": provider_id,
        "label": label,
        "type": type_,
        "apiBase": api_base,
        "host": host,
        "model": model,
        "apiKeyEnv": api_key_env,
    }
    if adapter_class_for(type_, strict=True) is None:
        err_console.print(f"[yellow]Warning:[/yellow] unknown type {type_!r}, calls will use the OpenAI-compatible format")

    try:
        spec = get_registry().save(record)
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] invalid provider: {e.errors()[0]['msg']}")
        raise typer.Exit(code=1)
    console.print(f"[green]Saved[/green] provider [cyan]{spec.id}[/cyan]")


@providers_app.command("remove")
def remove_provider(provider_id: str = typer.Argument(..., help="Provider id")):
    """Delete a provider, and its stored API key when the keyring backend is active."""
    try:
        get_registry().delete(provider_id)
    except ProviderNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"Removed provider [cyan]{provider_id}[/cyan]")

    if settings.credentials.backend == "keyring":
        store = KeyringCredentialResolver(service=settings.credentials.keyring_service)
        try:
            if store.delete(provider_id):
                console.print(f"Deleted stored API key for [cyan]{provider_id}[/cyan]")
        except KeyringError as e:
            err_console.print(f"[yellow]Warning:[/yellow] could not delete stored API key: {e}")


@providers_app.command("default")
def set_default_provider(provider_id: str = typer.Argument(..., help="Provider id")):
    """Make a provider the default."""
    try:
        get_registry().set_default(provider_id)
    except ProviderNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"Default provider is now [cyan]{provider_id}[/cyan]")


@providers_app.command("check")
def check_providers(
    provider_id: Optional[str] = typer.Argument(None, help="Provider id (all providers when omitted)"),
):
    """Check provider reachability and credentials."""
    registry = get_registry()
    resolver = get_credential_resolver()
    if provider_id:
        spec = registry.resolve(provider_id)
        if spec is None:
            err_console.print(f"[red]Error:[/red] Provider not found: {provider_id}")
            raise typer.Exit(code=1)
        specs = [spec]
    else:
        specs = registry.list().providers

    async def _check_all():
        return [
            await probe_provider(spec, resolver.resolve(spec), settings=settings)
            for spec in specs
        ]

    results = asyncio.run(_check_all())

    table = Table(title="Provider status")
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    for spec, result in zip(specs, results):
        status = "[green]ok[/green]" if result.available else "[red]unavailable[/red]"
        table.add_row(spec.id, status, result.detail)
    console.print(table)

    if not all(r.available for r in results):
        raise typer.Exit(code=1)


@providers_app.command("set-key")
def set_key(
    provider_id: str = typer.Argument(..., help="Provider id (credential store account)"),
    api_key: str = typer.Option(..., prompt=True, hide_input=True, help="API key"),
):
    """Store a provider's API key in the OS credential store."""
    if get_registry().resolve(provider_id) is None:
        err_console.print(f"[red]Error:[/red] Provider not found: {provider_id}")
        raise typer.Exit(code=1)

    store = KeyringCredentialResolver(service=settings.credentials.keyring_service)
    try:
        store.store(provider_id, api_key.strip())
    except KeyringError as e:
        err_console.print(f"[red]Error:[/red] credential store unavailable: {e}")
        raise typer.Exit(code=1)
    console.print(f"Stored API key for [cyan]{provider_id}[/cyan]")
    if settings.credentials.backend != "keyring":
        console.print("[yellow]Note:[/yellow] set ECHOCLIP_CREDENTIALS__BACKEND=keyring to use it")
