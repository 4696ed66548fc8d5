"""CLI for trying the Figma connector by hand."""

import asyncio
import json
import logging
import os
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import auth
from .config import FigmaOptions
from .engine import FigmaEngine
from .exceptions import FigmaError

app = typer.Typer(help="Figma search connector CLI")
console = Console()


ENV_FILE = "local.env"
ENV_SEARCH_DEPTH = 3
ENV_PREFIX = "FIGMA_"


def find_env_file(start: Path | None = None) -> Path | None:
    """Find local.env in ``start`` or one of its nearest parents."""
    start = start or Path.cwd()
    for directory in [start, *start.parents][: ENV_SEARCH_DEPTH + 1]:
        candidate = directory / ENV_FILE
        if candidate.is_file():
            return candidate
    return None


def load_env() -> Path | None:
    """Export FIGMA_* settings from local.env without overriding the environment.

    Returns:
        The file that was loaded, or None if there was none.
    """
    env_file = find_env_file()
    if env_file is None:
        return None

    for raw in env_file.read_text().splitlines():
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key.startswith(ENV_PREFIX):
            continue
        os.environ.setdefault(key, value.strip().strip("\"'"))
    return env_file


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _load_options() -> FigmaOptions:
    load_env()
    try:
        return FigmaOptions.from_env()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def login(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """Check that the configured credentials can log into Figma."""
    setup_logging(verbose)
    options = _load_options()
    console.print(f"Logging in as: [cyan]{options.user}[/cyan]")

    async def _login() -> None:
        client = await auth.login(options)
        await client.aclose()

    try:
        asyncio.run(_login())
    except (FigmaError, httpx.HTTPError) as e:
        console.print(f"[red]✗ Authentication failed:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]✓ Authentication successful![/green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Search Figma files, projects and teams.

    Examples:

        figma-connector search "onboarding"

        figma-connector search "design system" --json
    """
    setup_logging(verbose)
    options = _load_options()

    async def _search():
        async with FigmaEngine() as engine:
            engine.init(options)
            return await engine.search(query)

    try:
        results = asyncio.run(_search())
    except (FigmaError, httpx.HTTPError) as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        # Plain echo so rich does not wrap long snippets
        typer.echo(json.dumps({"query": query, "results": [r.to_dict() for r in results]}, indent=2))
        return

    console.print(f"\n[bold]Results for:[/bold] {query}")
    console.print(f"[dim]Found {len(results)}[/dim]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", width=40)
    table.add_column("URL")

    for i, r in enumerate(results, 1):
        # Truncate title if too long
        title = r.title[:37] + "..." if len(r.title) > 40 else r.title
        table.add_row(str(i), title, r.url)

    console.print(table)


if __name__ == "__main__":
    app()
