"""CLI interface for appcull."""

import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from appcull import __version__
from appcull.cache import CacheStore
from appcull.config import load_settings
from appcull.display import (
    console,
    err_console,
    show_applications,
    show_applications_json,
    show_cache_status,
    show_protections,
    show_scan_problem,
)
from appcull.pipeline import scan_applications
from appcull.protection import add_protection, list_protections, remove_protection
from appcull.terminal import inline_loading, reserved_terminal

# Create Typer app
app = typer.Typer(
    name="appcull",
    help="Find installed Mac applications and rank them by last use",
    add_completion=False,
)


def setup_logging(debug: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"appcull version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging on stderr."),
) -> None:
    """appcull - installed application inventory for uninstalling."""
    setup_logging(debug)
    # If no command specified, scan
    if ctx.invoked_subcommand is None:
        ctx.invoke(scan, rescan=False, as_json=False, limit=None)


@app.command()
def scan(
    rescan: bool = typer.Option(False, "--rescan", "-r", help="Ignore the cache and scan again"),
    as_json: bool = typer.Option(False, "--json", help="Print records as JSON"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show at most N apps"),
) -> None:
    """List installed applications, least recently used first."""
    settings = load_settings()
    cache = CacheStore(settings.cache_file, settings.cache_ttl)
    full_scan = rescan or not cache.is_fresh()

    # Full scans on a terminal draw their progress on the alternate screen
    use_alt_screen = full_scan and not as_json and inline_loading(console, err_console)

    with reserved_terminal(err_console, alt_screen=use_alt_screen):
        outcome = scan_applications(settings, force_rescan=rescan, console=err_console)

    if not outcome.ok:
        show_scan_problem(outcome)
        raise typer.Exit(1)

    if full_scan and not outcome.cache_written:
        err_console.print("[dim]Scan cache could not be updated[/dim]")

    if as_json:
        show_applications_json(outcome.records[:limit] if limit else outcome.records)
    else:
        show_applications(outcome.records, limit=limit)


@app.command()
def status() -> None:
    """Show scan cache status."""
    settings = load_settings()
    show_cache_status(CacheStore(settings.cache_file, settings.cache_ttl).info())


@app.command()
def cache(
    clear: bool = typer.Option(False, "--clear", help="Delete the scan cache"),
) -> None:
    """Inspect or clear the scan cache."""
    settings = load_settings()
    store = CacheStore(settings.cache_file, settings.cache_ttl)

    if not clear:
        show_cache_status(store.info())
        return

    if store.clear():
        console.print(f"[green]Removed {store.path}[/green]")
    else:
        console.print("[yellow]No cache to remove[/yellow]")


@app.command()
def protect(
    bundle_id: str = typer.Argument(..., help="Bundle id or fnmatch pattern to protect"),
) -> None:
    """Never offer matching applications for removal."""
    result = add_protection(bundle_id)
    if not result["success"]:
        console.print(f"[red]{result['error']}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Protected {bundle_id}[/green]")
    console.print("[dim]Run [bold]appcull scan --rescan[/bold] to apply to the cache[/dim]")


@app.command()
def unprotect(
    bundle_id: str = typer.Argument(..., help="Bundle id or pattern to remove"),
) -> None:
    """Remove an application from the protection list."""
    result = remove_protection(bundle_id)
    if not result["success"]:
        console.print(f"[red]{result['error']}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Unprotected {bundle_id}[/green]")


@app.command()
def protections() -> None:
    """List protected application patterns."""
    show_protections(list_protections())


if __name__ == "__main__":
    app()
