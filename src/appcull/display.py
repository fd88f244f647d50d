"""Rich terminal display for appcull."""

import json

from rich.console import Console
from rich.table import Table

from appcull.models import AppRecord, CacheInfo, ScanOutcome, ScanStatus
from appcull.sizing import format_size_kb

console = Console()
err_console = Console(stderr=True)


def format_age(seconds: int) -> str:
    """Compact age like '3h 12m' or '45s'."""
    if seconds < 60:
        return f"{seconds}s"
    minutes, _ = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m"
    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m"
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h"


def last_used_style(record: AppRecord) -> str:
    """Color for the last-used column: stale apps stand out."""
    if record.never_used or "year" in record.last_used:
        return "red"
    if "month" in record.last_used:
        return "yellow"
    return "green"


def show_applications(records: list[AppRecord], limit: int | None = None) -> None:
    """Display applications, least recently used first."""
    shown = records[:limit] if limit else records

    table = Table(title="Installed Applications", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Last Used")
    table.add_column("Bundle ID", style="dim")

    for i, record in enumerate(shown, 1):
        size = record.size_human if record.is_sized else "Unknown"
        style = last_used_style(record)
        table.add_row(
            str(i),
            record.display_name,
            size,
            f"[{style}]{record.last_used}[/{style}]",
            record.bundle_id,
        )

    console.print(table)

    total_kb = sum(r.size_kb for r in records)
    console.print(f"[bold]{len(records)} applications[/bold], {format_size_kb(total_kb)} total")
    if limit and len(records) > limit:
        console.print(f"[dim]Showing {limit} of {len(records)}[/dim]")


def show_applications_json(records: list[AppRecord]) -> None:
    """Write records as a JSON array to stdout for tooling."""
    payload = [r.model_dump() for r in records]
    console.print_json(json.dumps(payload))


def show_scan_problem(outcome: ScanOutcome) -> None:
    """Explain a scan that produced nothing."""
    if outcome.status == ScanStatus.NOT_FOUND:
        console.print("[yellow]No applications found to uninstall[/yellow]")
    elif outcome.status == ScanStatus.EMPTY_CACHE:
        console.print("[yellow]No applications available for uninstallation[/yellow]")
        console.print("[dim]Run [bold]appcull scan --rescan[/bold] to scan again[/dim]")


def show_cache_status(info: CacheInfo) -> None:
    """Display cache location, age and freshness."""
    console.print(f"Cache: {info.path}")
    if not info.exists:
        console.print("  Status: [yellow]missing[/yellow]")
        return

    status = "[green]fresh[/green]" if info.fresh else "[yellow]stale[/yellow]"
    console.print(f"  Status:  {status}")
    console.print(f"  Age:     {format_age(info.age_seconds or 0)} (TTL {format_age(info.ttl_seconds)})")
    console.print(f"  Entries: {info.record_count}")


def show_protections(protections: dict) -> None:
    """Display built-in and user protection patterns."""
    console.print("[bold]Protected Applications[/bold]\n")
    console.print("[cyan]Built-in:[/cyan]")
    for pattern in protections.get("system_patterns", []):
        console.print(f"  • {pattern}")

    user = protections.get("protected_bundle_ids", [])
    console.print()
    console.print("[cyan]User:[/cyan]")
    if not user:
        console.print("  [dim](none)[/dim]")
    for bundle_id in user:
        console.print(f"  • {bundle_id}")
