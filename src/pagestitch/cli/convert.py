"""CLI command converting a URL list into one merged PDF."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

console = Console()


def convert(
    file: Path = typer.Argument(..., help="Text file with one URL per line (or a JSON URL list)."),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Root directory for run output."),
    emulate_print: bool = typer.Option(False, "--emulate-print", help="Render with print media instead of screen."),
    no_network_idle: bool = typer.Option(False, "--no-network-idle", help="Do not wait for network idle."),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout", min=1, help="Per-page timeout in milliseconds; also caps navigation."),
    width: Optional[int] = typer.Option(None, "--width", min=1, help="Viewport width in pixels."),
    height: Optional[int] = typer.Option(None, "--height", min=1, help="Viewport height in pixels."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level."),
) -> None:
    """Capture every URL in FILE as a full-page snapshot and merge them into one PDF.

    URLs are processed in file order; failed pages are skipped and left out
    of the merged document.
    """
    from pagestitch.exceptions import PageStitchError
    from pagestitch.pipeline import convert_urls
    from pagestitch.settings import get_settings
    from pagestitch.worker.jobs import configure_logging, load_urls

    configure_logging(log_level)

    try:
        urls = load_urls(file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    browser_overrides: dict[str, Any] = {}
    if emulate_print:
        browser_overrides["emulate_media"] = "print"
    if no_network_idle:
        browser_overrides["wait_for_network_idle"] = False
    if width is not None:
        browser_overrides["viewport_width"] = width
    if height is not None:
        browser_overrides["viewport_height"] = height

    base = get_settings()
    if timeout_ms is not None:
        browser_overrides["page_timeout_ms"] = timeout_ms
        browser_overrides["navigation_timeout_ms"] = min(base.browser.navigation_timeout_ms, timeout_ms)
    settings = base.model_copy(update={"browser": base.browser.model_copy(update=browser_overrides)})

    console.print(Panel(f"[bold]Processing {len(urls)} URL(s)[/bold] from {file}", title="PageStitch", border_style="blue"))

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        task = progress.add_task("Capturing pages...", total=None)
        try:
            run = convert_urls(urls, settings=settings, output_root=output_dir)
        except PageStitchError as e:
            progress.stop()
            console.print(f"\n[red]✗[/red] {e}")
            raise typer.Exit(code=1)
        progress.update(task, completed=True)

    table = Table(title=f"Run {run.run_id}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("URL", max_width=60)
    table.add_column("Status")
    for job in run.jobs:
        status = "[green]converted[/green]" if job.succeeded else f"[red]failed[/red] {job.error}"
        table.add_row(str(job.ordinal + 1), job.url, status)
    console.print(table)

    console.print(f"\n[green]✓[/green] {run.succeeded} of {run.total} page(s) converted")
    console.print(f"  Output directory: {run.output_dir}")
    console.print(f"  Merged file: {run.merged_path}")
