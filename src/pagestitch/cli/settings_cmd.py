"""``pagestitch settings``: print the resolved configuration and sanity-check it."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

settings_app = typer.Typer(help="Inspect and validate PageStitch configuration.")
console = Console()

SECTIONS = ("browser", "readiness", "overlay", "batch")


def timing_warnings(settings) -> list[str]:
    """Combinations that are valid but probably not what was meant."""
    browser, readiness = settings.browser, settings.readiness
    warnings: list[str] = []
    if browser.navigation_timeout_ms > browser.page_timeout_ms:
        warnings.append(
            f"navigation_timeout_ms ({browser.navigation_timeout_ms}) exceeds page_timeout_ms "
            f"({browser.page_timeout_ms}); navigation is capped at {browser.navigation_bound_ms} ms"
        )
    if readiness.tick_seconds > readiness.ceiling_seconds:
        warnings.append(
            f"tick_seconds ({readiness.tick_seconds}) exceeds ceiling_seconds ({readiness.ceiling_seconds}); "
            "readiness is only re-checked on DOM changes"
        )
    if not settings.overlay.selectors:
        warnings.append("overlay.selectors is empty; no overlays will be suppressed")
    return warnings


@settings_app.command("show")
def show_settings(
    section: Optional[str] = typer.Argument(None, help=f"Only this section: {', '.join(SECTIONS)}."),
) -> None:
    """Print the resolved settings as JSON."""
    from pagestitch.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if section is not None:
        if section not in SECTIONS:
            console.print(f"[red]Unknown section {section!r}[/red] (choose from {', '.join(SECTIONS)})")
            raise typer.Exit(code=1)
        data = data[section]
    console.print_json(json.dumps(data, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and summarize the values that shape a run."""
    from pagestitch.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    browser, readiness, batch = settings.browser, settings.readiness, settings.batch
    table = Table(title=f"PageStitch settings ({settings.env})", show_header=False)
    table.add_column("Setting", style="bold", no_wrap=True)
    table.add_column("Value")
    table.add_row("Viewport", f"{browser.viewport_width}x{browser.viewport_height} @ {browser.device_scale_factor}x")
    table.add_row("Media", browser.emulate_media)
    table.add_row("Navigation timeout", f"{browser.navigation_bound_ms} ms")
    table.add_row("Page timeout", f"{browser.page_timeout_ms} ms")
    table.add_row("Readiness ceiling", f"{readiness.ceiling_seconds:g} s")
    table.add_row("Settle delays", f"{readiness.settle_seconds:g} s + {readiness.layout_settle_seconds:g} s")
    table.add_row("Inter-job delay", f"{batch.inter_job_delay_seconds:g} s")
    table.add_row("Overlay selectors", str(len(settings.overlay.selectors)))
    table.add_row("Output root", str(batch.output_root))
    console.print(table)

    for warning in timing_warnings(settings):
        console.print(f"[yellow]![/yellow] {warning}")
    console.print("[green]✓[/green] Settings are valid.")
