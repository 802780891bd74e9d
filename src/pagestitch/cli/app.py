"""``pagestitch`` command-line entry point.

Settings resolve as settings.default.toml < settings.<env>.toml <
settings.local.toml < PAGESTITCH_* env vars < per-run CLI flags.
"""

from __future__ import annotations

import typer

from pagestitch import __version__
from pagestitch.cli.convert import convert
from pagestitch.cli.settings_cmd import settings_app

app = typer.Typer(
    add_completion=True,
    help="Capture web pages as full-page snapshots and stitch them into one PDF, in URL order.",
)

app.command("convert")(convert)
app.add_typer(settings_app, name="settings")


@app.command("job")
def job() -> None:
    """Run an unattended batch configured by PAGESTITCH_JOB__* env vars."""
    from pagestitch.worker.jobs import main as job_main

    raise typer.Exit(code=job_main())


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    if version:
        typer.echo(f"pagestitch {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
