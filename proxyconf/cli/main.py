"""proxyconf CLI: migrate and inspect the proxy configuration file.

`proxyconf migrate` is the startup phase: it brings the file up to the
latest config-version or exits non-zero, leaving the file untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from proxyconf.config import settings
from proxyconf.document import ConfigDocument, format_version
from proxyconf.exceptions import MigrationError, ProxyConfError
from proxyconf.migrations.registry import default_registry
from proxyconf.migrations.runner import migrate_file

console = Console()

app = typer.Typer(
    name="proxyconf",
    help="proxyconf -- versioned migrations for the proxy configuration file.",
    no_args_is_help=True,
)


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Route structlog events through the same rich handler
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer(key_order=["event"])],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
):
    """Configure logging for every command."""
    _configure_logging(log_level)


@app.command("migrate")
def migrate(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without writing"),
):
    """Bring the configuration file up to the latest config-version."""
    path = config or settings.config_path
    try:
        result = migrate_file(path, dry_run=dry_run)
    except MigrationError as e:
        target = format_version(e.target_version) if e.target_version is not None else "?"
        console.print(f"[red]Migration to {target} failed:[/red] {e}")
        console.print(f"[dim]{path} was left unchanged.[/dim]")
        raise typer.Exit(1)
    except ProxyConfError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
        raise typer.Exit(1)

    if not result.changed:
        console.print(
            f"[green]{path} is up to date[/green] "
            f"(config-version {format_version(result.to_version)})"
        )
        return

    applied = ", ".join(format_version(v) for v in result.applied)
    verb = "Would migrate" if dry_run else "Migrated"
    console.print(
        f"[green]{verb} {path}[/green] "
        f"{format_version(result.from_version)} -> {format_version(result.to_version)} "
        f"[dim](steps: {applied})[/dim]"
    )


@app.command("status")
def status(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Show the file's config-version and pending migrations."""
    path = config or settings.config_path
    registry = default_registry()
    try:
        document = ConfigDocument.load(path)
        current = document.get_version()
        pending = registry.pending(document)
    except ProxyConfError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
        raise typer.Exit(1)

    console.print(Panel(
        f"File:     {path}{'' if path.exists() else ' [yellow](missing)[/yellow]'}\n"
        f"Version:  {format_version(current)}\n"
        f"Latest:   {format_version(registry.latest_version)}\n"
        f"Pending:  {len(pending)} step(s)",
        title="Configuration Status",
        border_style="cyan",
    ))

    if pending:
        table = Table(title="Pending migrations")
        table.add_column("Version", style="cyan", no_wrap=True)
        table.add_column("Description", style="white")
        for step in pending:
            table.add_row(step.name, step.description)
        console.print(table)


@app.command("version")
def version():
    """Show the proxyconf version."""
    from proxyconf import __version__
    console.print(f"proxyconf v{__version__}")


if __name__ == "__main__":
    app()
