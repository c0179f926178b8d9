"""
Command-line interface for unraid-resource-sync.

Inspect the category catalog, preview the composed query and keep an object
store synchronized with an Unraid server.
"""

from __future__ import annotations

import signal
import threading
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ur_app.config import SyncSettings, load_settings
from ur_app.service import SyncService
from ur_common.errors import ConfigurationError, ControlActionError, describe_error
from ur_common.logging import configure_logging
from ur_sync.domains.catalog import default_catalog
from ur_sync.domains.models import DomainNode
from ur_sync.domains.selection import resolve_selection
from ur_sync.query_builder import build_query
from ur_sync.store.base import NodeKind
from ur_ui.commands.config import create_config_app

console = Console()

app = typer.Typer(
    help="Synchronize Unraid server resources into a hierarchical object store.",
    no_args_is_help=True,
)
app.add_typer(create_config_app(console), name="config")

ConfigOption = typer.Option(None, "--config", "-c", help="Settings file to load.")


@app.callback(invoke_without_command=True)
def entry(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines."),
) -> None:
    configure_logging(debug=debug, json=json_logs or None)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load(config: Optional[Path]) -> SyncSettings:
    try:
        settings = load_settings(config)
    except ConfigurationError as exc:
        console.print(f"[red]{escape(describe_error(exc))}[/red]")
        raise typer.Exit(1)
    if settings.log_level or settings.log_json:
        configure_logging(level=settings.log_level, json=settings.log_json, force=True)
    return settings


def _print_nodes(service: SyncService) -> None:
    table = Table(title="Nodes")
    table.add_column("Id", style="cyan")
    table.add_column("Value")
    table.add_column("Unit")
    for node_id, node in sorted(service.store.list_nodes().items()):
        if node.kind is NodeKind.CHANNEL:
            continue
        value = "" if node.value is None else str(node.value)
        table.add_row(node_id, escape(value), node.metadata.unit or "")
    console.print(table)


def _print_stats(service: SyncService) -> None:
    stats = service.statistics()
    table = Table(title="Tracked objects")
    table.add_column("Family", style="cyan")
    table.add_column("Objects", justify="right")
    for family, count in sorted(stats["by_family"].items()):
        table.add_row(family, str(count))
    table.add_row("static", str(stats["static"]))
    table.add_row("total", str(stats["total"]), style="bold")
    console.print(table)


@app.command("domains")
def list_domains() -> None:
    """Show the category tree and which categories are selected by default."""
    catalog = default_catalog()
    table = Table(title="Categories")
    table.add_column("Id", style="cyan")
    table.add_column("Label")
    table.add_column("Default", justify="center")
    table.add_column("Fetchable", justify="center")

    def _add(nodes: tuple[DomainNode, ...], depth: int) -> None:
        for node in nodes:
            table.add_row(
                "  " * depth + node.id,
                node.label,
                "yes" if node.default_selected else "",
                "yes" if catalog.is_fetchable(node.id) else "",
            )
            _add(node.children, depth + 1)

    _add(catalog.tree, 0)
    console.print(table)


@app.command("query")
def show_query(
    domains: Optional[List[str]] = typer.Option(
        None, "--domain", "-d", help="Category id to include (repeatable)."
    ),
) -> None:
    """Print the GraphQL query for a set of categories."""
    selection = resolve_selection(default_catalog(), domains)
    query = build_query(selection.definitions)
    if query is None:
        console.print("[yellow]Nothing to query for this selection.[/yellow]")
        raise typer.Exit(1)
    typer.echo(query)


@app.command("once")
def run_once(
    config: Optional[Path] = ConfigOption,
    nodes: bool = typer.Option(True, "--nodes/--no-nodes", help="Print every leaf node after the cycle."),
) -> None:
    """Run a single poll cycle and persist the store."""
    settings = _load(config)
    service = SyncService(settings)
    ok = service.run_once()
    service.stop()
    if nodes:
        _print_nodes(service)
    _print_stats(service)
    if not ok:
        for error in service.driver.get_errors():
            console.print(f"[red]{escape(describe_error(error))}[/red]")
        raise typer.Exit(1)


@app.command("run")
def run_forever(config: Optional[Path] = ConfigOption) -> None:
    """Poll until interrupted."""
    settings = _load(config)
    service = SyncService(settings)
    finished = threading.Event()

    def _shutdown(signum: int, _frame: object) -> None:
        console.print(f"Received signal {signum}, stopping")
        finished.set()

    signal.signal(signal.SIGTERM, _shutdown)
    service.start()
    console.print(
        f"Polling {settings.base_url} every {settings.poll_interval_seconds:g}s"
    )
    try:
        finished.wait()
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()
        _print_stats(service)


@app.command("press")
def press(
    node_id: str = typer.Argument(..., help="Command node id, e.g. docker.containers.web.commands.start"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Trigger a container or VM control action."""
    settings = _load(config)
    service = SyncService(settings)
    service.prepare()
    if service.store.get_node(node_id) is None:
        service.run_once()
    # refresh below in this thread instead of a background poll
    service.driver.stop(wait=False)
    try:
        executed = service.press(node_id)
    except ControlActionError as exc:
        console.print(f"[red]{escape(describe_error(exc))}[/red]")
        service.flush()
        raise typer.Exit(1)
    service.run_once()
    service.flush()
    if not executed:
        console.print(f"[red]Control action {node_id} did not run.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Executed {node_id}[/green]")


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
