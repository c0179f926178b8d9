from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ur_app.config import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    load_settings,
    resolve_config_path,
    settings_template,
)
from ur_common.errors import ConfigurationError


def default_config_target() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def create_config_app(console: Console) -> typer.Typer:
    """Build the config Typer app."""
    app = typer.Typer(help="Manage sync settings files.", no_args_is_help=True)

    @app.command("init")
    def config_init(
        path: Optional[Path] = typer.Option(
            None,
            "--path",
            "-p",
            help="Where to write the settings; defaults to ~/.config/unraid-sync/config.yaml",
        ),
        force: bool = typer.Option(
            False, "--force", "-f", help="Overwrite an existing file."
        ),
    ) -> None:
        """Write a starter settings file."""
        target = Path(path).expanduser() if path else default_config_target()
        if target.exists() and not force:
            console.print(f"[red]{escape(str(target))} already exists; use --force to overwrite.[/red]")
            raise typer.Exit(1)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(yaml.safe_dump(settings_template(), sort_keys=False))
        console.print(f"[green]Settings written to {escape(str(target))}[/green]")

    @app.command("show")
    def config_show(
        config: Optional[Path] = typer.Option(
            None, "--config", "-c", help="Settings file to load."
        ),
    ) -> None:
        """Print the effective settings, environment overrides included."""
        resolved = resolve_config_path(config)
        try:
            settings = load_settings(config)
        except ConfigurationError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise typer.Exit(1)

        table = Table(title=f"Settings ({resolved or 'environment only'})")
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key, value in settings.model_dump(mode="json").items():
            if key == "api_token":
                value = "***"
            elif isinstance(value, list):
                value = ", ".join(value)
            table.add_row(key, "" if value is None else str(value))
        console.print(table)

    return app
