# Copyright (c) Syntropy Systems
"""solvelog init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console

from solvelog.config import PROJECT_DIR_NAME, get_db_path
from solvelog.db import init_db

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a new solvelog project.

    Creates a .solvelog directory with configuration and database.
    """
    target = path.resolve()
    project_dir = target / PROJECT_DIR_NAME

    if project_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {project_dir}")
        return

    project_dir.mkdir(parents=True)

    # Create default config
    config = {
        "cache_size": 8,
        "log_level": "WARNING",
    }

    config_path = project_dir / "config.yaml"
    with config_path.open("w") as f:
        yaml.dump(config, f, default_flow_style=False)

    db_path = get_db_path(project_dir)
    init_db(db_path)

    console.print(f"[green]Initialized solvelog project:[/green] {project_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    console.print(f"  [dim]database:[/dim] {db_path}")
