# Copyright (c) Syntropy Systems
"""solvelog import command."""

from pathlib import Path

import typer
from rich.console import Console

from solvelog.config import get_db_path, require_project_dir
from solvelog.db import get_connection, import_error_log
from solvelog.errors import LogFormatError
from solvelog.log_parser import parse_log

console = Console()


def import_log(
    log_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Solver log file to import",
    ),
) -> None:
    """Import a solver log into the project database."""
    try:
        project_dir = require_project_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        parsed = parse_log(log_file.read_text())
    except LogFormatError as e:
        console.print(f"[red]Error:[/red] {log_file}: {e}")
        raise typer.Exit(1) from e

    conn = get_connection(get_db_path(project_dir))
    try:
        job_id = import_error_log(conn, parsed)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    finally:
        conn.close()

    console.print(
        f"[green]Imported job #{job_id}[/green] "
        f"({parsed.job.name}, {len(parsed.entries)} entries)"
    )
