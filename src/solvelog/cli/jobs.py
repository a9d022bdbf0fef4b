# Copyright (c) Syntropy Systems
"""solvelog jobs and remove commands."""
from __future__ import annotations

from typing import cast

import typer
from rich.console import Console
from rich.table import Table

from solvelog.config import get_db_path, require_project_dir
from solvelog.db import get_connection, get_job_list, remove_job

console = Console()


def jobs() -> None:
    """List imported solver jobs."""
    try:
        project_dir = require_project_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    conn = get_connection(get_db_path(project_dir))
    try:
        job_list = get_job_list(conn)
    finally:
        conn.close()

    if not job_list:
        console.print("[dim]No jobs imported[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Queue")
    table.add_column("CPUs", justify="right")
    table.add_column("Nodes")

    for job in job_list:
        table.add_row(
            str(job.id),
            job.name,
            job.queue,
            str(job.num_cpu),
            ", ".join(job.nodes) or "-",
        )

    console.print(table)


def remove(
    job_id: int = typer.Argument(
        default=cast("int", cast("object", ...)),
        help="Job ID to remove",
    ),
) -> None:
    """Remove a job and its error log."""
    try:
        project_dir = require_project_dir()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    conn = get_connection(get_db_path(project_dir))
    try:
        removed = remove_job(conn, job_id)
    finally:
        conn.close()

    if not removed:
        console.print(f"[red]Error:[/red] Job #{job_id} not found")
        raise typer.Exit(1)

    console.print(f"[green]Removed job #{job_id}[/green]")
