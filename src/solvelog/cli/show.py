# Copyright (c) Syntropy Systems
"""solvelog show command."""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional, cast

import typer
from rich.console import Console
from rich.table import Table

from solvelog.client import SolvelogClient
from solvelog.config import get_db_path, load_config, require_project_dir
from solvelog.db import find_job, get_connection
from solvelog.errors import SolvelogError
from solvelog.store import DatabaseSource, ErrorLogStore, HttpSource
from solvelog.transform import count_markers

if TYPE_CHECKING:
    from solvelog.models.records import ErrorLogSnapshot

console = Console()


def load_snapshot(job_id: int, server_url: Optional[str]) -> ErrorLogSnapshot:
    """Load a job's chart-ready error log locally or from a server.

    Exits with status 1 when the job cannot be found or loaded.
    """
    server_url = server_url or load_config().server_url

    if server_url:
        with SolvelogClient(server_url) as client:
            try:
                _ = client.get_job(job_id)
            except SolvelogError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1) from e
            store = ErrorLogStore(HttpSource(client))
            committed = asyncio.run(store.select_job(job_id))
    else:
        try:
            project_dir = require_project_dir()
        except RuntimeError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

        db_path = get_db_path(project_dir)
        conn = get_connection(db_path)
        try:
            job = find_job(conn, job_id)
        finally:
            conn.close()
        if job is None:
            console.print(f"[red]Error:[/red] Job #{job_id} not found")
            raise typer.Exit(1)

        store = ErrorLogStore(DatabaseSource(db_path))
        committed = asyncio.run(store.select_job(job_id))

    if not committed or store.job_id != job_id:
        console.print(f"[red]Error:[/red] Could not load error log for job #{job_id}")
        raise typer.Exit(1)
    if store.snapshot.load_error is not None:
        console.print(
            f"[red]Error:[/red] Could not load error log for job #{job_id}: "
            f"{store.snapshot.load_error}"
        )
        raise typer.Exit(1)

    return store.snapshot


def _format_cost(cost: Optional[float]) -> str:
    if cost is None:
        return "-"
    return f"{cost:.3f}s"


def show(
    job_id: int = typer.Argument(
        default=cast("int", cast("object", ...)),
        help="Job ID to show",
    ),
    server_url: Optional[str] = typer.Option(
        None,
        "--server",
        envvar="SOLVELOG_SERVER_URL",
        help="Read from a solvelog server instead of the local database",
    ),
) -> None:
    """Show the load-step summary of a job.

    Lists iterations and time spent per load step, followed by the total
    iteration count and solving time.
    """
    snapshot = load_snapshot(job_id, server_url)

    console.print(f"\n[bold]Job #{job_id}[/bold]")

    if snapshot.summary:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Step", style="dim", justify="right")
        table.add_column("Load", justify="right")
        table.add_column("Iterations", justify="right")
        table.add_column("Cost", justify="right")

        for step, record in enumerate(snapshot.summary, start=1):
            table.add_row(
                str(step),
                f"{record.load:g}",
                str(record.iterations),
                _format_cost(record.cost),
            )
        console.print(table)
    else:
        console.print("[dim]No error log entries[/dim]")

    steps = count_markers(snapshot.errors) + 1 if snapshot.errors else 0
    console.print(f"  [dim]load steps:[/dim] {steps}")
    console.print(f"  [dim]iterations:[/dim] {snapshot.iterations}")
    console.print(f"  [dim]total time:[/dim] {snapshot.total_elapsed}")
