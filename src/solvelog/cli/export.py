# Copyright (c) Syntropy Systems
"""Export command - write a job's chart-ready series to CSV/JSON."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional, cast

import typer
from pydantic import TypeAdapter
from rich.console import Console

from solvelog.cli.show import load_snapshot
from solvelog.models.records import ErrorLogSnapshot

console = Console()
_SNAPSHOT_ADAPTER = TypeAdapter(ErrorLogSnapshot)

CSV_FIELDS = ["iters", "load", "error_u", "error_phi"]


def export(
    job_id: int = typer.Argument(
        default=cast("int", cast("object", ...)),
        help="Job ID to export",
    ),
    output: Path = typer.Argument(..., help="Output file path (.csv or .json)"),
    server_url: Optional[str] = typer.Option(
        None,
        "--server",
        envvar="SOLVELOG_SERVER_URL",
        help="Read from a solvelog server instead of the local database",
    ),
) -> None:
    """Export the chart-ready error series of a job.

    Gap markers between load steps are kept: in JSON their ``iters`` is
    null, in CSV the row has only a load.

    Examples:
        solvelog export 666666 series.json
        solvelog export 666666 series.csv

    """
    suffix = output.suffix.lower()
    if suffix not in [".csv", ".json"]:
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    snapshot = load_snapshot(job_id, server_url)

    if suffix == ".json":
        _ = output.write_bytes(
            _SNAPSHOT_ADAPTER.dump_json(snapshot, by_alias=True, indent=2)
        )
    else:
        with output.open("w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for record in snapshot.errors:
                writer.writerow(
                    {
                        "iters": record.iteration,
                        "load": record.load,
                        "error_u": record.error_u,
                        "error_phi": record.error_phi,
                    }
                )

    console.print(
        f"[green]Exported {len(snapshot.errors)} point(s) of job #{job_id} to {output}[/green]"
    )
