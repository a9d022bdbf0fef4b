# Copyright (c) Syntropy Systems
"""Main CLI entry point for solvelog."""

import logging

import typer
from rich.logging import RichHandler

from solvelog.cli.export import export
from solvelog.cli.import_cmd import import_log
from solvelog.cli.init_cmd import init
from solvelog.cli.jobs import jobs, remove
from solvelog.cli.server_cmd import server
from solvelog.cli.show import show
from solvelog.config import load_config

app = typer.Typer(
    name="solvelog",
    help=(
        "Solver error-log monitoring. Import logs, inspect convergence "
        "per load step, export chart-ready series."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging before any command runs."""
    level = "DEBUG" if verbose else load_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


# Register commands
_ = app.command()(init)
_ = app.command(name="import")(import_log)
_ = app.command()(jobs)
_ = app.command()(remove)
_ = app.command()(show)
_ = app.command(name="export")(export)
_ = app.command()(server)


if __name__ == "__main__":
    app()
