"""CLI command for running the solvelog server."""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from solvelog.config import get_db_path, load_config, require_project_dir

console = Console()


def server(
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        envvar="SOLVELOG_DB",
        help="SQLite database to serve (default: the project database)",
    ),
):
    """
    Start the solvelog server for remote viewers.

    The server exposes imported jobs, their MessagePack error-log payloads
    and chart-ready series over HTTP.

    Examples:

        # Serve the current project
        solvelog server

        # Bind to all interfaces (for remote access)
        solvelog server --host 0.0.0.0 --port 8080
    """
    config = load_config()

    if db_path is None:
        try:
            project_dir = require_project_dir()
        except RuntimeError as e:
            console.print(f"[red]Error:[/red] {e}")
            console.print("Or pass --db /path/to/solvelog.db")
            raise typer.Exit(1)
        db_path = get_db_path(project_dir)

    console.print("[bold]solvelog server[/bold]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Database: {db_path}")
    console.print(f"  Cache size: {config.cache_size}")
    console.print()

    from solvelog.server.app import create_app

    app = create_app(db_path=db_path, cache_size=config.cache_size)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
    )
