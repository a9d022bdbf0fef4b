# Copyright (c) Syntropy Systems
"""Pytest fixtures for solvelog tests."""

import os
import sqlite3
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

# Store original cwd at module load time
_original_cwd = Path.cwd()

SAMPLE_LOG = """\
JobInfo(id='666666', name='beam', queue='default', n=4, nodes=['node1', 'node2'])
params: {"dt": 0.01, "solver": "newton"}
2023-01-01 10:00:00.000 INFO step l=1.0 iter=1 err={ u=0.1 phi=0.2 }
2023-01-01 10:00:10.000 INFO step l=1.0 iter=2 err={ u=0.01 phi=1e-30 }
2023-01-01 10:00:20.000 INFO step l=1.0 iter=3 err={ u=1e-26 phi=1e-05 }
solver restarted, ignoring this line
2023-01-01 10:01:00.000 INFO step l=2.0 iter=1 err={ u=0.3 phi=0.4 }
2023-01-01 10:01:30.000 INFO step l=2.0 iter=2 err={ u=0.03 phi=0.04 }
2023-01-01 10:03:00.000 INFO step l=1.5 iter=1 err={ u=0.5 phi=0.6 }
2023-01-01 10:05:00.000 INFO step l=1.5 iter=2 err={ u=0.05 phi=0.06 }
"""

SAMPLE_JOB_ID = 666666


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_log() -> str:
    """Text of a small solver log with three load steps."""
    return SAMPLE_LOG


@pytest.fixture
def solvelog_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary solvelog project directory."""
    from solvelog.db import init_db

    project_dir = temp_dir / ".solvelog"
    project_dir.mkdir()

    # Initialize database
    db_path = project_dir / "solvelog.db"
    init_db(db_path)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def db_path(solvelog_project: Path) -> Path:
    """Path to the test project's database."""
    return solvelog_project / ".solvelog" / "solvelog.db"


@pytest.fixture
def db_connection(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection for the test project."""
    from solvelog.db import get_connection

    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def imported_job(db_connection: sqlite3.Connection, sample_log: str) -> int:
    """Import the sample log and return its job id."""
    from solvelog.db import import_error_log
    from solvelog.log_parser import parse_log

    return import_error_log(db_connection, parse_log(sample_log))
