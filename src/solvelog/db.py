# Copyright (c) Syntropy Systems
"""SQLite database layer with WAL mode and atomic imports."""
from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING, Optional, cast

from solvelog.models.db import JobInfo

if TYPE_CHECKING:
    from pathlib import Path

    from solvelog.log_parser import ParsedLog

# SQL schema for solvelog database
SCHEMA = """
-- Solver jobs
CREATE TABLE IF NOT EXISTS job_info (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    queue TEXT NOT NULL,
    num_cpu INTEGER DEFAULT 0,
    nodes TEXT,       -- JSON array
    parameters TEXT   -- JSON object
);

-- One row per solver iteration
CREATE TABLE IF NOT EXISTS error_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL REFERENCES job_info(id) ON DELETE CASCADE,
    timestamp TEXT NOT NULL,  -- YYYY-MM-DD HH:MM:SS.mmm
    load REAL NOT NULL,
    iter INTEGER NOT NULL,
    error_u REAL,
    error_phi REAL
);

-- One row per load step
CREATE VIEW IF NOT EXISTS error_log_summary AS
    SELECT job_id, load, MAX(iter) AS iters, MIN(timestamp) AS timestamp
    FROM error_log
    GROUP BY job_id, load;

CREATE INDEX IF NOT EXISTS idx_error_log_job ON error_log(job_id, timestamp);
"""

SECONDS_PER_DAY = 86400.0


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a database connection with proper settings for concurrent access.

    - isolation_level=None for explicit transaction control
    - WAL mode for concurrent readers/writers
    - busy_timeout to wait for locks instead of failing immediately
    - foreign keys on, so removing a job drops its entries
    - Row factory for dict-like access
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    """Initialize the database with the schema."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
    finally:
        conn.close()


# --- Job Operations ---

def import_error_log(conn: sqlite3.Connection, parsed: ParsedLog) -> int:
    """
    Store a parsed solver log: the job and all of its entries.

    Runs in a single transaction. Raises ValueError if the job id exists.
    """
    job = parsed.job
    try:
        conn.execute("BEGIN IMMEDIATE")
        conn.execute(
            """
            INSERT INTO job_info (id, name, queue, num_cpu, nodes, parameters)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                job.id,
                job.name,
                job.queue,
                job.num_cpu,
                json.dumps(job.nodes),
                json.dumps(job.parameters) if job.parameters is not None else None,
            ),
        )
        conn.executemany(
            """
            INSERT INTO error_log (job_id, timestamp, load, iter, error_u, error_phi)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (job.id, e.timestamp, e.load, e.iteration, e.error_u, e.error_phi)
                for e in parsed.entries
            ],
        )
        conn.execute("COMMIT")
    except sqlite3.IntegrityError as e:
        conn.execute("ROLLBACK")
        raise ValueError(f"Job {job.id} already exists") from e
    except Exception:
        conn.execute("ROLLBACK")
        raise

    return job.id


def get_job_list(conn: sqlite3.Connection) -> list[JobInfo]:
    """Get all jobs ordered by id."""
    rows = conn.execute(
        "SELECT id, name, queue, num_cpu, nodes, parameters FROM job_info ORDER BY id"
    ).fetchall()
    return [JobInfo.model_validate(dict(row)) for row in rows]


def find_job(conn: sqlite3.Connection, job_id: int) -> Optional[JobInfo]:
    """Get a job by ID."""
    row = conn.execute(
        "SELECT id, name, queue, num_cpu, nodes, parameters FROM job_info WHERE id = ?",
        (job_id,),
    ).fetchone()

    if row is None:
        return None

    return JobInfo.model_validate(dict(row))


def remove_job(conn: sqlite3.Connection, job_id: int) -> bool:
    """Delete a job and its entries. Returns False if it did not exist."""
    cursor = conn.execute("DELETE FROM job_info WHERE id = ?", (job_id,))
    return cursor.rowcount > 0


# --- Error Log Queries ---

def get_error_entries(conn: sqlite3.Connection, job_id: int) -> list[sqlite3.Row]:
    """
    Get a job's error series as (iters, load, error_u, error_phi) rows.

    ``iters`` is the 1-based rank in timestamp order, not the stored
    per-step counter. Equal timestamps keep insertion order.
    """
    return conn.execute(
        """
        SELECT
            ROW_NUMBER() OVER (ORDER BY timestamp, id) AS iters,
            load, error_u, error_phi
        FROM error_log
        WHERE job_id = ?
        ORDER BY timestamp, id
        """,
        (job_id,),
    ).fetchall()


def get_error_summary(conn: sqlite3.Connection, job_id: int) -> list[sqlite3.Row]:
    """
    Get one (load, iters, cost) row per load step in execution order.

    ``cost`` is the seconds until the next step starts; NULL for the last.
    """
    return conn.execute(
        """
        SELECT
            load, iters,
            ROUND(
                (julianday(LEAD(timestamp) OVER (ORDER BY timestamp)) - julianday(timestamp)) * ?,
                3
            ) AS cost
        FROM error_log_summary
        WHERE job_id = ?
        ORDER BY timestamp
        """,
        (SECONDS_PER_DAY, job_id),
    ).fetchall()


def get_total_time(conn: sqlite3.Connection, job_id: int) -> Optional[float]:
    """Seconds between a job's first and last entry, None without entries."""
    row = conn.execute(
        """
        SELECT ROUND((julianday(MAX(timestamp)) - julianday(MIN(timestamp))) * ?, 3) AS total
        FROM error_log
        WHERE job_id = ?
        """,
        (SECONDS_PER_DAY, job_id),
    ).fetchone()

    if row is None or row["total"] is None:
        return None

    return cast("float", row["total"])
