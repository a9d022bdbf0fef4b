# Copyright (c) Syntropy Systems
"""Parse solver log files into a job description and error-log entries.

Expected layout::

    JobInfo(id='666666', name='beam', queue='default', n=4, nodes=['node1', 'node2'])
    {"dt": 0.01}
    2023-01-01 10:00:00.000 ... l=1.5 ... iter=1 ... err={ u=0.1 phi=0.2 }
    2023-01-01 10:01:00.000 ... l=1.5 ... iter=2 ... err={ u=0.05 phi=0.15 }

The first line describes the job and the second may carry a JSON parameter
object. Every later line matching the entry pattern becomes one entry.
Anything else is skipped.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from solvelog.errors import LogFormatError
from solvelog.models.db import JobInfo

if TYPE_CHECKING:
    from solvelog.models.base import JSONObject

logger = logging.getLogger(__name__)

LOG_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})"
    r".*?l=([\d.e+-]+)"
    r".*?iter=(\d+)"
    r".*?err=\{ u=([\d.e+-]+) phi=([\d.e+-]+)"
)
JOB_INFO_PATTERN = re.compile(
    r"JobInfo\(.*?\bid='([^']*)'.*?\bname='([^']*)'.*?\bqueue='([^']*)'"
    r".*?\bn=(\d+).*?\bnodes=\[(.*)\].*\)"
)
PARAMS_PATTERN = re.compile(r"\{.*\}")


@dataclass(frozen=True)
class LogEntry:
    """One solver iteration as written in the log."""

    timestamp: str
    load: float
    iteration: int
    error_u: float
    error_phi: float


@dataclass
class ParsedLog:
    """Job description plus its entries in file order."""

    job: JobInfo
    entries: list[LogEntry] = field(default_factory=list)


def _parse_nodes(raw: str) -> list[str]:
    nodes = [node.strip(" '\"") for node in raw.split(",")]
    return [node for node in nodes if node]


def _parse_parameters(line: str) -> JSONObject | None:
    match = PARAMS_PATTERN.search(line)
    if match is None:
        return None
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("Ignoring job parameters that are not valid JSON: %s", match.group(0))
        return None
    return value if isinstance(value, dict) else None


def parse_job_info(line: str, parameters: JSONObject | None = None) -> JobInfo:
    """Parse the ``JobInfo(...)`` header line."""
    match = JOB_INFO_PATTERN.search(line)
    if match is None:
        msg = "Cannot parse job info on the first line"
        raise LogFormatError(msg)

    job_id, name, queue, num_cpu, nodes = match.groups()
    try:
        parsed_id = int(job_id)
    except ValueError as e:
        msg = f"Job id is not a number: {job_id!r}"
        raise LogFormatError(msg) from e

    return JobInfo(
        id=parsed_id,
        name=name,
        queue=queue,
        num_cpu=int(num_cpu),
        nodes=_parse_nodes(nodes),
        parameters=parameters,
    )


def parse_entry(line: str) -> LogEntry | None:
    """Parse one entry line, or return None when it is not an entry."""
    match = LOG_PATTERN.search(line)
    if match is None:
        return None
    timestamp, load, iteration, error_u, error_phi = match.groups()
    try:
        return LogEntry(
            timestamp=timestamp,
            load=float(load),
            iteration=int(iteration),
            error_u=float(error_u),
            error_phi=float(error_phi),
        )
    except ValueError:
        logger.debug("Skipping entry with unparseable numbers: %s", line)
        return None


def parse_log(content: str) -> ParsedLog:
    """Parse a whole solver log."""
    lines = content.splitlines()
    if len(lines) < 2:
        msg = "Log must start with a job info line and a parameter line"
        raise LogFormatError(msg)

    job = parse_job_info(lines[0], _parse_parameters(lines[1]))
    entries = [entry for entry in map(parse_entry, lines[2:]) if entry is not None]
    logger.debug("Parsed %d entries for job %d", len(entries), job.id)
    return ParsedLog(job=job, entries=entries)
