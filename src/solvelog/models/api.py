# Copyright (c) Syntropy Systems
"""Pydantic models for solvelog API requests and responses."""

from __future__ import annotations

from .base import SolvelogBaseModel
from .db import JobInfo
from .records import IterationRecord, SummaryRecord


class JobListResponse(SolvelogBaseModel):
    """Response containing job records."""

    jobs: list[JobInfo]


class JobImport(SolvelogBaseModel):
    """Request to import a solver log."""

    content: str


class JobImportResponse(SolvelogBaseModel):
    """Response from importing a solver log."""

    job_id: int
    entries: int
    message: str


class TotalTimeResponse(SolvelogBaseModel):
    """Total solving time of a job."""

    job_id: int
    seconds: float | None = None
    formatted: str = "-"


class SeriesResponse(SolvelogBaseModel):
    """Chart-ready error log of a job."""

    job_id: int
    summary: list[SummaryRecord]
    errors: list[IterationRecord]
    iterations: int
    total_elapsed: str


class MessageResponse(SolvelogBaseModel):
    """Generic message response."""

    message: str


class ErrorResponse(SolvelogBaseModel):
    """Error response."""

    detail: str


class HealthResponse(SolvelogBaseModel):
    """Health check response."""

    status: str
    version: str
