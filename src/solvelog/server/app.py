# Copyright (c) Syntropy Systems
"""FastAPI application for the solvelog server."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import Response

import solvelog
from solvelog.cache import DEFAULT_MAX_SIZE, PayloadCache
from solvelog.client import MSGPACK_MEDIA_TYPE
from solvelog.db import find_job, get_connection, get_job_list, import_error_log, init_db
from solvelog.decoder import decode_payload
from solvelog.duration import format_duration
from solvelog.errors import DecodeError, ErrorLogError, LogFormatError
from solvelog.log_parser import parse_log
from solvelog.models.api import (
    HealthResponse,
    JobImport,
    JobImportResponse,
    JobListResponse,
    MessageResponse,
    SeriesResponse,
    TotalTimeResponse,
)
from solvelog.models.db import JobInfo
from solvelog.runner import ErrorLogService
from solvelog.store import build_snapshot

logger = logging.getLogger(__name__)


def get_service(request: Request) -> ErrorLogService:
    """Get the error-log service bound to this app."""
    service: Optional[ErrorLogService] = getattr(request.app.state, "service", None)
    if service is None:
        raise RuntimeError("Error-log service not initialized")
    return service


def _require_job(service: ErrorLogService, job_id: int) -> JobInfo:
    conn = get_connection(service.db_path)
    try:
        job = find_job(conn, job_id)
    finally:
        conn.close()
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return job


def create_app(db_path: Path, cache_size: int = DEFAULT_MAX_SIZE) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        db_path: SQLite database path, created if missing
        cache_size: Number of encoded payloads kept in memory

    Returns:
        Configured FastAPI application
    """
    init_db(db_path)

    app = FastAPI(
        title="solvelog server",
        description="Solver error-log monitoring server",
        version=solvelog.__version__,
    )
    app.state.service = ErrorLogService(db_path, PayloadCache(cache_size))

    @app.get("/api/v1/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=solvelog.__version__)

    # --- Job Endpoints ---

    @app.get("/api/v1/jobs", response_model=JobListResponse)
    def list_jobs(service: ErrorLogService = Depends(get_service)):
        """List imported jobs."""
        conn = get_connection(service.db_path)
        try:
            return JobListResponse(jobs=get_job_list(conn))
        finally:
            conn.close()

    @app.get("/api/v1/jobs/{job_id}", response_model=JobInfo)
    def get_job(job_id: int, service: ErrorLogService = Depends(get_service)):
        """Get job details."""
        return _require_job(service, job_id)

    @app.delete("/api/v1/jobs/{job_id}", response_model=MessageResponse)
    def remove_job(job_id: int, service: ErrorLogService = Depends(get_service)):
        """Delete a job and its error log."""
        if not service.remove_job(job_id):
            raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
        return MessageResponse(message=f"Job {job_id} removed")

    @app.post("/api/v1/jobs/import", response_model=JobImportResponse)
    def import_job(request: JobImport, service: ErrorLogService = Depends(get_service)):
        """Import a solver log."""
        try:
            parsed = parse_log(request.content)
        except LogFormatError as e:
            raise HTTPException(status_code=400, detail=str(e))

        conn = get_connection(service.db_path)
        try:
            job_id = import_error_log(conn, parsed)
        except ValueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        finally:
            conn.close()

        logger.info("Imported job %d with %d entries", job_id, len(parsed.entries))
        return JobImportResponse(
            job_id=job_id,
            entries=len(parsed.entries),
            message=f"Job {job_id} imported",
        )

    # --- Error Log Endpoints ---

    @app.get("/api/v1/jobs/{job_id}/error-log")
    def get_error_log(job_id: int, service: ErrorLogService = Depends(get_service)):
        """Get the MessagePack-encoded [summary, errors] payload."""
        _ = _require_job(service, job_id)
        return Response(content=service.load_payload(job_id), media_type=MSGPACK_MEDIA_TYPE)

    @app.get("/api/v1/jobs/{job_id}/total-time", response_model=TotalTimeResponse)
    def get_total_time(job_id: int, service: ErrorLogService = Depends(get_service)):
        """Get total solving time."""
        _ = _require_job(service, job_id)
        seconds = service.get_total_time(job_id)
        return TotalTimeResponse(
            job_id=job_id,
            seconds=seconds,
            formatted=format_duration(seconds),
        )

    @app.get("/api/v1/jobs/{job_id}/series", response_model=SeriesResponse)
    def get_series(job_id: int, service: ErrorLogService = Depends(get_service)):
        """Get the chart-ready series with gap markers."""
        _ = _require_job(service, job_id)
        try:
            data = decode_payload(service.load_payload(job_id))
        except DecodeError as e:
            logger.exception("Cached payload for job %d is unreadable", job_id)
            service.cache.remove(job_id)
            raise HTTPException(status_code=500, detail=str(e))

        try:
            snapshot = build_snapshot(job_id, data, service.get_total_time(job_id))
        except ErrorLogError as e:
            logger.warning("Error log for job %d is inconsistent: %s", job_id, e)
            raise HTTPException(status_code=422, detail=str(e))

        return SeriesResponse(
            job_id=job_id,
            summary=list(snapshot.summary),
            errors=list(snapshot.errors),
            iterations=snapshot.iterations,
            total_elapsed=snapshot.total_elapsed,
        )

    # --- Cache Endpoints ---

    @app.post("/api/v1/cache/clear", response_model=MessageResponse)
    def clear_cache(service: ErrorLogService = Depends(get_service)):
        """Drop all cached payloads."""
        service.clear_cache()
        return MessageResponse(message="Cache cleared")

    return app
