# Copyright (c) Syntropy Systems
"""HTTP client for viewers talking to a solvelog server."""
from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar, cast, overload

import httpx
from pydantic import BaseModel, ValidationError
from typing_extensions import Self

from solvelog.decoder import decode_payload
from solvelog.errors import SolvelogError
from solvelog.models.api import (
    ErrorResponse,
    HealthResponse,
    JobImportResponse,
    JobListResponse,
    MessageResponse,
    SeriesResponse,
    TotalTimeResponse,
)
from solvelog.models.db import JobInfo

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from solvelog.models.base import JSONValue
    from solvelog.models.records import ErrorLogData

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

MSGPACK_MEDIA_TYPE = "application/msgpack"


class SolvelogClientError(SolvelogError):
    """Error from solvelog server communication."""


class SolvelogClient:
    """HTTP client for the solvelog server API."""

    server_url: str
    timeout: float
    _client: httpx.Client

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the solvelog server (e.g., "http://head-node:8080")
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx client to use instead of a new one

        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client if http_client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        self.close()

    def _send(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
    ) -> httpx.Response:
        url = f"{self.server_url}{path}"
        try:
            response = self._client.request(method=method, url=url, json=json)
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            # Try to get error detail from response
            try:
                detail = ErrorResponse.model_validate(e.response.json()).detail
            except (ValidationError, ValueError):
                detail = str(e)
            msg = f"Server error: {detail}"
            raise SolvelogClientError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise SolvelogClientError(msg) from e
        return response

    @overload
    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: type[ResponseModel],
    ) -> ResponseModel:
        ...

    @overload
    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: None = None,
    ) -> dict[str, JSONValue]:
        ...

    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: type[ResponseModel] | None = None,
    ) -> ResponseModel | dict[str, JSONValue]:
        """Make an HTTP request to the server and validate the JSON body."""
        response = self._send(method, path, json=json)
        try:
            data = cast("object", response.json())
            if response_model is None:
                return cast("dict[str, JSONValue]", data)
            return response_model.model_validate(data)
        except (ValidationError, ValueError) as e:
            msg = f"Invalid response from {path}: {e}"
            raise SolvelogClientError(msg) from e

    # --- Jobs ---

    def health(self) -> HealthResponse:
        return self._request("GET", "/api/v1/health", response_model=HealthResponse)

    def list_jobs(self) -> list[JobInfo]:
        """Get all imported jobs."""
        result = self._request("GET", "/api/v1/jobs", response_model=JobListResponse)
        return result.jobs

    def get_job(self, job_id: int) -> JobInfo:
        return self._request("GET", f"/api/v1/jobs/{job_id}", response_model=JobInfo)

    def remove_job(self, job_id: int) -> MessageResponse:
        return self._request(
            "DELETE", f"/api/v1/jobs/{job_id}", response_model=MessageResponse
        )

    def import_log(self, content: str) -> JobImportResponse:
        """Upload a solver log's text for import.

        Args:
            content: Full text of the log file

        Returns:
            The imported job id and entry count

        """
        return self._request(
            "POST",
            "/api/v1/jobs/import",
            json={"content": content},
            response_model=JobImportResponse,
        )

    # --- Error Logs ---

    def get_error_log_payload(self, job_id: int) -> bytes:
        """Fetch the raw MessagePack error-log payload."""
        response = self._send("GET", f"/api/v1/jobs/{job_id}/error-log")
        return response.content

    def get_error_log(self, job_id: int) -> ErrorLogData:
        """Fetch and decode a job's error log."""
        return decode_payload(self.get_error_log_payload(job_id))

    def get_total_time(self, job_id: int) -> TotalTimeResponse:
        return self._request(
            "GET", f"/api/v1/jobs/{job_id}/total-time", response_model=TotalTimeResponse
        )

    def get_series(self, job_id: int) -> SeriesResponse:
        """Fetch the chart-ready series computed by the server."""
        return self._request(
            "GET", f"/api/v1/jobs/{job_id}/series", response_model=SeriesResponse
        )

    def clear_cache(self) -> MessageResponse:
        return self._request("POST", "/api/v1/cache/clear", response_model=MessageResponse)
