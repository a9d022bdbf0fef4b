# Copyright (c) Syntropy Systems
"""Tests for the solvelog HTTP API and client."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import msgpack
import pytest
from fastapi.testclient import TestClient

from solvelog.client import MSGPACK_MEDIA_TYPE, SolvelogClient, SolvelogClientError
from solvelog.decoder import decode_payload
from solvelog.server.app import create_app
from solvelog.store import ErrorLogStore, HttpSource

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture
def api(temp_dir: Path) -> Generator[TestClient, None, None]:
    """A test client over a fresh server database."""
    app = create_app(db_path=temp_dir / "server.db", cache_size=2)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(api: TestClient) -> SolvelogClient:
    """A solvelog client routed through the test app."""
    return SolvelogClient("http://testserver", http_client=api)


class TestJobEndpoints:
    """Tests for job endpoints."""

    def test_health(self, api: TestClient) -> None:
        response = api.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_import_and_list(self, api: TestClient, sample_log: str) -> None:
        """Test importing a log over HTTP."""
        response = api.post("/api/v1/jobs/import", json={"content": sample_log})

        assert response.status_code == 200
        assert response.json()["job_id"] == 666666
        assert response.json()["entries"] == 7

        jobs = api.get("/api/v1/jobs").json()["jobs"]
        assert [job["id"] for job in jobs] == [666666]

    def test_import_bad_format(self, api: TestClient) -> None:
        response = api.post("/api/v1/jobs/import", json={"content": "garbage\n"})

        assert response.status_code == 400

    def test_import_duplicate(self, api: TestClient, sample_log: str) -> None:
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})
        response = api.post("/api/v1/jobs/import", json={"content": sample_log})

        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    def test_unknown_job(self, api: TestClient) -> None:
        for path in ("", "/error-log", "/total-time", "/series"):
            response = api.get(f"/api/v1/jobs/42{path}")
            assert response.status_code == 404
            assert response.json()["detail"] == "Job 42 not found"

    def test_remove_job(self, api: TestClient, sample_log: str) -> None:
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})

        assert api.delete("/api/v1/jobs/666666").status_code == 200
        assert api.delete("/api/v1/jobs/666666").status_code == 404


class TestErrorLogEndpoints:
    """Tests for error-log endpoints."""

    def test_error_log_is_msgpack(self, api: TestClient, sample_log: str) -> None:
        """Test that the raw payload is the [summary, errors] pair."""
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})

        response = api.get("/api/v1/jobs/666666/error-log")

        assert response.status_code == 200
        assert response.headers["content-type"] == MSGPACK_MEDIA_TYPE
        summary, errors = msgpack.unpackb(response.content)
        assert summary[-1] == [1.5, 2, None]
        assert errors[0] == [1, 1.0, 0.1, 0.2]

    def test_total_time(self, api: TestClient, sample_log: str) -> None:
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})

        body = api.get("/api/v1/jobs/666666/total-time").json()

        assert body["seconds"] == 300.0
        assert body["formatted"] == "5m"

    def test_series_has_gap_markers(self, api: TestClient, sample_log: str) -> None:
        """Test that the series is chart-ready."""
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})

        body = api.get("/api/v1/jobs/666666/series").json()

        assert [point["iters"] for point in body["errors"]] == [
            1, 2, 3, None, 4, 5, None, 6, 7,
        ]
        assert body["errors"][3] == {
            "iters": None,
            "load": 2.0,
            "error_u": None,
            "error_phi": None,
        }
        assert body["iterations"] == 7
        assert body["total_elapsed"] == "5m"

    def test_series_evicts_unreadable_payload(
        self, api: TestClient, sample_log: str
    ) -> None:
        """Test that a corrupt cached payload is dropped and rebuilt."""
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})
        cache = api.app.state.service.cache
        cache.set(666666, b"not msgpack")

        response = api.get("/api/v1/jobs/666666/series")

        assert response.status_code == 500
        assert not cache.has(666666)

        response = api.get("/api/v1/jobs/666666/series")
        assert response.status_code == 200
        assert response.json()["iterations"] == 7

    def test_series_trailing_marker(self, api: TestClient, sample_log: str) -> None:
        """Test that an inconsistent series is reported, not crashed on."""
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})
        api.app.state.service.cache.set(
            666666,
            msgpack.packb([[], [[1, 1.0, 0.1, 0.1], [None, 2.0, None, None]]]),
        )

        response = api.get("/api/v1/jobs/666666/series")

        assert response.status_code == 422
        assert "gap marker" in response.json()["detail"]

    def test_clear_cache(self, api: TestClient, sample_log: str) -> None:
        _ = api.post("/api/v1/jobs/import", json={"content": sample_log})
        _ = api.get("/api/v1/jobs/666666/error-log")

        response = api.post("/api/v1/cache/clear")

        assert response.status_code == 200
        assert len(api.app.state.service.cache) == 0


class TestSolvelogClient:
    """Tests for SolvelogClient against the app."""

    def test_round_trip(self, client: SolvelogClient, sample_log: str) -> None:
        """Test import, listing and payload decoding through the client."""
        imported = client.import_log(sample_log)

        assert imported.job_id == 666666
        assert [job.name for job in client.list_jobs()] == ["beam"]
        assert client.get_job(666666).num_cpu == 4

        data = client.get_error_log(666666)
        assert len(data.errors) == 7
        assert data == decode_payload(client.get_error_log_payload(666666))

        series = client.get_series(666666)
        assert series.iterations == 7
        assert sum(1 for point in series.errors if point.is_marker) == 2

        assert client.get_total_time(666666).seconds == 300.0

    def test_error_detail(self, client: SolvelogClient) -> None:
        """Test that server errors carry the detail message."""
        with pytest.raises(SolvelogClientError, match="Job 7 not found"):
            _ = client.get_job(7)

    def test_http_source_store(self, client: SolvelogClient, sample_log: str) -> None:
        """Test the store reading from the server."""
        _ = client.import_log(sample_log)
        store = ErrorLogStore(HttpSource(client))

        _ = asyncio.run(store.select_job(666666))

        assert store.iterations == 7
        assert len(store.errors) == 9
        assert store.total_elapsed == "5m"

    def test_http_source_missing_job(self, client: SolvelogClient) -> None:
        store = ErrorLogStore(HttpSource(client))

        _ = asyncio.run(store.select_job(1))

        assert store.errors == ()
        assert store.job_id == 1
