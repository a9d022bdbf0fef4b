# Copyright (c) Syntropy Systems
"""Tests for the job runner's invoke-and-channel interface."""

from pathlib import Path

import pytest

from solvelog.decoder import decode_payload
from solvelog.runner import Channel, ChannelClosedError, ErrorLogService


class TestChannel:
    """Tests for the one-shot channel."""

    def test_delivers_once(self) -> None:
        received: list[bytes] = []
        channel = Channel(received.append)

        channel.send(b"payload")

        assert received == [b"payload"]
        assert channel.sent
        with pytest.raises(ChannelClosedError):
            channel.send(b"again")

    def test_without_handler(self) -> None:
        """Test that a channel without a handler drops the message."""
        channel = Channel()
        channel.send(b"payload")

        assert channel.sent


class TestErrorLogService:
    """Tests for ErrorLogService."""

    def test_get_error_log_sends_payload(self, db_path: Path, imported_job: int) -> None:
        """Test that the payload carries summary and ranked entries."""
        service = ErrorLogService(db_path)
        received: list[bytes] = []

        service.get_error_log(imported_job, Channel(received.append))

        assert len(received) == 1
        data = decode_payload(received[0])
        assert [(s.load, s.iterations, s.cost) for s in data.summary] == [
            (1.0, 3, 60.0),
            (2.0, 2, 120.0),
            (1.5, 2, None),
        ]
        assert [e.iteration for e in data.errors] == [1, 2, 3, 4, 5, 6, 7]

    def test_payload_is_cached(self, db_path: Path, imported_job: int) -> None:
        """Test that a second request is served from the cache."""
        service = ErrorLogService(db_path)
        first = service.load_payload(imported_job)

        assert service.cache.has(imported_job)
        assert service.load_payload(imported_job) == first

    def test_remove_job_evicts_cache(self, db_path: Path, imported_job: int) -> None:
        service = ErrorLogService(db_path)
        _ = service.load_payload(imported_job)

        assert service.remove_job(imported_job) is True
        assert not service.cache.has(imported_job)
        assert decode_payload(service.load_payload(imported_job)).errors == ()

    def test_clear_cache(self, db_path: Path, imported_job: int) -> None:
        service = ErrorLogService(db_path)
        _ = service.load_payload(imported_job)

        service.clear_cache()

        assert len(service.cache) == 0

    def test_total_time(self, db_path: Path, imported_job: int) -> None:
        assert ErrorLogService(db_path).get_total_time(imported_job) == 300.0
