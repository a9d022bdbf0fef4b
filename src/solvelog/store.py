# Copyright (c) Syntropy Systems
"""Reactive error-log state for the currently selected job.

The store refetches whenever the selection changes. Fetching is the only
await; decoding and transforming then run to completion in one go. Every
selection takes a new generation number, and a result is committed only
while its generation is still the latest, so a slow fetch for an earlier
job can never overwrite a newer one. A commit swaps the whole snapshot in
a single assignment.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Protocol

from solvelog.db import get_connection, get_error_entries, get_error_summary, get_total_time
from solvelog.decoder import decode_error_rows, decode_payload, decode_summary_rows
from solvelog.duration import format_duration
from solvelog.errors import DecodeError, ErrorLogError, SolvelogError, SourceError
from solvelog.models.records import ErrorLogData, ErrorLogSnapshot
from solvelog.runner import Channel
from solvelog.transform import iteration_count, split_error_log

if TYPE_CHECKING:
    from pathlib import Path

    from solvelog.client import SolvelogClient
    from solvelog.models.records import IterationRecord, SummaryRecord
    from solvelog.runner import ErrorLogService

logger = logging.getLogger(__name__)

Listener = Callable[[ErrorLogSnapshot], None]


class ErrorLogSource(Protocol):
    """Where a job's raw error log comes from."""

    async def fetch(self, job_id: int) -> ErrorLogData:
        ...

    async def total_time(self, job_id: int) -> float | None:
        ...


def build_snapshot(
    job_id: int,
    data: ErrorLogData,
    total_seconds: float | None,
) -> ErrorLogSnapshot:
    """Transform decoded data into the view handed to the renderer."""
    errors = tuple(split_error_log(data.errors))
    return ErrorLogSnapshot(
        job_id=job_id,
        summary=data.summary,
        errors=errors,
        iterations=iteration_count(errors),
        total_elapsed=format_duration(total_seconds),
    )


# --- Sources ---

class DatabaseSource:
    """Reads rows straight from a solvelog database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def _query(self, job_id: int) -> ErrorLogData:
        conn = get_connection(self.db_path)
        try:
            summary = decode_summary_rows(get_error_summary(conn, job_id))
            errors = decode_error_rows(get_error_entries(conn, job_id))
        finally:
            conn.close()
        return ErrorLogData(summary=tuple(summary), errors=tuple(errors))

    def _query_total_time(self, job_id: int) -> float | None:
        conn = get_connection(self.db_path)
        try:
            return get_total_time(conn, job_id)
        finally:
            conn.close()

    async def fetch(self, job_id: int) -> ErrorLogData:
        try:
            return await asyncio.to_thread(self._query, job_id)
        except DecodeError:
            raise
        except Exception as e:
            msg = f"Query for job {job_id} failed: {e}"
            raise SourceError(msg) from e

    async def total_time(self, job_id: int) -> float | None:
        try:
            return await asyncio.to_thread(self._query_total_time, job_id)
        except Exception as e:
            msg = f"Total time query for job {job_id} failed: {e}"
            raise SourceError(msg) from e


class ChannelSource:
    """Invokes the job runner and waits for its single channel message."""

    def __init__(self, service: ErrorLogService) -> None:
        self.service = service

    async def fetch(self, job_id: int) -> ErrorLogData:
        loop = asyncio.get_running_loop()
        received: asyncio.Future[bytes] = loop.create_future()

        def on_message(message: bytes) -> None:
            def resolve() -> None:
                if not received.done():
                    received.set_result(message)

            loop.call_soon_threadsafe(resolve)

        channel = Channel(on_message)
        try:
            await asyncio.to_thread(self.service.get_error_log, job_id, channel)
        except Exception as e:
            msg = f"Job runner failed to serve job {job_id}: {e}"
            raise SourceError(msg) from e
        if not channel.sent:
            msg = f"Job runner sent nothing for job {job_id}"
            raise SourceError(msg)

        return decode_payload(await received)

    async def total_time(self, job_id: int) -> float | None:
        try:
            return await asyncio.to_thread(self.service.get_total_time, job_id)
        except Exception as e:
            msg = f"Job runner failed to time job {job_id}: {e}"
            raise SourceError(msg) from e


class HttpSource:
    """Pulls the MessagePack payload from a solvelog server."""

    def __init__(self, client: SolvelogClient) -> None:
        self.client = client

    async def fetch(self, job_id: int) -> ErrorLogData:
        try:
            payload = await asyncio.to_thread(self.client.get_error_log_payload, job_id)
        except SolvelogError as e:
            raise SourceError(str(e)) from e
        return decode_payload(payload)

    async def total_time(self, job_id: int) -> float | None:
        try:
            response = await asyncio.to_thread(self.client.get_total_time, job_id)
        except SolvelogError as e:
            raise SourceError(str(e)) from e
        return response.seconds


# --- Store ---

class ErrorLogStore:
    """Holds the chart-ready error log of the selected job."""

    def __init__(self, source: ErrorLogSource) -> None:
        self.source = source
        self._snapshot = ErrorLogSnapshot.empty()
        self._generation = 0
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> ErrorLogSnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def job_id(self) -> int | None:
        return self._snapshot.job_id

    @property
    def summary(self) -> tuple[SummaryRecord, ...]:
        return self._snapshot.summary

    @property
    def errors(self) -> tuple[IterationRecord, ...]:
        return self._snapshot.errors

    @property
    def iterations(self) -> int:
        return self._snapshot.iterations

    @property
    def total_elapsed(self) -> str:
        return self._snapshot.total_elapsed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every commit. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, generation: int, snapshot: ErrorLogSnapshot) -> bool:
        if generation != self._generation:
            logger.debug(
                "Discarding stale error log for job %s (generation %d, latest %d)",
                snapshot.job_id,
                generation,
                self._generation,
            )
            return False
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return True

    async def select_job(self, job_id: int | None) -> bool:
        """Make ``job_id`` the current job and load its error log.

        Returns whether this call's result was committed.
        """
        self._generation += 1
        generation = self._generation

        if job_id is None:
            return self._commit(generation, ErrorLogSnapshot.empty())

        try:
            data = await self.source.fetch(job_id)
            total_seconds = await self.source.total_time(job_id)
            snapshot = build_snapshot(job_id, data, total_seconds)
        except (SourceError, DecodeError, ErrorLogError) as e:
            logger.warning("Could not load error log for job %d: %s", job_id, e)
            return self._commit(
                generation, ErrorLogSnapshot.empty(job_id, load_error=str(e))
            )

        return self._commit(generation, snapshot)

    async def refresh(self) -> bool:
        """Reload the current job, e.g. after its data changed."""
        return await self.select_job(self._snapshot.job_id)
