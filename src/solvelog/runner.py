# Copyright (c) Syntropy Systems
"""Job runner: answers invoke-style requests for a job's error log.

A caller passes a job id and a :class:`Channel`. The runner packs the
load-step summary and the ranked error series into one MessagePack payload
and delivers it on the channel exactly once. Encoded payloads are cached
per job so repeated views skip the database.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from solvelog.cache import DEFAULT_MAX_SIZE, PayloadCache
from solvelog.db import (
    get_connection,
    get_error_entries,
    get_error_summary,
    get_total_time,
    remove_job,
)
from solvelog.decoder import encode_rows

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

MessageHandler = Callable[[bytes], None]


class ChannelClosedError(RuntimeError):
    """Raised when a one-shot channel is used twice."""


class Channel:
    """One-shot binary message handle passed along with a request."""

    def __init__(self, on_message: Optional[MessageHandler] = None) -> None:
        self.on_message = on_message
        self._sent = False

    @property
    def sent(self) -> bool:
        return self._sent

    def send(self, message: bytes) -> None:
        """Deliver ``message`` to the handler."""
        if self._sent:
            raise ChannelClosedError("Channel already delivered its message")
        self._sent = True
        if self.on_message is None:
            logger.warning("Channel has no handler, dropping %d bytes", len(message))
            return
        self.on_message(message)


class ErrorLogService:
    """Serves error logs and total times from a solvelog database."""

    def __init__(self, db_path: Path, cache: Optional[PayloadCache] = None) -> None:
        self.db_path = db_path
        self.cache = cache if cache is not None else PayloadCache(DEFAULT_MAX_SIZE)

    def load_payload(self, job_id: int) -> bytes:
        """Return the encoded error log for a job, from cache when possible."""
        cached = self.cache.get(job_id)
        if cached is not None:
            logger.debug("Serving cached error log for job %d", job_id)
            return cached

        conn = get_connection(self.db_path)
        try:
            summary = get_error_summary(conn, job_id)
            entries = get_error_entries(conn, job_id)
        finally:
            conn.close()

        payload = encode_rows(
            [(row["load"], row["iters"], row["cost"]) for row in summary],
            [
                (row["iters"], row["load"], row["error_u"], row["error_phi"])
                for row in entries
            ],
        )
        self.cache.set(job_id, payload)
        logger.debug(
            "Encoded error log for job %d: %d steps, %d entries, %d bytes",
            job_id,
            len(summary),
            len(entries),
            len(payload),
        )
        return payload

    def get_error_log(self, job_id: int, channel: Channel) -> None:
        """Send the encoded error log for ``job_id`` on ``channel``."""
        channel.send(self.load_payload(job_id))

    def get_total_time(self, job_id: int) -> Optional[float]:
        """Total solving time in seconds."""
        conn = get_connection(self.db_path)
        try:
            return get_total_time(conn, job_id)
        finally:
            conn.close()

    def remove_job(self, job_id: int) -> bool:
        """Delete a job and evict its cached payload."""
        conn = get_connection(self.db_path)
        try:
            removed = remove_job(conn, job_id)
        finally:
            conn.close()
        self.cache.remove(job_id)
        return removed

    def clear_cache(self) -> None:
        self.cache.clear()
