# Copyright (c) Syntropy Systems
"""Decode error-log payloads into typed records.

Two sources feed the same records:

- the job runner answers with one MessagePack blob holding
  ``[summaryTuples, errorTuples]``;
- the database answers with row sets already shaped by a query.

Summary tuples are ``(load, iterations, cost)``; error tuples are
``(iteration, load, error_u, error_phi)``.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, cast

import msgpack
from pydantic import ValidationError

from solvelog.errors import DecodeError
from solvelog.models.records import ErrorLogData, IterationRecord, SummaryRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

SUMMARY_ARITY = 3
ERROR_ARITY = 4


def _as_tuples(value: object, arity: int, what: str) -> list[Sequence[object]]:
    if not isinstance(value, (list, tuple)):
        msg = f"Expected an array of {what} tuples, got {type(value).__name__}"
        raise DecodeError(msg)
    tuples: list[Sequence[object]] = []
    for idx, item in enumerate(value):
        if not isinstance(item, (list, tuple)) or len(item) != arity:
            msg = f"{what} tuple #{idx} is not an array of {arity} values"
            raise DecodeError(msg)
        tuples.append(cast("Sequence[object]", item))
    return tuples


def decode_payload(payload: bytes) -> ErrorLogData:
    """Decode a MessagePack ``[summaryTuples, errorTuples]`` payload."""
    try:
        decoded = cast("object", msgpack.unpackb(payload, raw=False))
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        msg = f"Malformed error-log payload: {e}"
        raise DecodeError(msg) from e

    if not isinstance(decoded, (list, tuple)) or len(decoded) != 2:
        msg = "Error-log payload must be a pair [summary, errors]"
        raise DecodeError(msg)

    summary_tuples = _as_tuples(decoded[0], SUMMARY_ARITY, "summary")
    error_tuples = _as_tuples(decoded[1], ERROR_ARITY, "error")

    try:
        summary = tuple(
            SummaryRecord(load=load, iterations=iters, cost=cost)
            for load, iters, cost in summary_tuples
        )
        errors = tuple(
            IterationRecord(
                iteration=iters, load=load, error_u=error_u, error_phi=error_phi
            )
            for iters, load, error_u, error_phi in error_tuples
        )
    except ValidationError as e:
        msg = f"Error-log payload has mistyped fields: {e.error_count()} error(s)"
        raise DecodeError(msg) from e

    return ErrorLogData(summary=summary, errors=errors)


def encode_payload(data: ErrorLogData) -> bytes:
    """Encode records into the runner's MessagePack payload."""
    return encode_rows(
        [(s.load, s.iterations, s.cost) for s in data.summary],
        [(e.iteration, e.load, e.error_u, e.error_phi) for e in data.errors],
    )


def encode_rows(
    summary_rows: Iterable[Sequence[object]],
    error_rows: Iterable[Sequence[object]],
) -> bytes:
    """Pack query rows positionally, without building records first."""
    payload = [
        [list(row) for row in summary_rows],
        [list(row) for row in error_rows],
    ]
    return cast("bytes", msgpack.packb(payload, use_bin_type=True))


def decode_summary_rows(rows: Iterable[Mapping[str, object]]) -> list[SummaryRecord]:
    """Build summary records from ``(load, iters, cost)`` rows."""
    try:
        return [
            SummaryRecord(load=row["load"], iterations=row["iters"], cost=row["cost"])
            for row in rows
        ]
    except (KeyError, IndexError, ValidationError) as e:
        msg = f"Summary rows do not match (load, iters, cost): {e}"
        raise DecodeError(msg) from e


def decode_error_rows(rows: Iterable[Mapping[str, object]]) -> list[IterationRecord]:
    """Build iteration records from ``(iters, load, error_u, error_phi)`` rows."""
    try:
        return [
            IterationRecord(
                iteration=row["iters"],
                load=row["load"],
                error_u=row["error_u"],
                error_phi=row["error_phi"],
            )
            for row in rows
        ]
    except (KeyError, IndexError, ValidationError) as e:
        msg = f"Error rows do not match (iters, load, error_u, error_phi): {e}"
        raise DecodeError(msg) from e
