# Copyright (c) Syntropy Systems
"""Turn a raw error series into the sequence a chart renderer consumes.

Two steps run over a job's per-iteration residuals:

1. Noise floor: residuals at or below ``NOISE_FLOOR`` are numerically zero
   and are dropped to ``None`` so the chart omits them.
2. Gap markers: a synthetic record with ``iteration=None`` is placed before
   the first record of every new load step, which makes the renderer start
   a separate line segment per step.

Both steps build new lists and never mutate their input.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from solvelog.errors import ErrorLogError
from solvelog.models.records import IterationRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

NOISE_FLOOR = 1e-25


def _floor(value: float | None) -> float | None:
    if value is not None and value > NOISE_FLOOR:
        return value
    return None


def apply_noise_floor(records: Iterable[IterationRecord]) -> list[IterationRecord]:
    """Null out residuals that do not exceed ``NOISE_FLOOR``.

    Markers are passed through untouched.
    """
    rounded: list[IterationRecord] = []
    for record in records:
        if record.is_marker:
            rounded.append(record)
            continue
        error_u = _floor(record.error_u)
        error_phi = _floor(record.error_phi)
        if error_u == record.error_u and error_phi == record.error_phi:
            rounded.append(record)
        else:
            rounded.append(
                record.model_copy(update={"error_u": error_u, "error_phi": error_phi})
            )
    return rounded


def insert_gap_markers(records: Iterable[IterationRecord]) -> list[IterationRecord]:
    """Insert one marker before each record that starts a new load step.

    The previous load is carried as a scalar taken from real records only,
    so a marker that was just emitted can never count as a boundary. A
    marker already in the input resets it, so the record after it gets no
    second marker.
    """
    output: list[IterationRecord] = []
    previous_load: float | None = None

    for record in records:
        if record.is_marker:
            output.append(record)
            previous_load = None
            continue
        if previous_load is not None and record.load != previous_load:
            output.append(IterationRecord.marker(record.load))
        output.append(record)
        previous_load = record.load

    return output


def split_error_log(records: Iterable[IterationRecord]) -> list[IterationRecord]:
    """Apply the noise floor, then break the series at load transitions."""
    return insert_gap_markers(apply_noise_floor(records))


def count_markers(series: Iterable[IterationRecord]) -> int:
    """Number of gap markers in a series."""
    return sum(1 for record in series if record.is_marker)


def iteration_count(series: Sequence[IterationRecord]) -> int:
    """Return the iteration of the last record, or 0 for an empty series.

    Expects a transformed series. Markers only ever precede real records,
    so a trailing marker means the log is inconsistent.
    """
    if not series:
        return 0
    last = series[-1]
    if last.iteration is None:
        msg = f"Error log ends with a gap marker at load {last.load}"
        raise ErrorLogError(msg)
    return last.iteration
