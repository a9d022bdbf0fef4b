# Copyright (c) Syntropy Systems
"""Error-log records: per-iteration residuals and per-load-step summaries."""

from __future__ import annotations

from pydantic import Field, NonNegativeInt

from .base import FrozenModel


class IterationRecord(FrozenModel):
    """One observation of solver progress.

    ``iteration`` is ``None`` for a synthetic gap marker. ``error_u`` and
    ``error_phi`` are ``None`` when the point carries no error contribution.
    """

    iteration: NonNegativeInt | None = Field(default=None, alias="iters")
    load: float
    error_u: float | None = None
    error_phi: float | None = None

    @property
    def is_marker(self) -> bool:
        """Whether this record only breaks the line between load steps."""
        return self.iteration is None

    @classmethod
    def marker(cls, load: float) -> IterationRecord:
        """Build a gap marker for the step starting at ``load``."""
        return cls(iteration=None, load=load, error_u=None, error_phi=None)


class SummaryRecord(FrozenModel):
    """One load step: iterations taken and seconds spent."""

    load: float
    iterations: NonNegativeInt = Field(alias="iters")
    cost: float | None = None


class ErrorLogData(FrozenModel):
    """Decoded error log of one job, before any transformation."""

    summary: tuple[SummaryRecord, ...] = ()
    errors: tuple[IterationRecord, ...] = ()


class ErrorLogSnapshot(FrozenModel):
    """Chart-ready view of one job, replaced as a whole on every refresh."""

    job_id: int | None = None
    summary: tuple[SummaryRecord, ...] = ()
    errors: tuple[IterationRecord, ...] = ()
    iterations: int = 0
    total_elapsed: str = "-"
    # Why the last load produced no data, None when it succeeded
    load_error: str | None = Field(default=None, exclude=True)

    @classmethod
    def empty(
        cls, job_id: int | None = None, load_error: str | None = None
    ) -> ErrorLogSnapshot:
        """Snapshot shown when no job is selected or a fetch failed."""
        return cls(job_id=job_id, load_error=load_error)
