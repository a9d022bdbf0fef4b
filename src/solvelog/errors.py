# Copyright (c) Syntropy Systems
"""Exception hierarchy for solvelog."""


class SolvelogError(Exception):
    """Base class for solvelog errors."""


class DecodeError(SolvelogError):
    """A raw error-log payload could not be decoded."""


class ErrorLogError(SolvelogError):
    """A transformed error log violates its own invariants."""


class LogFormatError(SolvelogError):
    """A solver log file does not follow the expected layout."""


class SourceError(SolvelogError):
    """An error-log source failed to deliver data for a job."""
