# Copyright (c) Syntropy Systems
"""Tests for solver log parsing."""

import pytest

from solvelog.errors import LogFormatError
from solvelog.log_parser import LogEntry, parse_entry, parse_job_info, parse_log


class TestParseLog:
    """Tests for whole-file parsing."""

    def test_job_info(self, sample_log: str) -> None:
        """Test that the header becomes a JobInfo."""
        parsed = parse_log(sample_log)

        assert parsed.job.id == 666666
        assert parsed.job.name == "beam"
        assert parsed.job.queue == "default"
        assert parsed.job.num_cpu == 4
        assert parsed.job.nodes == ["node1", "node2"]
        assert parsed.job.parameters == {"dt": 0.01, "solver": "newton"}

    def test_entries_skip_noise_lines(self, sample_log: str) -> None:
        """Test that only matching lines become entries."""
        parsed = parse_log(sample_log)

        assert len(parsed.entries) == 7
        assert parsed.entries[0] == LogEntry(
            timestamp="2023-01-01 10:00:00.000",
            load=1.0,
            iteration=1,
            error_u=0.1,
            error_phi=0.2,
        )
        assert parsed.entries[1].error_phi == 1e-30
        assert [e.load for e in parsed.entries] == [1.0, 1.0, 1.0, 2.0, 2.0, 1.5, 1.5]

    def test_missing_job_info(self) -> None:
        """Test that a log without a JobInfo header is rejected."""
        with pytest.raises(LogFormatError, match="job info"):
            _ = parse_log("no header here\n{}\n")

    def test_too_short(self) -> None:
        """Test that a one-line file is rejected."""
        with pytest.raises(LogFormatError):
            _ = parse_log("JobInfo(id='1', name='a', queue='q', n=1, nodes=[])")

    def test_invalid_parameters_are_dropped(self) -> None:
        """Test that unparseable parameters become None."""
        header = "JobInfo(id='7', name='a', queue='q', n=1, nodes=['n1'])"
        parsed = parse_log(f"{header}\n{{not json}}\n")

        assert parsed.job.parameters is None
        assert parsed.entries == []


class TestParseParts:
    """Tests for single-line parsers."""

    def test_non_numeric_job_id(self) -> None:
        """Test that the job id must be an integer."""
        with pytest.raises(LogFormatError, match="not a number"):
            _ = parse_job_info("JobInfo(id='abc', name='a', queue='q', n=1, nodes=[])")

    def test_empty_nodes(self) -> None:
        """Test that an empty node list parses to []."""
        job = parse_job_info("JobInfo(id='3', name='a', queue='q', n=2, nodes=[])")

        assert job.nodes == []

    def test_entry_with_exponent(self) -> None:
        """Test that exponent notation is accepted."""
        entry = parse_entry(
            "2024-05-06 07:08:09.010 l=2.5e+01 iter=12 err={ u=3.0e-08 phi=1e-12 }"
        )

        assert entry is not None
        assert entry.load == 25.0
        assert entry.iteration == 12
        assert entry.error_u == 3.0e-08

    def test_not_an_entry(self) -> None:
        """Test that other lines are ignored."""
        assert parse_entry("2024-05-06 07:08:09.010 converged") is None
