"""Tests for Range header parsing."""

from __future__ import annotations

import pytest

from app.vault.streaming.ranges import NoRange, Satisfiable, Unsatisfiable, parse_range


class TestParseRange:
    def test_absent(self) -> None:
        assert parse_range(None, 1000) == NoRange()

    def test_closed_range(self) -> None:
        assert parse_range("bytes=0-499", 1000) == Satisfiable(0, 499)

    def test_open_ended(self) -> None:
        assert parse_range("bytes=500-", 1000) == Satisfiable(500, 999)

    def test_last_byte(self) -> None:
        result = parse_range("bytes=999-999", 1000)
        assert result == Satisfiable(999, 999)
        assert result.content_range(1000) == "bytes 999-999/1000"
        assert result.length == 1

    def test_length(self) -> None:
        assert parse_range("bytes=2-5", 10).length == 4

    def test_whole_file_as_range(self) -> None:
        assert parse_range("bytes=0-", 1000) == Satisfiable(0, 999)

    def test_surrounding_whitespace_and_unit_case(self) -> None:
        assert parse_range("  Bytes=10-19 ", 1000) == Satisfiable(10, 19)

    def test_start_beyond_size(self) -> None:
        assert isinstance(parse_range("bytes=1000-1005", 1000), Unsatisfiable)

    def test_open_ended_beyond_size(self) -> None:
        assert isinstance(parse_range("bytes=1000-", 1000), Unsatisfiable)

    def test_end_beyond_size_not_clamped(self) -> None:
        assert isinstance(parse_range("bytes=900-1000", 1000), Unsatisfiable)

    def test_start_after_end(self) -> None:
        result = parse_range("bytes=10-5", 1000)
        assert isinstance(result, Unsatisfiable)
        assert "after end" in result.reason

    def test_suffix_not_supported(self) -> None:
        result = parse_range("bytes=-500", 1000)
        assert isinstance(result, Unsatisfiable)
        assert "suffix" in result.reason

    def test_multiple_ranges_not_supported(self) -> None:
        assert isinstance(parse_range("bytes=0-1,5-6", 1000), Unsatisfiable)

    @pytest.mark.parametrize(
        "header",
        ["", "bytes", "bytes=", "bytes=abc-def", "items=0-10", "bytes=1.5-3", "0-10", "bytes=+1-2", "bytes=\u0660-\u0663"],
    )
    def test_malformed(self, header: str) -> None:
        assert isinstance(parse_range(header, 1000), Unsatisfiable)

    def test_empty_file_has_no_satisfiable_range(self) -> None:
        assert isinstance(parse_range("bytes=0-", 0), Unsatisfiable)
        assert parse_range(None, 0) == NoRange()
