"""Tests for ISO-8601 parsing and time merging."""

from datetime import datetime, timedelta, timezone

import pytest

from mapctx_core.times import is_iso8601, merge_times, parse_instant


def test_date_only_is_midnight_utc():
    assert parse_instant("2020-01-02") == datetime(2020, 1, 2, tzinfo=timezone.utc)


def test_offset_is_honoured():
    instant = parse_instant("2020-01-02T10:00:00+02:00")
    assert instant == datetime(2020, 1, 2, 8, 0, tzinfo=timezone.utc)
    assert instant.utcoffset() == timedelta(hours=2)


def test_fraction_is_truncated_to_microseconds():
    assert parse_instant("2020-01-02T10:00:00.1234567Z").microsecond == 123456
    assert parse_instant("2020-01-02T10:00:00.5Z").microsecond == 500000


@pytest.mark.parametrize("value", ["2020", "2020-01", "20200101", "2020-01-01T10"])
def test_partial_or_compact_forms_are_not_accepted(value):
    assert not is_iso8601(value)
    with pytest.raises(ValueError):
        parse_instant(value)


def test_merge_deduplicates_and_sorts():
    merged = merge_times([["2020-01-01", "2020-01-02"], ["2020-01-02", "2020-01-03"]])
    assert merged == ["2020-01-01", "2020-01-02", "2020-01-03"]


def test_merge_sorts_by_instant_not_text():
    merged = merge_times([["2020-01-01T12:00:00+05:00", "2020-01-01T08:00:00Z"]])
    assert merged == ["2020-01-01T12:00:00+05:00", "2020-01-01T08:00:00Z"]


def test_merge_keeps_distinct_spellings_of_one_instant():
    merged = merge_times([["2020-01-01T00:00:00Z"], ["2020-01-01"]])
    assert merged == ["2020-01-01T00:00:00Z", "2020-01-01"]


def test_merge_of_nothing_is_empty():
    assert merge_times([]) == []
    assert merge_times([[], []]) == []
