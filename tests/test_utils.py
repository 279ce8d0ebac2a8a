"""
Tests for the utility functions.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from nexus_federation.errors import OperationCancelled
from nexus_federation.utils import (
    check_cancelled,
    format_datetime,
    format_timespan,
    join_catalog_path,
    parse_datetime,
    parse_timespan,
    to_unit_string,
)


def test_join_catalog_path():
    """Test joining prefixes and remainders with a single slash."""
    assert join_catalog_path("/", "A") == "/A"
    assert join_catalog_path("/src", "A/B") == "/src/A/B"
    assert join_catalog_path("/src", "/A") == "/src/A"
    assert join_catalog_path("/src", "") == "/src"
    assert join_catalog_path("/", "") == "/"


@pytest.mark.parametrize(
    "value, text",
    [
        (timedelta(seconds=1), "00:00:01"),
        (timedelta(hours=25, minutes=2, seconds=3), "1.01:02:03"),
        (timedelta(milliseconds=100), "00:00:00.1000000"),
        (timedelta(microseconds=1), "00:00:00.0000010"),
    ],
)
def test_timespan_format(value, text):
    """Test the time span format of the upstream API."""
    assert format_timespan(value) == text
    assert parse_timespan(text) == value


def test_parse_timespan_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timespan("1 second")


def test_format_datetime():
    """Test that timestamps are sent as UTC."""
    assert format_datetime(datetime(2020, 1, 1)) == "2020-01-01T00:00:00.000000Z"

    cet = timezone(timedelta(hours=1))
    assert format_datetime(datetime(2020, 1, 1, 1, tzinfo=cet)) == "2020-01-01T00:00:00.000000Z"


def test_parse_datetime():
    """Test parsing timestamps with seven fraction digits and a Z suffix."""
    expected = datetime(2020, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)

    assert parse_datetime("2020-01-01T00:00:00.1234567Z") == expected
    assert parse_datetime("2020-01-01T00:00:00.123456+00:00") == expected
    assert parse_datetime("2020-01-01T00:00:00") == datetime(2020, 1, 1, tzinfo=timezone.utc)


def test_to_unit_string():
    assert to_unit_string(timedelta(microseconds=1)) == "1_us"
    assert to_unit_string(timedelta(milliseconds=1500)) == "1500_ms"
    assert to_unit_string(timedelta(hours=1)) == "60_min"

    with pytest.raises(ValueError):
        to_unit_string(timedelta(0))


def test_check_cancelled():
    event = threading.Event()
    check_cancelled(None)
    check_cancelled(event)

    event.set()
    with pytest.raises(OperationCancelled):
        check_cancelled(event)
