from datetime import datetime, timezone

import pytest

from intune_app_status.utils import format_percentage, format_sync_time, parse_graph_datetime, report_timestamp


@pytest.mark.parametrize(
    "numerator,denominator,expected",
    [(1, 2, "50.00%"), (2, 3, "66.67%"), (1, 3, "33.33%"), (1, 8, "12.50%"), (1, 800, "0.13%"), (3, 3, "100.00%"), (0, 0, "0.00%"), (0, 5, "0.00%")],
)
def test_format_percentage(numerator, denominator, expected):
    assert format_percentage(numerator, denominator) == expected


def test_parse_graph_datetime_variants():
    assert parse_graph_datetime("2024-05-01T10:15:00Z") == datetime(2024, 5, 1, 10, 15, tzinfo=timezone.utc)
    assert parse_graph_datetime("2024-05-01T10:15:00.1234567Z").microsecond == 123456
    assert parse_graph_datetime("0001-01-01T00:00:00Z") is None
    assert parse_graph_datetime("") is None
    assert parse_graph_datetime("yesterday") is None


def test_format_sync_time():
    assert format_sync_time("2024-05-01T10:15:00+02:00") == "2024-05-01 08:15:00 UTC"
    assert format_sync_time(None) == ""


def test_report_timestamp():
    assert report_timestamp(datetime(2024, 5, 1, 8, 5, 9, tzinfo=timezone.utc)) == "20240501-080509"
