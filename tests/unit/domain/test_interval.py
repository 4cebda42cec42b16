from datetime import timedelta

import pytest

from dashboard_measurements.domain.interval import Interval, parse_duration


@pytest.mark.parametrize(
    "text,value,unit,seconds",
    [
        ("1h", 1, "h", 3600),
        ("10m", 10, "m", 600),
        ("30s", 30, "s", 30),
        ("1d", 1, "d", 86400),
        ("2w", 2, "w", 1_209_600),
    ],
)
def test_parse_interval(text, value, unit, seconds):
    interval = Interval.parse(text)

    assert (interval.value, interval.unit) == (value, unit)
    assert interval.total_seconds() == seconds
    assert str(interval) == text


@pytest.mark.parametrize("text", ["", "h", "10", "1.5h", "0m", "5y", "-1h"])
def test_parse_interval_rejects(text):
    with pytest.raises(ValueError):
        Interval.parse(text)


def test_interval_sql_rendering():
    assert Interval.of_hours(1).to_sql() == "INTERVAL 1 HOUR"
    assert Interval(value=15, unit="m").to_sql() == "INTERVAL 15 MINUTE"
    assert Interval.of_seconds(5).to_timedelta() == timedelta(seconds=5)


def test_parse_duration_bare_number_is_millis():
    assert parse_duration("1500") == timedelta(milliseconds=1500)


def test_parse_duration_rejects_garbage():
    with pytest.raises(ValueError):
        parse_duration("soon")
