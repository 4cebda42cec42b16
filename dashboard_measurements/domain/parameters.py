from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .interval import Interval, parse_duration
from .values import TypedValues

_RELATIVE_DATE_RE = re.compile(r"^now(?:\s*([+-])\s*(.+))?$")


def to_timedelta(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        result = value
    elif isinstance(value, Interval):
        result = value.to_timedelta()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        result = timedelta(milliseconds=value)
    elif isinstance(value, str):
        result = parse_duration(value)
    else:
        raise TypeError(f"cannot convert {type(value).__name__} to duration")
    if result <= timedelta(0):
        raise ValueError("duration must be positive")
    return result


def to_interval(value: Any) -> Interval:
    if isinstance(value, Interval):
        return value
    if isinstance(value, str):
        return Interval.parse(value)
    if isinstance(value, timedelta):
        return Interval.of_seconds(int(value.total_seconds()))
    raise TypeError(f"cannot convert {type(value).__name__} to interval")


def to_datetime(value: Any, now: datetime) -> datetime:
    """Convert a raw date value to an aware datetime.

    Accepts datetimes (naive ones are taken as UTC), epoch millis, ISO-8601
    strings and ``now``/``now-1h``/``now+30m`` expressions.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except OSError as e:
            # the platform's time_t range is narrower than datetime's
            raise ValueError(f"epoch millis out of range: {value}") from e
    if not isinstance(value, str):
        raise TypeError(f"cannot convert {type(value).__name__} to datetime")
    text = value.strip()
    if text.isdigit():
        return to_datetime(int(text), now)
    relative = _RELATIVE_DATE_RE.match(text)
    if relative:
        sign, offset = relative.groups()
        if sign is None:
            return now
        delta = parse_duration(offset)
        return now - delta if sign == "-" else now + delta
    return to_datetime(datetime.fromisoformat(text.replace("Z", "+00:00")), now)


class MeasurementParameter(TypedValues):
    """Parameters supplied by a dashboard when it asks a dimension for values."""

    def get_duration(
        self, name: str, default: Optional[timedelta] = None
    ) -> Optional[timedelta]:
        return self.coerce(name, to_timedelta, default)

    def get_interval(
        self, name: str, default: Optional[Interval] = None
    ) -> Optional[Interval]:
        return self.coerce(name, to_interval, default)

    def get_date(
        self,
        name: str,
        default: Optional[datetime] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[datetime]:
        """Return the parameter as a datetime, or ``default`` (``None``) if absent.

        ``now`` anchors relative expressions; it defaults to the current time.
        """
        anchor = now or datetime.now(timezone.utc)
        return self.coerce(name, lambda v: to_datetime(v, anchor), default)
