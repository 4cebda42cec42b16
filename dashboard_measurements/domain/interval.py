"""Interval and duration parsing.

Durations and bucket sizes are written as ``<number><unit>`` (``1s``,
``10m``, ``1h``). Supported units are ``ms``, ``s``, ``m``, ``h``, ``d`` and
``w``. A bare number is read as milliseconds when parsed as a duration.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, field_validator

_EXPRESSION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)?\s*$")

UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(text: str) -> timedelta:
    """Parse ``"1s"``, ``"500ms"``, ``"1.5h"`` or ``"250"`` (millis)."""
    match = _EXPRESSION_RE.match(text)
    if not match:
        raise ValueError(f"Invalid duration expression: {text!r}")
    amount, unit = float(match.group(1)), match.group(2) or "ms"
    return timedelta(seconds=amount * UNIT_SECONDS[unit])


class Interval(BaseModel):
    """A calendar-free bucket size such as ``1h`` or ``30s``."""

    model_config = ConfigDict(frozen=True)

    SQL_UNITS: ClassVar[dict[str, str]] = {
        "ms": "MILLISECOND",
        "s": "SECOND",
        "m": "MINUTE",
        "h": "HOUR",
        "d": "DAY",
        "w": "WEEK",
    }

    value: int
    unit: str

    @field_validator("value")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("interval value must be positive")
        return v

    @field_validator("unit")
    @classmethod
    def _known_unit(cls, v: str) -> str:
        if v not in UNIT_SECONDS:
            raise ValueError(f"unknown interval unit: {v}")
        return v

    @classmethod
    def parse(cls, text: str) -> "Interval":
        match = _EXPRESSION_RE.match(text)
        if not match or "." in match.group(1) or not match.group(2):
            raise ValueError(f"Invalid interval expression: {text!r}")
        return cls(value=int(match.group(1)), unit=match.group(2))

    @classmethod
    def of_seconds(cls, seconds: int) -> "Interval":
        return cls(value=seconds, unit="s")

    @classmethod
    def of_hours(cls, hours: int) -> "Interval":
        return cls(value=hours, unit="h")

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.value * UNIT_SECONDS[self.unit])

    def total_seconds(self) -> float:
        return self.to_timedelta().total_seconds()

    def to_sql(self) -> str:
        return f"INTERVAL {self.value} {self.SQL_UNITS[self.unit]}"

    def __str__(self) -> str:
        return f"{self.value}{self.unit}"
