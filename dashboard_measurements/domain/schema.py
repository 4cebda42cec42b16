"""Config schemas published by dimensions.

A ``ConfigMetadata`` describes which parameters a dimension understands so a
dashboard can render a form for them. It is introspection only: dimensions
never reject a call because a parameter is missing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .parameters import to_datetime, to_interval, to_timedelta
from .values import TypedValues, to_float, to_int


class DataType(str, Enum):
    """Semantic value types for parameters and measurement values."""

    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    DATE_TIME = "date"
    DURATION = "duration"
    INTERVAL = "interval"

    def converter(self):
        if self is DataType.INT:
            return to_int
        if self is DataType.DOUBLE:
            return to_float
        if self is DataType.DATE_TIME:
            return lambda v: to_datetime(v, datetime.now(timezone.utc))
        if self is DataType.DURATION:
            return to_timedelta
        if self is DataType.INTERVAL:
            return to_interval
        return str


class ConfigProperty(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    description: str = ""
    type: DataType


class ConfigMetadata(BaseModel):
    """Ordered, immutable list of recognised parameters."""

    model_config = ConfigDict(frozen=True)

    properties: tuple[ConfigProperty, ...] = ()

    def add(
        self, name: str, label: str, description: str, type: DataType
    ) -> "ConfigMetadata":
        prop = ConfigProperty(name=name, label=label, description=description, type=type)
        return ConfigMetadata(properties=self.properties + (prop,))

    def get(self, name: str) -> ConfigProperty | None:
        return next((p for p in self.properties if p.name == name), None)

    def names(self) -> list[str]:
        return [p.name for p in self.properties]

    def validate_values(self, values: TypedValues) -> dict[str, str]:
        """Report present values that do not coerce to their declared type.

        Returns a mapping of property name to error message; absent values and
        unknown keys are not reported.
        """
        issues: dict[str, str] = {}
        for prop in self.properties:
            raw: Any = values.raw(prop.name)
            if raw is None:
                continue
            try:
                prop.type.converter()(raw)
            except (TypeError, ValueError, OverflowError) as e:
                issues[prop.name] = str(e)
        return issues

    def describe(self) -> list[dict[str, str]]:
        return [p.model_dump(mode="json") for p in self.properties]
