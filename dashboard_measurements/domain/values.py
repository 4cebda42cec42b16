"""Read-only typed views over raw key/value data.

Dashboard parameters and series store rows both arrive as loosely typed
mappings (usually strings). ``TypedValues`` coerces on read and hands back the
caller's default whenever a value is missing or malformed.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Iterator, Optional, TypeVar

from dashboard_measurements.core.logger import get_logger

logger = get_logger("measurements.values")

T = TypeVar("T")


def to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not an int value")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{value} is not integral")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return to_int(float(text))
    raise TypeError(f"cannot convert {type(value).__name__} to int")


def to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric value")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f"cannot convert {type(value).__name__} to float")


class TypedValues(Mapping):
    """Immutable mapping with coercing accessors.

    ``None`` and blank strings count as absent.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Mapping[str, Any] = MappingProxyType(dict(values or {}))

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self._values)!r})"

    def raw(self, name: str) -> Any:
        value = self._values.get(name)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def coerce(
        self, name: str, converter: Callable[[Any], T], default: Optional[T]
    ) -> Optional[T]:
        value = self.raw(name)
        if value is None:
            return default
        try:
            return converter(value)
        except (TypeError, ValueError, OverflowError) as e:
            logger.debug(
                "value_coercion_failed",
                extra={"field": name, "raw": repr(value), "error": str(e)},
            )
            return default

    def get_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.coerce(name, str, default)

    def get_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        return self.coerce(name, to_int, default)

    def get_float(
        self, name: str, default: Optional[float] = None
    ) -> Optional[float]:
        return self.coerce(name, to_float, default)
