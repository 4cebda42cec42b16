from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .values import TypedValues


class DimensionKind(str, Enum):
    REAL_TIME = "real-time"
    AGGREGATE = "aggregate"


class DimensionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DimensionKind
    name: str


class CommonDimensionDefinition:
    """Definitions shared by every measurement."""

    real_time = DimensionDefinition(kind=DimensionKind.REAL_TIME, name="Real-time")
    aggregate = DimensionDefinition(kind=DimensionKind.AGGREGATE, name="Aggregate")


class MeasurementDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class MeasurementValue(BaseModel):
    """One emitted unit: a number plus its epoch-millis timestamp or bucket label."""

    model_config = ConfigDict(frozen=True)

    value: Union[int, float]
    timestamp: Union[int, str]
    index: Optional[int] = None


class DeviceMessage(BaseModel):
    """A message delivered by the message bus."""

    model_config = ConfigDict(frozen=True)

    topic: str
    device_id: Optional[str] = None
    product_id: Optional[str] = None
    message_type: Optional[str] = None
    timestamp: int
    payload: Dict[str, Any] = Field(default_factory=dict)


class SeriesPoint(BaseModel):
    """One stored sample of a counted metric."""

    model_config = ConfigDict(frozen=True)

    metric: str
    timestamp: int  # epoch millis
    count: int
    tags: Dict[str, str] = Field(default_factory=dict)


class AggregationRow(TypedValues):
    """A row returned by the series store, e.g. ``{"time": "05-01 10:00", "count": 3}``."""
