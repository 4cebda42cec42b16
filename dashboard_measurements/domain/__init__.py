from .errors import (
    MeasurementError,
    QueryExecutionFailure,
    UnsupportedDimension,
    UpstreamSubscriptionFailure,
)
from .interval import Interval, parse_duration
from .models import (
    AggregationRow,
    CommonDimensionDefinition,
    DeviceMessage,
    DimensionDefinition,
    DimensionKind,
    MeasurementDefinition,
    MeasurementValue,
    SeriesPoint,
)
from .parameters import MeasurementParameter
from .schema import ConfigMetadata, ConfigProperty, DataType

__all__ = [
    "AggregationRow",
    "CommonDimensionDefinition",
    "ConfigMetadata",
    "ConfigProperty",
    "DataType",
    "DeviceMessage",
    "DimensionDefinition",
    "DimensionKind",
    "Interval",
    "MeasurementDefinition",
    "MeasurementError",
    "MeasurementParameter",
    "MeasurementValue",
    "QueryExecutionFailure",
    "SeriesPoint",
    "UnsupportedDimension",
    "UpstreamSubscriptionFailure",
    "parse_duration",
]
