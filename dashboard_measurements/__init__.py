"""Measurement dimensions for dashboards.

A ``Measurement`` exposes a metric through a real-time dimension (live window
counts from the message bus) and an aggregate dimension (time-bucketed sums
from the series store), both driven by a ``MeasurementParameter``.
"""

from .dimensions import (
    AggregateMessageDimension,
    Measurement,
    MeasurementDimension,
    RealTimeMessageDimension,
    device_message_measurement,
)
from .domain import (
    DimensionKind,
    MeasurementParameter,
    MeasurementValue,
    QueryExecutionFailure,
    UnsupportedDimension,
    UpstreamSubscriptionFailure,
)

__version__ = "0.1.0"

__all__ = [
    "AggregateMessageDimension",
    "DimensionKind",
    "Measurement",
    "MeasurementDimension",
    "MeasurementParameter",
    "MeasurementValue",
    "QueryExecutionFailure",
    "RealTimeMessageDimension",
    "UnsupportedDimension",
    "UpstreamSubscriptionFailure",
    "device_message_measurement",
]
