from .base import MeasurementDimension
from .device_message import (
    AggregateMessageDimension,
    RealTimeMessageDimension,
    device_message_measurement,
)
from .measurement import Measurement

__all__ = [
    "AggregateMessageDimension",
    "Measurement",
    "MeasurementDimension",
    "RealTimeMessageDimension",
    "device_message_measurement",
]
