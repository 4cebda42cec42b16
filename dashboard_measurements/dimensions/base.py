from abc import ABC, abstractmethod
from typing import AsyncIterator

from dashboard_measurements.core.logger import get_logger
from dashboard_measurements.domain.models import DimensionDefinition, MeasurementValue
from dashboard_measurements.domain.parameters import MeasurementParameter
from dashboard_measurements.domain.schema import ConfigMetadata, DataType


class MeasurementDimension(ABC):
    """One queryable facet of a measurement.

    Only two concrete kinds exist: a real-time window counter and an aggregate
    query over the series store. Both return an async iterator from
    ``get_value``; ``is_real_time`` tells callers whether it is unbounded.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)

    @abstractmethod
    def get_definition(self) -> DimensionDefinition:
        pass

    @abstractmethod
    def get_value_type(self) -> DataType:
        pass

    @abstractmethod
    def get_params(self) -> ConfigMetadata:
        pass

    @abstractmethod
    def is_real_time(self) -> bool:
        pass

    @abstractmethod
    def get_value(
        self, parameter: MeasurementParameter
    ) -> AsyncIterator[MeasurementValue]:
        """Return a fresh value stream for ``parameter``."""
        pass
