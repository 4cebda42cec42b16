from __future__ import annotations

from typing import Iterable, Tuple

from dashboard_measurements.domain.errors import UnsupportedDimension
from dashboard_measurements.domain.models import DimensionKind, MeasurementDefinition

from .base import MeasurementDimension


class Measurement:
    """A named metric and the dimensions it exposes, fixed at construction."""

    def __init__(
        self,
        definition: MeasurementDefinition,
        dimensions: Iterable[MeasurementDimension],
    ):
        self._definition = definition
        self._dimensions: Tuple[MeasurementDimension, ...] = tuple(dimensions)
        kinds = [d.get_definition().kind for d in self._dimensions]
        if len(set(kinds)) != len(kinds):
            raise ValueError(
                f"Measurement '{definition.id}' registers a dimension kind twice"
            )

    @property
    def definition(self) -> MeasurementDefinition:
        return self._definition

    @property
    def dimensions(self) -> Tuple[MeasurementDimension, ...]:
        return self._dimensions

    def get_dimension(self, kind: DimensionKind | str) -> MeasurementDimension:
        kind_value = kind.value if isinstance(kind, DimensionKind) else kind
        for dimension in self._dimensions:
            if dimension.get_definition().kind.value == kind_value:
                return dimension
        raise UnsupportedDimension(self._definition.id, kind_value)

    def describe(self) -> dict:
        """Metadata a dashboard needs to list this measurement and its dimensions."""
        return {
            "id": self._definition.id,
            "name": self._definition.name,
            "dimensions": [
                {
                    "id": d.get_definition().kind.value,
                    "name": d.get_definition().name,
                    "valueType": d.get_value_type().value,
                    "realTime": d.is_real_time(),
                    "params": d.get_params().describe(),
                }
                for d in self._dimensions
            ],
        }
