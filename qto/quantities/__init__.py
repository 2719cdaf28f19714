"""Quantity takeoff — per-type measurement lines for budget line items."""

from qto.quantities.cache import CacheKey, InMemoryMeasurementCache, MeasurementCache
from qto.quantities.engine import MeasurementEngine
from qto.quantities.matcher import find_instances, list_element_types, resolve_display_name
from qto.quantities.report import MeasurementReport
from qto.quantities.status import StatusReport, summarize_model
from qto.quantities.units import parse_unit, resolve_quantity, value_for_unit

__all__ = [
    "CacheKey",
    "InMemoryMeasurementCache",
    "MeasurementCache",
    "MeasurementEngine",
    "MeasurementReport",
    "StatusReport",
    "find_instances",
    "list_element_types",
    "parse_unit",
    "resolve_display_name",
    "resolve_quantity",
    "summarize_model",
    "value_for_unit",
]
