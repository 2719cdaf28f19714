"""qto — quantity extraction and classification for construction budgets."""

__version__ = "1.0.0"

from qto.config import configure_logging, load_settings
from qto.extraction import (
    estimate_from_geometry,
    extract_comment,
    load_ifc_model,
    model_from_metadata,
    normalize_key,
    scan_for_unit,
    to_number,
)
from qto.models.element import (
    BoundingBox,
    BoxDimensions,
    ElementInstance,
    ElementTypeConfig,
    MeasurementLine,
    Property,
    PropertySet,
    QuantitySource,
    UnitCode,
)
from qto.models.model import BuildingModel
from qto.quantities import (
    CacheKey,
    InMemoryMeasurementCache,
    MeasurementCache,
    MeasurementEngine,
    MeasurementReport,
    StatusReport,
    find_instances,
    list_element_types,
    parse_unit,
    resolve_display_name,
    resolve_quantity,
    summarize_model,
    value_for_unit,
)

__all__ = [
    "__version__",
    # Engine
    "MeasurementEngine",
    "MeasurementReport",
    "StatusReport",
    "summarize_model",
    # Cache
    "CacheKey",
    "InMemoryMeasurementCache",
    "MeasurementCache",
    # Data model
    "BoundingBox",
    "BoxDimensions",
    "BuildingModel",
    "ElementInstance",
    "ElementTypeConfig",
    "MeasurementLine",
    "Property",
    "PropertySet",
    "QuantitySource",
    "UnitCode",
    # Extraction
    "estimate_from_geometry",
    "extract_comment",
    "find_instances",
    "list_element_types",
    "load_ifc_model",
    "model_from_metadata",
    "normalize_key",
    "parse_unit",
    "resolve_display_name",
    "resolve_quantity",
    "scan_for_unit",
    "to_number",
    "value_for_unit",
    # Configuration
    "configure_logging",
    "load_settings",
]
