"""Metadata extraction: key normalization, property scanning, geometry, loaders."""

from qto.extraction.annotations import extract_comment
from qto.extraction.geometry import estimate_from_geometry
from qto.extraction.loader import load_ifc_model, model_from_metadata
from qto.extraction.normalize import normalize_key, to_number
from qto.extraction.properties import scan_for_unit

__all__ = [
    "estimate_from_geometry",
    "extract_comment",
    "load_ifc_model",
    "model_from_metadata",
    "normalize_key",
    "scan_for_unit",
    "to_number",
]
