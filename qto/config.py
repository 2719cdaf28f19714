"""Global configuration: constants, vocabularies, settings."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

# IFC classes loaded from IFC files.
# Using the base class captures all subtypes (IfcWall, IfcDoor, IfcSlab, etc.)
ELEMENT_BASE_CLASS = "IfcElement"

# Display name used when an instance has no reference, name or type
UNKNOWN_TYPE_NAME = "Unknown"

# Substrings (normalized) identifying authoritative quantity sets
QUANTITY_SET_MARKERS = ("basequantities", "quantities")

# Property-name synonyms per measured unit (normalized when the sets are built)
AREA_KEYS = (
    "netarea",
    "grossarea",
    "area",
    "superficie",
    "netsidearea",
    "grosssidearea",
    "netsurfacearea",
    "grosssurfacearea",
    "outersurfacearea",
    "totalsurfacearea",
)
LENGTH_KEYS = (
    "length",
    "longitud",
    "len",
    "altura",
    "height",
    "width",
    "anchura",
    "profundidad",
    "depth",
)
VOLUME_KEYS = ("netvolume", "grossvolume", "volume", "volumen", "vol")
MASS_KEYS = ("mass", "massa", "masa", "weight", "peso", "pes")

# Fragments identifying free-text note fields (Revit/IFC conventions)
COMMENT_FRAGMENTS = (
    "comentarios",
    "comments",
    "comentaris",
    "descripcion",
    "descripció",
    "description",
    "remarks",
    "notes",
    "note",
    "tag",
    "mark",
)

# Classification keys used by the measurement status overview
CHAPTER_KEYS = (
    "chapter",
    "capitol",
    "capitulo",
    "capítulo",
    "uniformat",
    "uniclass",
    "csi",
    "assemblycode",
    "assembly",
    "keynote",
    "notaclave",
    "nota clave",
    "partida",
    "capitolid",
    "capitolcode",
)
SUBCHAPTER_KEYS = (
    "subchapter",
    "subcapitol",
    "subcapitulo",
    "subcapítulo",
    "subcategory",
    "assemblydescription",
    "assembly description",
    "partidatitol",
    "partida titulo",
    "subcapitolid",
    "subcapitolcode",
)

# Category prefix -> chapter label when the model carries no classification
DEFAULT_CHAPTERS = (
    ("ifcwall", "01 · Walls"),
    ("ifcslab", "02 · Slabs / Floors"),
    ("ifcroof", "03 · Roofs"),
    ("ifcwindow", "04 · Windows"),
    ("ifcdoor", "05 · Doors"),
    ("ifccolumn", "06 · Columns"),
    ("ifcbeam", "07 · Beams"),
)
FALLBACK_CHAPTER = "99 · Others"
NO_SUBCHAPTER = "—"

# Environment keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "QTO_LOG_LEVEL": {"default": "WARNING", "description": "Logging level"},
    "QTO_ELEMENT_BASE_CLASS": {
        "default": ELEMENT_BASE_CLASS,
        "description": "IFC class loaded from IFC files",
    },
    "QTO_IFC_GEOMETRY": {
        "default": "true",
        "description": "Compute bounding boxes when loading IFC files",
    },
}


def load_settings(env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Resolve every known configuration key from *env* (default: os.environ)."""
    source = os.environ if env is None else env
    return {
        key: source.get(key, spec["default"]) for key, spec in _CONFIG_KEYS.items()
    }


def setting_enabled(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a stream handler to the ``qto`` logger.

    *level* defaults to ``QTO_LOG_LEVEL``.  Calling this twice does not
    duplicate handlers.
    """
    if level is None:
        level = load_settings()["QTO_LOG_LEVEL"]
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger("qto")
    root.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(handler)
    return root
