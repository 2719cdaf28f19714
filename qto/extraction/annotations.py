"""Find a free-text note (comments, description, mark...) on an element."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from qto.config import COMMENT_FRAGMENTS
from qto.extraction.normalize import normalize_key
from qto.models.element import ElementInstance

logger = logging.getLogger(__name__)

_FRAGMENTS = tuple(normalize_key(f) for f in COMMENT_FRAGMENTS)


def _is_comment_key(key: Any) -> bool:
    name = normalize_key(key)
    return any(fragment in name for fragment in _FRAGMENTS)


def _text(value: Any) -> str | None:
    if isinstance(value, Mapping):
        value = value.get("value") or value.get("Value")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_comment(instance: ElementInstance) -> str | None:
    """Return the first non-empty note found on *instance*, or None.

    Searches the flat attributes, then every property set, then the flat
    ``properties`` map.
    """
    for key, value in instance.attributes.items():
        if _is_comment_key(key):
            text = _text(value)
            if text:
                logger.debug("Comment for %s from attribute %s", instance.id, key)
                return text

    for pset in instance.property_sets:
        for prop in pset.properties:
            if _is_comment_key(prop.name):
                raw = prop.value if prop.value is not None else prop.ifc_nominal_value
                if raw is None:
                    raw = prop.nominal_value
                text = _text(raw)
                if text:
                    logger.debug(
                        "Comment for %s from %s.%s", instance.id, pset.name, prop.name
                    )
                    return text

    for key, value in instance.properties.items():
        if _is_comment_key(key):
            text = _text(value)
            if text:
                return text

    return None
