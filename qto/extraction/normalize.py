"""Key normalization and numeric coercion for loosely-typed model metadata."""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any

_SEPARATORS = re.compile(r"[\s_\-.]")
_NUMBER = re.compile(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")

# Wrapper fields probed, in order, when a value is a nested object
_WRAPPER_KEYS = ("value", "Value", "val", "Val", "NominalValue")


def normalize_key(name: Any) -> str:
    """Canonicalize a property name for comparison.

    ``"Superfície Neta"``, ``"superficie_neta"`` and ``"SUPERFICIE-NETA"``
    all become ``"superficieneta"``.
    """
    if name is None:
        return ""
    text = unicodedata.normalize("NFD", str(name).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _SEPARATORS.sub("", text)


def normalized_set(names: Iterable[str]) -> frozenset[str]:
    return frozenset(normalize_key(n) for n in names)


def to_number(value: Any) -> float | None:
    """Extract a finite number from *value*, or return None.

    Strings are read with a decimal comma (``"12,5 m2"`` -> 12.5) and only
    the first numeric token counts.  Nested wrappers such as
    ``{"value": "7"}`` are unwrapped recursively.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        match = _NUMBER.search(value.replace(",", ".", 1))
        if match is None:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None
    if isinstance(value, Mapping):
        for key in _WRAPPER_KEYS:
            if key in value:
                number = to_number(value[key])
                if number is not None:
                    return number
    return None


def to_text(value: Any) -> str:
    """Return a trimmed string for *value*, unwrapping ``value``/``Value``."""
    if value is None:
        return ""
    if isinstance(value, Mapping):
        value = value.get("value", value.get("Value"))
        if value is None or isinstance(value, Mapping):
            return ""
    return str(value).strip()
