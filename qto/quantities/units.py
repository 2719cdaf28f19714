"""Unit vocabulary and per-unit quantity resolution."""

from __future__ import annotations

import logging
import math

from qto.config import AREA_KEYS, LENGTH_KEYS, MASS_KEYS, VOLUME_KEYS
from qto.extraction.geometry import estimate_from_geometry
from qto.extraction.normalize import normalized_set
from qto.extraction.properties import scan_for_unit
from qto.models.element import ElementInstance, QuantitySource, UnitCode

logger = logging.getLogger(__name__)

AREA_SYNONYMS = normalized_set(AREA_KEYS)
LENGTH_SYNONYMS = normalized_set(LENGTH_KEYS)
VOLUME_SYNONYMS = normalized_set(VOLUME_KEYS)
MASS_SYNONYMS = normalized_set(MASS_KEYS)

UNIT_SYNONYMS: dict[UnitCode, frozenset[str]] = {
    UnitCode.AREA: AREA_SYNONYMS,
    UnitCode.LENGTH: LENGTH_SYNONYMS,
    UnitCode.VOLUME: VOLUME_SYNONYMS,
    UnitCode.MASS: MASS_SYNONYMS,
}


def parse_unit(value: str | UnitCode) -> UnitCode:
    """Resolve a unit name or budget code (``"M2"``, ``"area"``...).

    Raises ValueError for anything outside the vocabulary.
    """
    if isinstance(value, UnitCode):
        return value
    return UnitCode(value)


def resolve_quantity(
    instance: ElementInstance,
    unit: UnitCode,
) -> tuple[float, QuantitySource]:
    """Return ``(value, source)`` for *instance* measured in *unit*.

    Properties win when they hold a positive value; otherwise the
    bounding box is used, and 1 stands in when there is nothing to measure
    or the estimate overflows.
    """
    unit = parse_unit(unit)
    if unit is UnitCode.COUNT:
        return 1.0, QuantitySource.COUNT

    value = scan_for_unit(instance, UNIT_SYNONYMS[unit])
    if value is not None and value > 0:
        return value, QuantitySource.PROPERTY

    estimate = estimate_from_geometry(instance.bounding_box, instance.category, unit)
    if not math.isfinite(estimate):
        logger.warning(
            "Bounding box of %s overflows a %s estimate; using 1", instance.id, unit.value
        )
        return 1.0, QuantitySource.DEFAULT
    if instance.bounding_box is None or unit is UnitCode.MASS:
        source = QuantitySource.DEFAULT
    else:
        source = QuantitySource.GEOMETRY
    logger.debug(
        "No %s property on %s; using %s value %.4f",
        unit.value,
        instance.id,
        source.value,
        estimate,
    )
    return estimate, source


def value_for_unit(instance: ElementInstance, unit: UnitCode) -> float:
    """Return the quantity of *instance* in *unit*.  Never None."""
    return resolve_quantity(instance, unit)[0]
