"""Scan property sets (Psets/Qtos) for unit quantities and classification values."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import ifcopenshell
import ifcopenshell.util.element

from qto.config import QUANTITY_SET_MARKERS
from qto.extraction.normalize import normalize_key, to_number, to_text
from qto.models.element import ElementInstance, Property, PropertySet

logger = logging.getLogger(__name__)


def _is_quantity_set(pset: PropertySet) -> bool:
    name = normalize_key(pset.name)
    return any(marker in name for marker in QUANTITY_SET_MARKERS)


def _generic_number(prop: Property) -> float | None:
    raw = prop.value if prop.value is not None else prop.ifc_nominal_value
    return to_number(raw)


def _authoritative_number(prop: Property) -> float | None:
    """Coerce a quantity-set property, honouring both nominal value spellings."""
    raw = prop.value
    if raw is None:
        raw = prop.nominal_value if prop.nominal_value is not None else prop.ifc_nominal_value
    number = to_number(raw)
    if number is None and isinstance(raw, Mapping) and "nominalValue" in raw:
        number = to_number(raw["nominalValue"])
    return number


def scan_for_unit(instance: ElementInstance, synonyms: frozenset[str]) -> float | None:
    """Return the first positive quantity whose property name is in *synonyms*.

    The generic pass over every property set runs first; quantity sets
    (``BaseQuantities``, ``Qto_*Quantities``) are only consulted when it
    finds nothing, so a generic match shadows an authoritative one.
    Zero and negative values are treated as absent.
    """
    for pset in instance.property_sets:
        for prop in pset.properties:
            if normalize_key(prop.name) in synonyms:
                number = _generic_number(prop)
                if number is not None and number > 0:
                    return number

    for pset in instance.property_sets:
        if not _is_quantity_set(pset):
            continue
        for prop in pset.properties:
            if normalize_key(prop.name) in synonyms:
                number = _authoritative_number(prop)
                if number is not None and number > 0:
                    logger.debug(
                        "Quantity for %s found in %s.%s", instance.id, pset.name, prop.name
                    )
                    return number

    return None


def first_property_text(instance: ElementInstance, keys: frozenset[str]) -> str:
    """Return the first non-empty text value whose normalized name is in *keys*.

    Looks in property sets, then in the flat ``attributes`` map.
    """
    for pset in instance.property_sets:
        for prop in pset.properties:
            if normalize_key(prop.name) in keys:
                text = to_text(prop.value)
                if text:
                    return text
    for key, value in instance.attributes.items():
        if normalize_key(key) in keys:
            text = to_text(value)
            if text:
                return text
    return ""


def psets_from_ifc(element: ifcopenshell.entity_instance) -> list[PropertySet]:
    """Return all property and quantity sets of *element*, in IFC order.

    Values that are IFC entity references are converted to their string
    representation.
    """
    try:
        raw = ifcopenshell.util.element.get_psets(element)
    except Exception:
        logger.debug("Pset extraction failed for %s", element.GlobalId, exc_info=True)
        return []

    psets: list[PropertySet] = []
    for pset_name, props in raw.items():
        properties: list[Property] = []
        for k, v in props.items():
            if k == "id":
                # Internal ifcopenshell id
                continue
            properties.append(Property(name=k, value=_plain_value(v)))
        psets.append(PropertySet(name=pset_name, properties=properties))
    return psets


def _plain_value(value: Any) -> Any:
    if isinstance(value, ifcopenshell.entity_instance):
        return str(value)
    if isinstance(value, tuple):
        return [_plain_value(v) for v in value]
    return value
