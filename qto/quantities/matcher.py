"""Match element instances to element-type configurations."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel

from qto.config import UNKNOWN_TYPE_NAME
from qto.extraction.normalize import normalize_key, to_text
from qto.models.element import ElementInstance

logger = logging.getLogger(__name__)

_REFERENCE_KEY = "reference"


class ElementTypeSummary(BaseModel):
    """A distinct (category, type name) pair present in a model."""

    category: str
    type_name: str
    count: int = 0


def resolve_display_name(instance: ElementInstance) -> str:
    """Return the type label of *instance*.

    Precedence: a ``Reference`` property, the instance name, its category
    (the model's type attribute), then ``"Unknown"``.
    """
    for pset in instance.property_sets:
        for prop in pset.properties:
            if normalize_key(prop.name) == _REFERENCE_KEY:
                text = to_text(prop.value)
                if text:
                    return text
    if instance.name:
        return instance.name
    if instance.category:
        return instance.category
    return UNKNOWN_TYPE_NAME


def find_instances(
    model: Iterable[ElementInstance],
    category: str,
    type_name: str,
) -> list[ElementInstance]:
    """Return instances of *category* whose display name is exactly *type_name*."""
    matched = [
        inst
        for inst in model
        if inst.category == category and resolve_display_name(inst) == type_name
    ]
    logger.debug("%d instances match %s / %s", len(matched), category, type_name)
    return matched


def list_element_types(model: Iterable[ElementInstance]) -> list[ElementTypeSummary]:
    """Distinct (category, display name) pairs with instance counts, first-seen order."""
    counts: dict[tuple[str, str], int] = {}
    for inst in model:
        key = (inst.category, resolve_display_name(inst))
        counts[key] = counts.get(key, 0) + 1
    return [
        ElementTypeSummary(category=category, type_name=type_name, count=count)
        for (category, type_name), count in counts.items()
    ]
