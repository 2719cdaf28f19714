"""BuildingModel — read-only snapshot of a loaded model's element instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from qto.models.element import ElementInstance

logger = logging.getLogger(__name__)


class BuildingModel:
    """Ordered collection of element instances, keyed by id.

    A model is never patched: loading a new file produces a new
    ``BuildingModel``, which is what engines watch to drop their caches.

    Parameters
    ----------
    instances:
        Element instances in source order.  Later duplicates of an id are
        ignored.
    source:
        Free-form label of where the model came from (file path, viewer id).
    """

    def __init__(
        self,
        instances: Iterable[ElementInstance] = (),
        source: str = "",
    ) -> None:
        self.source = source
        self._instances: dict[str, ElementInstance] = {}
        for inst in instances:
            if inst.id in self._instances:
                logger.warning("Duplicate instance id %s ignored", inst.id)
                continue
            self._instances[inst.id] = inst

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        source: str = "",
    ) -> BuildingModel:
        """Build a model from raw instance dicts, skipping unusable records."""
        instances: list[ElementInstance] = []
        for record in records:
            try:
                instances.append(ElementInstance.model_validate(record))
            except ValidationError:
                logger.warning("Skipping malformed instance record", exc_info=True)
        return cls(instances, source=source)

    def instances(self) -> Iterator[ElementInstance]:
        return iter(self._instances.values())

    def get(self, instance_id: str) -> ElementInstance | None:
        return self._instances.get(instance_id)

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        return list(dict.fromkeys(inst.category for inst in self._instances.values()))

    def __iter__(self) -> Iterator[ElementInstance]:
        return self.instances()

    def __len__(self) -> int:
        return len(self._instances)

    def __repr__(self) -> str:
        return f"BuildingModel(source={self.source!r}, instances={len(self)})"
