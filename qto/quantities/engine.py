"""MeasurementEngine — main entry point for per-type quantity takeoff.

Usage::

    from qto.quantities import MeasurementEngine

    engine = MeasurementEngine()
    engine.load_ifc("building.ifc")
    lines = engine.measurements_for(config)
    report = engine.report_for(config)
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from qto.extraction.annotations import extract_comment
from qto.extraction.loader import load_ifc_model
from qto.models.element import ElementInstance, ElementTypeConfig, MeasurementLine
from qto.models.model import BuildingModel
from qto.quantities.cache import CacheKey, InMemoryMeasurementCache, MeasurementCache
from qto.quantities.matcher import find_instances
from qto.quantities.report import MeasurementReport
from qto.quantities.units import resolve_quantity

logger = logging.getLogger(__name__)


class MeasurementEngine:
    """Aggregate measurement lines for element-type configurations.

    Parameters
    ----------
    model:
        The loaded building model, if any.
    cache:
        Measurement cache.  Defaults to an in-memory cache.  It is cleared
        whenever a different model is loaded.
    """

    def __init__(
        self,
        model: BuildingModel | None = None,
        cache: MeasurementCache | None = None,
    ) -> None:
        self.cache = cache if cache is not None else InMemoryMeasurementCache()
        self._model = model
        # Held for a whole aggregation so a reload never interleaves with one
        self._lock = threading.RLock()

    @property
    def model(self) -> BuildingModel | None:
        return self._model

    @model.setter
    def model(self, model: BuildingModel | None) -> None:
        self.load_model(model)

    def load_model(self, model: BuildingModel | None) -> None:
        """Replace the model and drop every cached measurement."""
        with self._lock:
            self._model = model
            self.cache.clear()
        logger.info("Model replaced (%s); measurement cache cleared", model)

    def load_ifc(self, ifc_path: str | Path, *, with_geometry: bool | None = None) -> BuildingModel:
        """Load an IFC file as the current model."""
        model = load_ifc_model(ifc_path, with_geometry=with_geometry)
        self.load_model(model)
        return model

    def invalidate(self) -> None:
        """Drop every cached measurement without changing the model."""
        with self._lock:
            self.cache.clear()

    def measurements_for(self, config: ElementTypeConfig) -> tuple[MeasurementLine, ...]:
        """Return one measurement line per instance matching *config*.

        Manual configurations and a missing model yield an empty tuple and
        leave the cache untouched.  Results are cached per
        (category, type name, unit) until the model changes.
        """
        if config.is_manual:
            return ()

        with self._lock:
            model = self._model
            if model is None:
                return ()

            key = CacheKey.for_config(config)
            cached = self.cache.get(key)
            if cached is not None:
                return cached

            try:
                instances = find_instances(model, config.category, config.type_name)
            except Exception:
                logger.warning(
                    "Model unavailable while matching %s / %s",
                    config.category,
                    config.type_name,
                    exc_info=True,
                )
                return ()

            lines = tuple(self._measure(inst, config) for inst in instances)
            self.cache.put(key, lines)
            logger.debug(
                "Measured %d instances for %s / %s in %s",
                len(lines),
                config.category,
                config.type_name,
                config.preferred_unit.value,
            )
            return lines

    def report_for(self, config: ElementTypeConfig) -> MeasurementReport:
        """Return a MeasurementReport wrapping ``measurements_for(config)``."""
        return MeasurementReport(config=config, lines=self.measurements_for(config))

    @staticmethod
    def _measure(instance: ElementInstance, config: ElementTypeConfig) -> MeasurementLine:
        value, source = resolve_quantity(instance, config.preferred_unit)
        return MeasurementLine(
            instance_id=instance.id,
            display_name=instance.name or instance.id,
            value=abs(value),
            bounding_box_dimensions=instance.box_dimensions(),
            comment=extract_comment(instance),
            source=source,
        )
