"""MeasurementCache interface and the default in-memory implementation."""

from __future__ import annotations

import abc
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from qto.models.element import ElementTypeConfig, MeasurementLine, UnitCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """Identity of one aggregation: (category, type name, unit)."""

    category: str
    type_name: str
    unit: UnitCode

    @classmethod
    def for_config(cls, config: ElementTypeConfig) -> CacheKey:
        return cls(config.category, config.type_name, config.preferred_unit)


class MeasurementCache(abc.ABC):
    """Abstract store of aggregated measurement lines."""

    @abc.abstractmethod
    def get(self, key: CacheKey) -> tuple[MeasurementLine, ...] | None:
        """Return the lines cached under *key*, or None on a miss."""

    @abc.abstractmethod
    def put(self, key: CacheKey, lines: Sequence[MeasurementLine]) -> None:
        """Store *lines* under *key*, replacing any previous entry."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    @abc.abstractmethod
    def __len__(self) -> int: ...


class InMemoryMeasurementCache(MeasurementCache):
    """Dict-backed cache; reads and writes are serialized by a lock."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, tuple[MeasurementLine, ...]] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> tuple[MeasurementLine, ...] | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, lines: Sequence[MeasurementLine]) -> None:
        entry = tuple(lines)
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries = {}
        if dropped:
            logger.debug("Cleared %d cached measurement entries", dropped)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
