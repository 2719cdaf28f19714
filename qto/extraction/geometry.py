"""Bounding-box geometry: IFC extraction and quantity estimation.

When a model carries no explicit area/length/volume properties the engine
approximates the quantity from the element's axis-aligned bounding box.
This is deliberately crude (no solid booleans) but keeps every lookup total.
"""

from __future__ import annotations

import logging
from typing import Any

import ifcopenshell
import ifcopenshell.geom

from qto.models.element import BoundingBox, UnitCode

logger = logging.getLogger(__name__)

_HORIZONTAL_KEYWORDS = ("slab", "floor", "roof", "ceiling")
_OPENING_KEYWORDS = ("window", "door")


def geometry_settings() -> Any:
    """Return ifcopenshell geometry settings."""
    settings = ifcopenshell.geom.settings()
    settings.set("use-world-coords", True)
    return settings


def _area(dx: float, dy: float, dz: float, category: str) -> float:
    kind = category.lower()
    if "wall" in kind:
        return max(dx, dz) * dy
    if any(word in kind for word in _HORIZONTAL_KEYWORDS):
        return dx * dz
    if any(word in kind for word in _OPENING_KEYWORDS):
        return max(dx * dy, dz * dy)
    return max(dx * dy, dx * dz, dy * dz)


def estimate_from_geometry(
    bounding_box: BoundingBox | None,
    category: str,
    unit: UnitCode,
) -> float:
    """Approximate a quantity in *unit* from *bounding_box*.

    Returns 1 when there is no box, for COUNT, and for MASS (which has no
    geometric estimate).  Area uses per-category face heuristics; length
    ignores the y axis.
    """
    unit = UnitCode(unit)
    if unit is UnitCode.COUNT or bounding_box is None:
        return 1.0

    dims = bounding_box.dimensions()
    dx, dy, dz = dims.dx, dims.dy, dims.dz

    if unit is UnitCode.AREA:
        return _area(dx, dy, dz, category or "")
    if unit is UnitCode.LENGTH:
        return max(dx, dz)
    if unit is UnitCode.VOLUME:
        return dx * dy * dz
    return 1.0


def bounding_box_from_ifc(
    element: ifcopenshell.entity_instance,
    settings: Any | None = None,
) -> BoundingBox | None:
    """Return the world-coordinate bounding box of *element*, or None.

    Uses ifcopenshell's geometry kernel on the element's triangulated shape.
    """
    if getattr(element, "Representation", None) is None:
        return None

    try:
        shape = ifcopenshell.geom.create_shape(settings or geometry_settings(), element)
        verts = shape.geometry.verts
        if not verts:
            return None

        xs = verts[0::3]
        ys = verts[1::3]
        zs = verts[2::3]

        return BoundingBox(
            min_x=min(xs),
            min_y=min(ys),
            min_z=min(zs),
            max_x=max(xs),
            max_y=max(ys),
            max_z=max(zs),
        )
    except Exception:
        logger.debug("Geometry extraction failed for %s", element.GlobalId, exc_info=True)
        return None
