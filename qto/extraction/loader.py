"""Model loaders: IFC files and viewer metadata JSON -> BuildingModel.

Entry points: ``load_ifc_model(ifc_path)`` and ``model_from_metadata(data)``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import ifcopenshell
from pydantic import ValidationError

from qto.config import load_settings, setting_enabled
from qto.extraction.geometry import bounding_box_from_ifc, geometry_settings
from qto.extraction.properties import psets_from_ifc
from qto.models.element import ElementInstance
from qto.models.model import BuildingModel

logger = logging.getLogger(__name__)

_IFC_ATTRIBUTES = ("Name", "Description", "ObjectType", "Tag")


def _safe_str(value: object) -> str | None:
    """Convert an IFC attribute to a JSON-safe string, or None."""
    if value is None:
        return None
    return str(value)


def _instance_from_ifc(
    element: ifcopenshell.entity_instance,
    shape_settings: Any | None,
) -> ElementInstance:
    """Extract the takeoff view of one IFC element."""
    attributes: dict[str, Any] = {}
    for attr in _IFC_ATTRIBUTES:
        value = _safe_str(getattr(element, attr, None))
        if value:
            attributes[attr] = value

    bbox = None
    if shape_settings is not None:
        bbox = bounding_box_from_ifc(element, shape_settings)

    return ElementInstance(
        id=element.GlobalId,
        category=element.is_a(),
        name=element.Name,
        property_sets=psets_from_ifc(element),
        attributes=attributes,
        bounding_box=bbox,
    )


def load_ifc_model(
    ifc_path: str | Path,
    *,
    with_geometry: bool | None = None,
) -> BuildingModel:
    """Parse an IFC file into a BuildingModel.

    Parameters
    ----------
    ifc_path:
        Path to an IFC2x3 or IFC4 file.
    with_geometry:
        Compute bounding boxes with the geometry kernel.  Defaults to the
        ``QTO_IFC_GEOMETRY`` setting.

    Returns
    -------
    BuildingModel
        One instance per element of the configured base class.  Elements
        that fail to extract are logged and skipped.
    """
    settings = load_settings()
    if with_geometry is None:
        with_geometry = setting_enabled(settings["QTO_IFC_GEOMETRY"])
    base_class = settings["QTO_ELEMENT_BASE_CLASS"]

    ifc_path = Path(ifc_path)
    logger.info("Opening %s", ifc_path)
    ifc_file = ifcopenshell.open(str(ifc_path))

    shape_settings = geometry_settings() if with_geometry else None
    entities = ifc_file.by_type(base_class)
    logger.info("Found %d %s instances", len(entities), base_class)

    instances: list[ElementInstance] = []
    for entity in entities:
        try:
            instances.append(_instance_from_ifc(entity, shape_settings))
        except Exception:
            logger.warning(
                "Skipping element %s (%s) due to error",
                entity.GlobalId,
                entity.is_a(),
                exc_info=True,
            )

    logger.info("Loaded %d instances from %s", len(instances), ifc_path)
    return BuildingModel(instances, source=str(ifc_path))


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def model_from_metadata(
    data: Mapping[str, Any] | str | Path,
    aabbs: Mapping[str, Any] | None = None,
    source: str = "",
) -> BuildingModel:
    """Build a BuildingModel from viewer metadata JSON.

    *data* holds ``metaObjects`` (list or id-keyed mapping) and optionally a
    shared ``propertySets`` list referenced by each object's
    ``propertySetIds``.  Objects may also carry inline ``propertySets``.
    *aabbs* maps object ids to six-float bounding boxes, since the metadata
    graph itself has no geometry.
    """
    if isinstance(data, (str, Path)):
        path = Path(data)
        source = source or str(path)
        data = json.loads(path.read_text(encoding="utf-8"))

    shared_psets: dict[str, Any] = {}
    for pset in _as_list(data.get("propertySets")):
        if isinstance(pset, Mapping) and pset.get("id") is not None:
            shared_psets[str(pset["id"])] = pset

    aabbs = aabbs or {}
    instances: list[ElementInstance] = []
    for raw in _as_list(data.get("metaObjects")):
        if not isinstance(raw, Mapping) or raw.get("id") is None:
            continue
        record = dict(raw)
        psets = _as_list(record.get("propertySets"))
        for pset_id in _as_list(record.get("propertySetIds")):
            pset = shared_psets.get(str(pset_id))
            if pset is not None:
                psets.append(pset)
        record["propertySets"] = psets
        box = aabbs.get(str(record["id"]))
        if box is not None:
            record["aabb"] = box
        try:
            instances.append(ElementInstance.model_validate(record))
        except ValidationError:
            logger.warning("Skipping malformed metaObject %s", record.get("id"), exc_info=True)

    logger.info("Loaded %d instances from metadata", len(instances))
    return BuildingModel(instances, source=source)
