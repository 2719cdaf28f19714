"""ElementInstance — one element of a building model, as seen by the takeoff engine.

The source model is an external, uncontrolled format, so every model here
validates leniently: alternative key spellings are accepted, malformed
bounding boxes are dropped and missing collections become empty.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

# Raw property values: Number | Text | Nested wrapper (plus the odd list/bool)
PropertyValue = Union[bool, int, float, str, dict[str, Any], list[Any], None]


class UnitCode(str, Enum):
    """Closed unit vocabulary for budget line items."""

    COUNT = "COUNT"
    LENGTH = "LENGTH"
    AREA = "AREA"
    VOLUME = "VOLUME"
    MASS = "MASS"

    @classmethod
    def _missing_(cls, value: object) -> UnitCode | None:
        if not isinstance(value, str):
            return None
        key = value.strip().upper()
        if key in cls.__members__:
            return cls[key]
        return _UNIT_ALIASES.get(key)

    @property
    def budget_code(self) -> str:
        """Short code used on budget documents (UT, ML, M2, M3, KG)."""
        return _BUDGET_CODES[self]


_UNIT_ALIASES: dict[str, UnitCode] = {
    "UT": UnitCode.COUNT,
    "U": UnitCode.COUNT,
    "UD": UnitCode.COUNT,
    "ML": UnitCode.LENGTH,
    "M": UnitCode.LENGTH,
    "M2": UnitCode.AREA,
    "M3": UnitCode.VOLUME,
    "KG": UnitCode.MASS,
}

_BUDGET_CODES: dict[UnitCode, str] = {
    UnitCode.COUNT: "UT",
    UnitCode.LENGTH: "ML",
    UnitCode.AREA: "M2",
    UnitCode.VOLUME: "M3",
    UnitCode.MASS: "KG",
}


class QuantitySource(str, Enum):
    """Where a measured value came from."""

    COUNT = "count"
    PROPERTY = "property"
    GEOMETRY = "geometry"
    DEFAULT = "default"


class BoxDimensions(BaseModel):
    """Extents of a bounding box along each axis."""

    model_config = ConfigDict(frozen=True)

    dx: float = Field(default=0.0, ge=0.0)
    dy: float = Field(default=0.0, ge=0.0)
    dz: float = Field(default=0.0, ge=0.0)


class BoundingBox(BaseModel):
    """Axis-aligned bounding box.

    Accepts either named coordinates or the six-float form
    ``[min_x, min_y, min_z, max_x, max_y, max_z]``.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    min_x: float = 0.0
    min_y: float = 0.0
    min_z: float = 0.0
    max_x: float = 0.0
    max_y: float = 0.0
    max_z: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 6:
                raise ValueError(f"expected 6 coordinates, got {len(data)}")
            keys = ("min_x", "min_y", "min_z", "max_x", "max_y", "max_z")
            return dict(zip(keys, data))
        return data

    def dimensions(self) -> BoxDimensions:
        return BoxDimensions(
            dx=abs(self.max_x - self.min_x),
            dy=abs(self.max_y - self.min_y),
            dz=abs(self.max_z - self.min_z),
        )


class Property(BaseModel):
    """A single name/value pair inside a property set."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", validation_alias=AliasChoices("name", "Name"))
    value: PropertyValue = Field(
        default=None, validation_alias=AliasChoices("value", "Value")
    )
    nominal_value: PropertyValue = Field(
        default=None, validation_alias=AliasChoices("nominal_value", "nominalValue")
    )
    # IFC attribute spelling; generic readers also honour this one
    ifc_nominal_value: PropertyValue = Field(
        default=None, validation_alias=AliasChoices("ifc_nominal_value", "NominalValue")
    )

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class PropertySet(BaseModel):
    """A named, ordered group of properties (Pset or Qto)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", validation_alias=AliasChoices("name", "Name"))
    properties: list[Property] = Field(
        default_factory=list, validation_alias=AliasChoices("properties", "Properties")
    )

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("properties", mode="before")
    @classmethod
    def _drop_malformed(cls, v: Any) -> list[Any]:
        if not isinstance(v, (list, tuple)):
            return []
        return [p for p in v if isinstance(p, (Mapping, Property))]


class ElementInstance(BaseModel):
    """One physical or logical element of the building model.

    ``category`` is the model's type discriminator (``IfcWall``,
    ``IfcDoor``...).  ``attributes`` and ``properties`` are two flat maps
    that some exporters populate instead of, or alongside, property sets.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    category: str = Field(default="", validation_alias=AliasChoices("category", "type"))
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "Name"))
    property_sets: list[PropertySet] = Field(
        default_factory=list,
        validation_alias=AliasChoices("property_sets", "propertySets"),
    )
    attributes: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("attributes", "props")
    )
    properties: dict[str, Any] = Field(default_factory=dict)
    bounding_box: BoundingBox | None = Field(
        default=None,
        validation_alias=AliasChoices("bounding_box", "boundingBox", "aabb"),
    )

    @field_validator("id", "category", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("name", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("property_sets", mode="before")
    @classmethod
    def _drop_malformed_sets(cls, v: Any) -> list[Any]:
        if not isinstance(v, (list, tuple)):
            return []
        return [ps for ps in v if isinstance(ps, (Mapping, PropertySet))]

    @field_validator("attributes", "properties", mode="before")
    @classmethod
    def _mapping_or_empty(cls, v: Any) -> dict[str, Any]:
        if isinstance(v, Mapping):
            return dict(v)
        return {}

    @field_validator("bounding_box", mode="before")
    @classmethod
    def _lenient_box(cls, v: Any) -> Any:
        if v is None or isinstance(v, BoundingBox):
            return v
        try:
            return BoundingBox.model_validate(v)
        except ValidationError:
            logger.debug("Dropping malformed bounding box %r", v)
            return None

    def box_dimensions(self) -> BoxDimensions | None:
        if self.bounding_box is None:
            return None
        return self.bounding_box.dimensions()


class ElementTypeConfig(BaseModel):
    """Budget-line descriptor grouping instances by category and type name."""

    category: str = Field(validation_alias=AliasChoices("category", "ifc_category"))
    type_name: str = Field(validation_alias=AliasChoices("type_name", "typeName"))
    preferred_unit: UnitCode = Field(
        default=UnitCode.COUNT,
        validation_alias=AliasChoices("preferred_unit", "preferredUnit"),
    )
    is_manual: bool = Field(
        default=False, validation_alias=AliasChoices("is_manual", "isManual")
    )

    @field_validator("preferred_unit", mode="before")
    @classmethod
    def _unit_alias(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, UnitCode):
            return UnitCode(v)
        return v


class MeasurementLine(BaseModel):
    """One computed quantity row for a single element instance."""

    model_config = ConfigDict(frozen=True)

    instance_id: str
    display_name: str
    value: float = Field(ge=0.0, allow_inf_nan=False)
    bounding_box_dimensions: BoxDimensions | None = None
    comment: str | None = None
    source: QuantitySource = QuantitySource.PROPERTY

    @property
    def approximate(self) -> bool:
        """True when the value is an estimate rather than a model quantity."""
        return self.source in (QuantitySource.GEOMETRY, QuantitySource.DEFAULT)
