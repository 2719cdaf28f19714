"""Tests for the qto extraction layer.

Covers the property-set scanner, the geometric fallback, the comment
extractor, and both model loaders.  IFC tests build a synthetic file
in-memory with ifcopenshell's API.
"""

from __future__ import annotations

import json
from pathlib import Path

import ifcopenshell
import ifcopenshell.api
import pytest

from qto.extraction.annotations import extract_comment
from qto.extraction.geometry import bounding_box_from_ifc, estimate_from_geometry
from qto.extraction.loader import load_ifc_model, model_from_metadata
from qto.extraction.properties import first_property_text, psets_from_ifc, scan_for_unit
from qto.extraction.normalize import normalized_set
from qto.models.element import BoundingBox, ElementInstance, UnitCode
from qto.quantities.matcher import resolve_display_name
from qto.quantities.units import AREA_SYNONYMS, MASS_SYNONYMS, VOLUME_SYNONYMS


def _instance(**kwargs) -> ElementInstance:
    kwargs.setdefault("id", "e1")
    kwargs.setdefault("category", "IfcWall")
    return ElementInstance.model_validate(kwargs)


BOX = [0.0, 0.0, 0.0, 2.0, 0.3, 3.0]  # dx=2, dy=0.3, dz=3


# ---------------------------------------------------------------------------
# Fixtures: synthetic IFC files
# ---------------------------------------------------------------------------


def _build_minimal_ifc() -> ifcopenshell.file:
    """Return an IFC4 file with one wall, one door, and one slab.

    The wall has Pset_WallCommon (with a Reference) and a base quantity set.
    The door carries a Tag and a Description.  The slab has no data.
    """
    f = ifcopenshell.file(schema="IFC4")

    proj = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcProject", name="SyntheticProject"
    )
    site = ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcSite", name="TestSite")
    building = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcBuilding", name="TestBuilding"
    )
    storey = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcBuildingStorey", name="Level 1"
    )
    ifcopenshell.api.run("aggregate.assign_object", f, products=[site], relating_object=proj)
    ifcopenshell.api.run(
        "aggregate.assign_object", f, products=[building], relating_object=site
    )
    ifcopenshell.api.run(
        "aggregate.assign_object", f, products=[storey], relating_object=building
    )

    # --- Wall ---
    wall = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcWall", name="ExteriorWall"
    )
    ifcopenshell.api.run(
        "spatial.assign_container", f, products=[wall], relating_structure=storey
    )
    pset = ifcopenshell.api.run("pset.add_pset", f, product=wall, name="Pset_WallCommon")
    ifcopenshell.api.run(
        "pset.edit_pset",
        f,
        pset=pset,
        properties={"IsExternal": True, "Reference": "EXT-200"},
    )
    qto = ifcopenshell.api.run(
        "pset.add_qto", f, product=wall, name="Qto_WallBaseQuantities"
    )
    ifcopenshell.api.run(
        "pset.edit_qto",
        f,
        qto=qto,
        properties={"NetSideArea": 12.5, "NetVolume": 2.5},
    )

    # --- Door ---
    door = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcDoor", name="EntryDoor"
    )
    door.Tag = "D-01"
    door.Description = "Main entrance"
    ifcopenshell.api.run(
        "spatial.assign_container", f, products=[door], relating_structure=storey
    )

    # --- Slab ---
    slab = ifcopenshell.api.run(
        "root.create_entity", f, ifc_class="IfcSlab", name="GroundSlab"
    )
    ifcopenshell.api.run(
        "spatial.assign_container", f, products=[slab], relating_structure=storey
    )

    return f


@pytest.fixture()
def synthetic_ifc_file() -> ifcopenshell.file:
    """Return the in-memory IFC file (no disk write needed)."""
    return _build_minimal_ifc()


@pytest.fixture()
def synthetic_ifc(tmp_path: Path, synthetic_ifc_file: ifcopenshell.file) -> Path:
    """Write the synthetic IFC4 to a temp file and return its path."""
    p = tmp_path / "synthetic.ifc"
    synthetic_ifc_file.write(str(p))
    return p


# ---------------------------------------------------------------------------
# Property-Set Scanner
# ---------------------------------------------------------------------------


class TestScanForUnit:
    def test_generic_property(self):
        inst = _instance(
            propertySets=[{"name": "Dimensions", "properties": [{"name": "Net Area", "value": "4,2"}]}]
        )
        assert scan_for_unit(inst, AREA_SYNONYMS) == pytest.approx(4.2)

    def test_generic_pass_wins_over_base_quantities(self):
        inst = _instance(
            propertySets=[
                {"name": "Dimensions", "properties": [{"name": "Area", "value": 5}]},
                {"name": "BaseQuantities", "properties": [{"name": "NetArea", "value": 8}]},
            ]
        )
        assert scan_for_unit(inst, AREA_SYNONYMS) == 5

    def test_iteration_order_decides(self):
        inst = _instance(
            propertySets=[
                {"name": "BaseQuantities", "properties": [{"name": "NetArea", "value": 8}]},
                {"name": "Dimensions", "properties": [{"name": "Area", "value": 5}]},
            ]
        )
        assert scan_for_unit(inst, AREA_SYNONYMS) == 8

    def test_zero_and_negative_are_skipped(self):
        inst = _instance(
            propertySets=[
                {
                    "name": "Dimensions",
                    "properties": [
                        {"name": "Area", "value": 0},
                        {"name": "GrossArea", "value": -3},
                        {"name": "NetArea", "value": "2"},
                    ],
                }
            ]
        )
        assert scan_for_unit(inst, AREA_SYNONYMS) == 2.0

    def test_nominal_value_in_quantity_set(self):
        inst = _instance(
            propertySets=[
                {
                    "name": "Qto_SlabBaseQuantities",
                    "properties": [{"name": "NetVolume", "NominalValue": "3,5"}],
                }
            ]
        )
        assert scan_for_unit(inst, VOLUME_SYNONYMS) == pytest.approx(3.5)

    def test_ifc_nominal_value_outside_quantity_set(self):
        inst = _instance(
            propertySets=[
                {"name": "Pset_Custom", "properties": [{"name": "NetVolume", "NominalValue": 3}]}
            ]
        )
        assert scan_for_unit(inst, VOLUME_SYNONYMS) == 3.0

    def test_ifc_nominal_value_shadows_later_quantity_set(self):
        inst = _instance(
            propertySets=[
                {"name": "Pset_Custom", "properties": [{"name": "NetVolume", "NominalValue": 3}]},
                {"name": "BaseQuantities", "properties": [{"name": "NetVolume", "value": 7}]},
            ]
        )
        assert scan_for_unit(inst, VOLUME_SYNONYMS) == 3.0

    def test_lowercase_nominal_value_only_in_quantity_set(self):
        inst = _instance(
            propertySets=[
                {"name": "Pset_Custom", "properties": [{"name": "NetVolume", "nominalValue": 3}]}
            ]
        )
        assert scan_for_unit(inst, VOLUME_SYNONYMS) is None

        inst = _instance(
            propertySets=[
                {"name": "BaseQuantities", "properties": [{"name": "NetVolume", "nominalValue": 3}]}
            ]
        )
        assert scan_for_unit(inst, VOLUME_SYNONYMS) == 3.0

    def test_nested_nominal_value_key(self):
        inst = _instance(
            propertySets=[
                {
                    "name": "BaseQuantities",
                    "properties": [{"name": "Weight", "value": {"nominalValue": 40}}],
                }
            ]
        )
        assert scan_for_unit(inst, MASS_SYNONYMS) == 40.0

    def test_no_match(self):
        inst = _instance(
            propertySets=[{"name": "Pset", "properties": [{"name": "Colour", "value": 3}]}]
        )
        assert scan_for_unit(inst, AREA_SYNONYMS) is None

    def test_no_property_sets(self):
        assert scan_for_unit(_instance(), AREA_SYNONYMS) is None


class TestFirstPropertyText:
    def test_from_property_set_then_attributes(self):
        keys = normalized_set(["chapter"])
        inst = _instance(
            propertySets=[{"name": "Classification", "properties": [{"name": "Chapter", "value": "E04"}]}],
            attributes={"chapter": "X"},
        )
        assert first_property_text(inst, keys) == "E04"

    def test_attributes_fallback(self):
        keys = normalized_set(["chapter"])
        inst = _instance(attributes={"CHAPTER": {"value": "E05"}})
        assert first_property_text(inst, keys) == "E05"

    def test_missing(self):
        assert first_property_text(_instance(), normalized_set(["chapter"])) == ""


# ---------------------------------------------------------------------------
# Geometric Fallback Estimator
# ---------------------------------------------------------------------------


class TestEstimateFromGeometry:
    box = BoundingBox.model_validate(BOX)

    def test_wall_area(self):
        assert estimate_from_geometry(self.box, "IfcWallStandardCase", UnitCode.AREA) == pytest.approx(0.9)

    def test_slab_area(self):
        assert estimate_from_geometry(self.box, "IfcSlab", UnitCode.AREA) == pytest.approx(6.0)

    @pytest.mark.parametrize("category", ["IfcRoof", "IfcCovering_Ceiling", "FLOOR"])
    def test_horizontal_area(self, category):
        assert estimate_from_geometry(self.box, category, UnitCode.AREA) == pytest.approx(6.0)

    def test_door_area(self):
        assert estimate_from_geometry(self.box, "IfcDoor", UnitCode.AREA) == pytest.approx(0.9)

    def test_other_area_is_largest_face(self):
        assert estimate_from_geometry(self.box, "IfcFurniture", UnitCode.AREA) == pytest.approx(6.0)

    def test_length(self):
        assert estimate_from_geometry(self.box, "IfcBeam", UnitCode.LENGTH) == pytest.approx(3.0)

    def test_volume(self):
        assert estimate_from_geometry(self.box, "IfcColumn", UnitCode.VOLUME) == pytest.approx(1.8)

    def test_mass_and_count_are_neutral(self):
        assert estimate_from_geometry(self.box, "IfcBeam", UnitCode.MASS) == 1.0
        assert estimate_from_geometry(self.box, "IfcBeam", UnitCode.COUNT) == 1.0

    def test_no_box(self):
        assert estimate_from_geometry(None, "IfcWall", UnitCode.AREA) == 1.0

    def test_inverted_box_is_absolute(self):
        inverted = BoundingBox.model_validate([2.0, 0.3, 3.0, 0.0, 0.0, 0.0])
        assert estimate_from_geometry(inverted, "IfcColumn", UnitCode.VOLUME) == pytest.approx(1.8)


# ---------------------------------------------------------------------------
# Annotation Extractor
# ---------------------------------------------------------------------------


class TestExtractComment:
    def test_attribute_string(self):
        inst = _instance(attributes={"Comments": "  FAÇANA EST  "})
        assert extract_comment(inst) == "FAÇANA EST"

    def test_attribute_wrapper(self):
        inst = _instance(attributes={"Mark": {"value": "M-1"}})
        assert extract_comment(inst) == "M-1"

    def test_props_alias(self):
        inst = _instance(props={"Comentarios": "Planta baja"})
        assert extract_comment(inst) == "Planta baja"

    def test_accented_key(self):
        inst = _instance(attributes={"Descripció": "Façana nord"})
        assert extract_comment(inst) == "Façana nord"

    def test_property_set(self):
        inst = _instance(
            propertySets=[
                {"name": "Identity Data", "properties": [{"name": "Comments", "value": {"Value": "Zona A"}}]}
            ]
        )
        assert extract_comment(inst) == "Zona A"

    def test_properties_map(self):
        inst = _instance(properties={"Remarks": "revisar"})
        assert extract_comment(inst) == "revisar"

    def test_attributes_take_precedence(self):
        inst = _instance(
            attributes={"Notes": "first"},
            propertySets=[{"name": "P", "properties": [{"name": "Comments", "value": "second"}]}],
            properties={"Remarks": "third"},
        )
        assert extract_comment(inst) == "first"

    def test_blank_values_skipped(self):
        inst = _instance(
            attributes={"Comments": "   "},
            propertySets=[{"name": "P", "properties": [{"name": "Description", "value": "real"}]}],
        )
        assert extract_comment(inst) == "real"

    def test_none(self):
        inst = _instance(attributes={"Name": "Wall"}, properties={"Area": 3})
        assert extract_comment(inst) is None


# ---------------------------------------------------------------------------
# IFC loading
# ---------------------------------------------------------------------------


class TestIfcExtraction:
    def test_psets_from_ifc_include_quantities(self, synthetic_ifc_file: ifcopenshell.file):
        wall = synthetic_ifc_file.by_type("IfcWall")[0]
        psets = {ps.name: ps for ps in psets_from_ifc(wall)}

        assert "Pset_WallCommon" in psets
        assert "Qto_WallBaseQuantities" in psets
        names = [p.name for p in psets["Pset_WallCommon"].properties]
        assert "id" not in names
        assert "Reference" in names

    def test_bounding_box_without_representation(self, synthetic_ifc_file: ifcopenshell.file):
        slab = synthetic_ifc_file.by_type("IfcSlab")[0]
        assert bounding_box_from_ifc(slab) is None

    def test_load_ifc_model(self, synthetic_ifc: Path):
        model = load_ifc_model(synthetic_ifc, with_geometry=False)

        assert len(model) == 3
        assert set(model.categories()) == {"IfcWall", "IfcDoor", "IfcSlab"}
        assert model.source == str(synthetic_ifc)

        wall = next(i for i in model if i.category == "IfcWall")
        assert wall.name == "ExteriorWall"
        assert resolve_display_name(wall) == "EXT-200"
        assert scan_for_unit(wall, AREA_SYNONYMS) == pytest.approx(12.5)
        assert scan_for_unit(wall, VOLUME_SYNONYMS) == pytest.approx(2.5)

    def test_door_attributes(self, synthetic_ifc: Path):
        model = load_ifc_model(synthetic_ifc, with_geometry=False)
        door = next(i for i in model if i.category == "IfcDoor")

        assert door.attributes["Tag"] == "D-01"
        assert resolve_display_name(door) == "EntryDoor"
        assert extract_comment(door) == "Main entrance"

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(Exception):
            load_ifc_model(tmp_path / "missing.ifc", with_geometry=False)


# ---------------------------------------------------------------------------
# Viewer metadata loading
# ---------------------------------------------------------------------------


class TestMetadataLoader:
    metadata = {
        "metaObjects": [
            {"id": "w1", "name": "Wall 1", "type": "IfcWall", "propertySetIds": ["ps1"]},
            {
                "id": "d1",
                "name": "Door 1",
                "type": "IfcDoor",
                "propertySets": [
                    {"name": "Identity", "properties": [{"name": "Mark", "value": "D1"}]}
                ],
            },
            {"name": "no id"},
        ],
        "propertySets": [
            {"id": "ps1", "name": "BaseQuantities", "properties": [{"name": "NetArea", "value": 9}]}
        ],
    }

    def test_shared_and_inline_psets(self):
        model = model_from_metadata(self.metadata)

        assert len(model) == 2
        wall = model.get("w1")
        assert wall is not None
        assert wall.category == "IfcWall"
        assert scan_for_unit(wall, AREA_SYNONYMS) == 9.0
        assert extract_comment(model.get("d1")) == "D1"

    def test_aabbs_attached(self):
        model = model_from_metadata(self.metadata, aabbs={"w1": BOX, "d1": [1, 2]})

        assert model.get("w1").bounding_box is not None
        assert model.get("d1").bounding_box is None

    def test_meta_objects_mapping(self):
        data = {"metaObjects": {"x": {"id": "x", "type": "IfcSlab"}}}
        model = model_from_metadata(data)
        assert [i.id for i in model] == ["x"]

    def test_from_json_file(self, tmp_path: Path):
        p = tmp_path / "model.json"
        p.write_text(json.dumps(self.metadata), encoding="utf-8")

        model = model_from_metadata(p)
        assert len(model) == 2
        assert model.source == str(p)
