"""Measurement status overview of a whole model.

Groups every instance by chapter, subchapter and (type, unit), picking the
most meaningful unit per instance, so a project can see at a glance what
the model measures and how much of it is estimated.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from qto.config import (
    CHAPTER_KEYS,
    DEFAULT_CHAPTERS,
    FALLBACK_CHAPTER,
    NO_SUBCHAPTER,
    SUBCHAPTER_KEYS,
)
from qto.extraction.geometry import estimate_from_geometry
from qto.extraction.normalize import normalized_set
from qto.extraction.properties import first_property_text, scan_for_unit
from qto.models.element import ElementInstance, UnitCode
from qto.quantities.matcher import resolve_display_name
from qto.quantities.units import UNIT_SYNONYMS

logger = logging.getLogger(__name__)

_CHAPTER_SET = normalized_set(CHAPTER_KEYS)
_SUBCHAPTER_SET = normalized_set(SUBCHAPTER_KEYS)


class StatusRow(BaseModel):
    """Aggregated quantity of one element type in one unit."""

    type_name: str
    unit: UnitCode
    quantity: float = 0.0
    count: int = 0
    approximate_count: int = 0


class StatusGroup(BaseModel):
    subchapter: str
    rows: list[StatusRow] = Field(default_factory=list)
    quantity: float = 0.0
    count: int = 0


class StatusChapter(BaseModel):
    chapter: str
    subgroups: list[StatusGroup] = Field(default_factory=list)
    quantity: float = 0.0
    count: int = 0


class StatusReport(BaseModel):
    """Chapter → subchapter → type breakdown with totals."""

    chapters: list[StatusChapter] = Field(default_factory=list)
    quantity: float = 0.0
    count: int = 0

    def to_markdown(self) -> str:
        lines = ["# Measurement Status", ""]
        for chapter in self.chapters:
            lines.append(f"## {chapter.chapter}")
            lines.append("")
            for group in chapter.subgroups:
                lines.append(f"### {group.subchapter}")
                lines.append("")
                lines.append("| Type | Unit | Quantity | Count | Estimated |")
                lines.append("|------|------|----------|-------|-----------|")
                for row in group.rows:
                    lines.append(
                        f"| {row.type_name} | {row.unit.budget_code} | "
                        f"{row.quantity:,.2f} | {row.count} | {row.approximate_count} |"
                    )
                lines.append("")
        lines.append(f"**Elements:** {self.count}")
        lines.append("")
        return "\n".join(lines)

    def to_csv(self, path: str | Path) -> Path:
        p = Path(path)
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(
            ["chapter", "subchapter", "type", "unit", "quantity", "count", "approximate_count"]
        )
        for chapter in self.chapters:
            for group in chapter.subgroups:
                for row in group.rows:
                    writer.writerow(
                        [
                            chapter.chapter,
                            group.subchapter,
                            row.type_name,
                            row.unit.budget_code,
                            f"{row.quantity:.2f}",
                            row.count,
                            row.approximate_count,
                        ]
                    )
        p.write_text(buf.getvalue(), encoding="utf-8")
        return p


def chapter_of(instance: ElementInstance) -> str:
    """Classification chapter from the model, else a category default."""
    chapter = first_property_text(instance, _CHAPTER_SET)
    if chapter:
        return chapter
    category = instance.category.lower()
    for prefix, label in DEFAULT_CHAPTERS:
        if category.startswith(prefix):
            return label
    return FALLBACK_CHAPTER


def subchapter_of(instance: ElementInstance) -> str:
    return first_property_text(instance, _SUBCHAPTER_SET) or NO_SUBCHAPTER


def pick_unit(instance: ElementInstance) -> tuple[UnitCode, float, bool]:
    """Choose a unit for *instance*: ``(unit, value, approximate)``.

    Area (from properties, then geometry) comes first, then volume,
    length and mass from properties; everything else counts as one unit.
    """
    area = scan_for_unit(instance, UNIT_SYNONYMS[UnitCode.AREA])
    if area is not None:
        return UnitCode.AREA, area, False
    if instance.bounding_box is not None:
        estimate = estimate_from_geometry(instance.bounding_box, instance.category, UnitCode.AREA)
        if estimate > 0:
            return UnitCode.AREA, estimate, True

    for unit in (UnitCode.VOLUME, UnitCode.LENGTH, UnitCode.MASS):
        value = scan_for_unit(instance, UNIT_SYNONYMS[unit])
        if value is not None:
            return unit, value, False

    return UnitCode.COUNT, 1.0, False


def summarize_model(
    model: Iterable[ElementInstance],
    chapter_names: Mapping[str, str] | None = None,
) -> StatusReport:
    """Build the measurement status overview of *model*.

    *chapter_names* is the classification catalog lookup (code -> display
    name); chapters not found in it keep their raw label.
    """
    chapter_names = chapter_names or {}
    tree: dict[str, dict[str, dict[tuple[str, UnitCode], StatusRow]]] = {}

    for inst in model:
        chapter = chapter_of(inst)
        chapter = chapter_names.get(chapter, chapter)
        subchapter = subchapter_of(inst)
        type_name = resolve_display_name(inst)
        unit, value, approximate = pick_unit(inst)

        rows = tree.setdefault(chapter, {}).setdefault(subchapter, {})
        row = rows.get((type_name, unit))
        if row is None:
            row = StatusRow(type_name=type_name, unit=unit)
            rows[(type_name, unit)] = row
        row.count += 1
        row.quantity += value
        if approximate:
            row.approximate_count += 1

    chapters: list[StatusChapter] = []
    for chapter, groups in tree.items():
        subgroups = [
            StatusGroup(
                subchapter=subchapter,
                rows=list(rows.values()),
                quantity=sum(r.quantity for r in rows.values()),
                count=sum(r.count for r in rows.values()),
            )
            for subchapter, rows in groups.items()
        ]
        subgroups.sort(key=lambda g: g.subchapter.casefold())
        chapters.append(
            StatusChapter(
                chapter=chapter,
                subgroups=subgroups,
                quantity=sum(g.quantity for g in subgroups),
                count=sum(g.count for g in subgroups),
            )
        )
    chapters.sort(key=lambda c: c.chapter.casefold())

    report = StatusReport(
        chapters=chapters,
        quantity=sum(c.quantity for c in chapters),
        count=sum(c.count for c in chapters),
    )
    logger.info("Status overview: %d elements in %d chapters", report.count, len(chapters))
    return report
