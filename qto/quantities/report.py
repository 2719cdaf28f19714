"""MeasurementReport — measurement lines of one budget line item, with exports."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from qto.models.element import ElementTypeConfig, MeasurementLine

_CSV_FIELDS = ["instance_id", "display_name", "value", "dx", "dy", "dz", "comment", "source"]


class MeasurementReport:
    """Measurement lines for an element-type configuration."""

    def __init__(
        self,
        config: ElementTypeConfig,
        lines: Sequence[MeasurementLine] = (),
    ) -> None:
        self.config = config
        self.lines = tuple(lines)

    @property
    def total(self) -> float:
        return sum(line.value for line in self.lines)

    @property
    def count(self) -> int:
        return len(self.lines)

    @property
    def approximate_count(self) -> int:
        return sum(1 for line in self.lines if line.approximate)

    @property
    def unit_code(self) -> str:
        return self.config.preferred_unit.budget_code

    def to_dict(self) -> dict[str, Any]:
        """Return dict representation."""
        return {
            "category": self.config.category,
            "type_name": self.config.type_name,
            "unit": self.config.preferred_unit.value,
            "total": self.total,
            "count": self.count,
            "approximate_count": self.approximate_count,
            "lines": [line.model_dump(mode="json") for line in self.lines],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def to_markdown(self) -> str:
        """Render the lines as a Markdown table with a total row."""
        lines: list[str] = []

        lines.append(f"# Measurements — {self.config.type_name or 'Unknown'}")
        lines.append("")
        lines.append(f"**Category:** `{self.config.category}`")
        lines.append(f"**Unit:** {self.unit_code}")
        lines.append("")

        if not self.lines:
            lines.append("_No matching elements._")
            lines.append("")
            return "\n".join(lines)

        lines.append("| Element | Comment | Quantity |")
        lines.append("|---------|---------|----------|")
        for line in self.lines:
            marker = " ~" if line.approximate else ""
            lines.append(
                f"| {line.display_name} | {line.comment or '-'} | {line.value:,.2f}{marker} |"
            )
        lines.append(f"| **Total** | | **{self.total:,.2f} {self.unit_code}** |")
        lines.append("")

        if self.approximate_count:
            lines.append(
                f"~ {self.approximate_count} of {self.count} values estimated from geometry."
            )
            lines.append("")

        return "\n".join(lines)

    def to_csv(self, path: str | Path) -> Path:
        """Write one row per measurement line to *path*."""
        p = Path(path)
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for line in self.lines:
            dims = line.bounding_box_dimensions
            writer.writerow(
                {
                    "instance_id": line.instance_id,
                    "display_name": line.display_name,
                    "value": line.value,
                    "dx": dims.dx if dims else "",
                    "dy": dims.dy if dims else "",
                    "dz": dims.dz if dims else "",
                    "comment": line.comment or "",
                    "source": line.source.value,
                }
            )
        p.write_text(buf.getvalue(), encoding="utf-8")
        return p
