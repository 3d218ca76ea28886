"""JSON design export/import.

Exports a Design as formatted JSON with schema version. Import refuses
files written by an unknown major schema version.
"""

from __future__ import annotations

import json

from playset.constants import DESIGN_SCHEMA_VERSION
from playset.core.serializers import design_to_dict, dict_to_design
from playset.models.design import Design


def _major(version: str) -> str:
    return str(version).split(".", 1)[0]


class DesignFileExporter:
    """JSON design file operations."""

    def export_design(self, design: Design, output_path: str) -> None:
        """Write design as formatted JSON file.

        Args:
            design: The design to export.
            output_path: Destination file path (.json).
        """
        data = design_to_dict(design)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def import_design(self, input_path: str) -> Design:
        """Read design from JSON file.

        Stored metadata is taken as-is; refresh it against a catalog
        before trusting it.

        Raises:
            ValueError: If the file's schema version is not supported.
        """
        with open(input_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Design file must hold a JSON object")
        version = data.get("schema_version", DESIGN_SCHEMA_VERSION)
        if _major(version) != _major(DESIGN_SCHEMA_VERSION):
            raise ValueError(f"Unsupported design schema version: {version}")
        return dict_to_design(data)
