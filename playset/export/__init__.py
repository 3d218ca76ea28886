"""Export — design files and quote submission payloads."""

from playset.export.json_export import DesignFileExporter
from playset.export.quote_payload import build_quote_submission, quote_submission_to_dict

__all__ = [
    "DesignFileExporter",
    "build_quote_submission",
    "quote_submission_to_dict",
]
