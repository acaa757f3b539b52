"""
Export Service - flat JSON and CSV exports of the record store.

The persisted store document is keyed by identifier and versioned; exports
are the list-of-rows form that spreadsheets and other tools expect.
"""

import csv
import json
import logging
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List

__all__ = [
    'CSV_INJECTION_CHARS',
    'EXPORT_FIELDS',
    'ExportFormat',
    'ExportService',
    'sanitize_csv_value',
    'sanitize_row_for_csv',
]


class ExportFormat(Enum):
    """Supported export formats."""
    JSON = "json"
    CSV = "csv"

    @classmethod
    def from_string(cls, value: str) -> "ExportFormat":
        """Parse format from string, case-insensitive."""
        value_lower = value.lower().strip()
        for fmt in cls:
            if fmt.value == value_lower:
                return fmt
        raise ValueError(f"Unknown export format: {value}")


# Column order for exports
EXPORT_FIELDS = [
    'identifier', 'display_name', 'category', 'street_address', 'locality',
    'region', 'postal_code', 'phone', 'source_url', 'collected_at',
]

# Characters that can trigger formula injection in spreadsheet applications
CSV_INJECTION_CHARS = ('=', '+', '-', '@', '\t', '\r', '\n')


def sanitize_csv_value(value: Any) -> Any:
    """Sanitize a value for CSV export to prevent formula injection.

    Spreadsheet applications interpret cells starting with =, +, -, @,
    tab, or carriage return as formulas. Such values get a leading single
    quote, which spreadsheets treat as a text prefix.

    Args:
        value: The value to sanitize

    Returns:
        The sanitized value (string prefixed with quote if dangerous, else unchanged)
    """
    if not isinstance(value, str):
        return value
    if value and value[0] in CSV_INJECTION_CHARS:
        return f"'{value}"
    return value


def sanitize_row_for_csv(row: Dict[str, Any]) -> Dict[str, Any]:
    return {key: sanitize_csv_value(value) for key, value in row.items()}


class ExportService:
    """Service for exporting records to JSON or CSV."""

    @staticmethod
    def export_records(rows: List[Dict[str, Any]], export_format: ExportFormat, output_path: str) -> int:
        """
        Export record rows to a file in the specified format.

        Args:
            rows: Record dictionaries (FacilityRecord.to_dict())
            export_format: Target format
            output_path: Path to save the output file

        Returns:
            Number of rows written
        """
        path = Path(output_path)
        if ".." in path.parts:
            raise ValueError(f"Invalid output path: {output_path}. Path traversal not allowed.")

        if not rows:
            logging.warning("No records to export")

        path.parent.mkdir(parents=True, exist_ok=True)

        if export_format == ExportFormat.JSON:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
        else:
            with open(path, 'w', newline='', encoding='utf-8') as f:
                f.write(ExportService.generate_csv_string(rows))

        logging.info(f"Exported {len(rows)} records to {export_format.value.upper()}: {output_path}")
        return len(rows)

    @staticmethod
    def generate_csv_string(rows: List[Dict[str, Any]]) -> str:
        """CSV text with a header row, in EXPORT_FIELDS order."""
        output = StringIO()
        writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS, extrasaction='ignore')
        writer.writeheader()
        writer.writerows(sanitize_row_for_csv(row) for row in rows)
        return output.getvalue()
