"""
Export of extraction records to xlsx, JSON and CSV.

Every record is exported verbatim as a flat row (id, fileName, schemaId and
the extracted values); no column filtering is applied. For the tabular
formats, lists and objects are flattened into a single cell the same way the
result table renders them.
"""

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import pandas as pd

from ..models import ExtractionRecord

logger = logging.getLogger(__name__)

EXPORT_BASENAME = "extraction_results"
SHEET_NAME = "Extraction results"
CSV_BOM = "\ufeff"


class NothingToExportError(Exception):
    """Raised when exporting an empty result list."""


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    JSON = "json"
    CSV = "csv"


MEDIA_TYPES = {
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv; charset=utf-8",
}


@dataclass
class ExportArtifact:
    filename: str
    media_type: str
    content: bytes


def export_filename(fmt: ExportFormat, now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{EXPORT_BASENAME}_{now:%Y%m%d%H%M%S}.{fmt.value}"


def _flatten_item(item: Any) -> str:
    if isinstance(item, dict):
        return ", ".join(f"{k}: {v}" for k, v in item.items())
    return str(item)


def flatten_cell(value: Any) -> Any:
    """Flatten a record value into something a single cell can hold."""
    if isinstance(value, list):
        items = [v for v in value if v is not None]
        separator = "; " if any(isinstance(v, dict) for v in items) else ", "
        return separator.join(_flatten_item(v) for v in items)
    if isinstance(value, dict):
        return _flatten_item(value)
    return value


def _rows(records: list[ExtractionRecord]) -> list[dict[str, Any]]:
    return [record.to_row() for record in records]


def _frame(records: list[ExtractionRecord]) -> pd.DataFrame:
    rows = _rows(records)
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    flattened = [{key: flatten_cell(row.get(key)) for key in columns} for row in rows]
    # object dtype keeps ints with missing values from turning into floats
    return pd.DataFrame(flattened, columns=columns, dtype=object)


def to_json(records: list[ExtractionRecord]) -> str:
    """Pretty-printed JSON array of flat rows."""
    return json.dumps(_rows(records), indent=2, ensure_ascii=False)


def to_csv(records: list[ExtractionRecord]) -> bytes:
    """UTF-8 CSV with a byte-order mark so spreadsheet apps detect the encoding."""
    text = _frame(records).to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return (CSV_BOM + text).encode("utf-8")


def to_xlsx(records: list[ExtractionRecord]) -> bytes:
    """Single-sheet workbook."""
    buffer = io.BytesIO()
    _frame(records).to_excel(buffer, index=False, sheet_name=SHEET_NAME, engine="openpyxl")
    return buffer.getvalue()


def export_records(
    records: list[ExtractionRecord],
    fmt: ExportFormat,
    now: datetime | None = None,
) -> ExportArtifact:
    """
    Serialize all records in the requested format.

    Raises:
        NothingToExportError: If there are no records.
    """
    if not records:
        raise NothingToExportError("There are no results to export")

    if fmt == ExportFormat.XLSX:
        content = to_xlsx(records)
    elif fmt == ExportFormat.JSON:
        content = to_json(records).encode("utf-8")
    else:
        content = to_csv(records)

    filename = export_filename(fmt, now)
    logger.info("Exported %d record(s) to %s (%d bytes)", len(records), filename, len(content))
    return ExportArtifact(filename=filename, media_type=MEDIA_TYPES[fmt], content=content)
