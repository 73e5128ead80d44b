"""
Result table rendering.

Columns are derived from a config: a fixed leading file-name column, then one
column per field in config order. Records carry the id of the config that
produced them, so a table only shows rows of its own config; rows from other
configs are counted but not rendered against the wrong columns.
"""

from datetime import datetime
from typing import Any

from ..models import (
    ExtractionRecord,
    FieldType,
    ParserConfig,
    ResultTableResponse,
    TableColumn,
    TableRow,
)
from .ai.validation import parse_date

FILE_NAME_COLUMN = TableColumn(key="fileName", header="File name")
EMPTY_CELL = "-"
LIST_SEPARATOR = ", "
OBJECT_SEPARATOR = "; "


def build_columns(config: ParserConfig) -> list[TableColumn]:
    return [FILE_NAME_COLUMN] + [
        TableColumn(key=field.key, header=field.name, type=field.type)
        for field in config.fields
    ]


def _render_object(value: dict[str, Any]) -> str:
    return ", ".join(f"{k}: {_render_scalar(v)}" for k, v in value.items())


def _render_scalar(value: Any) -> str:
    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _format_date(value: Any) -> str:
    iso = parse_date(value)
    if iso is None:
        return str(value)
    return datetime.strptime(iso, "%Y-%m-%d").strftime("%d %b %Y")


def render_cell(value: Any, field_type: FieldType | None = None) -> str:
    """
    Render one cell value for display.

    null -> "-", list of objects -> "k: v, k: v; k: v", list of scalars ->
    comma-joined, number/date fields -> formatted, everything else -> str().
    """
    if value is None:
        return EMPTY_CELL

    if isinstance(value, list):
        items = [v for v in value if v is not None]
        if not items:
            return EMPTY_CELL
        if any(isinstance(v, dict) for v in items):
            return OBJECT_SEPARATOR.join(
                _render_object(v) if isinstance(v, dict) else _render_scalar(v)
                for v in items
            )
        return LIST_SEPARATOR.join(_render_scalar(v) for v in items)

    if isinstance(value, dict):
        return _render_object(value)

    if isinstance(value, bool):
        return _render_scalar(value)

    if field_type == FieldType.NUMBER and isinstance(value, (int, float)):
        return format(value, ",")

    if field_type == FieldType.DATE:
        return _format_date(value)

    return str(value)


def build_table(
    records: list[ExtractionRecord], config: ParserConfig
) -> ResultTableResponse:
    """Render the records produced under ``config``; count the others."""
    columns = build_columns(config)
    rows: list[TableRow] = []
    hidden = 0

    for record in records:
        if record.schema_id != config.id:
            hidden += 1
            continue
        cells = {FILE_NAME_COLUMN.key: record.file_name}
        for field in config.fields:
            cells[field.key] = render_cell(record.data.get(field.key), field.type)
        rows.append(TableRow(id=record.id, file_name=record.file_name, cells=cells))

    return ResultTableResponse(
        config_id=config.id,
        config_name=config.name,
        columns=columns,
        rows=rows,
        hidden_records=hidden,
    )
