"""Tests for the result table and the exporter."""

import io
import json
from datetime import datetime

import pandas as pd
import pytest

from app.backend.models import ExtractionRecord, FieldType, ParserConfig
from app.backend.services.exporter import (
    ExportFormat,
    NothingToExportError,
    export_filename,
    export_records,
    flatten_cell,
    to_csv,
    to_json,
    to_xlsx,
)
from app.backend.services.results_table import build_columns, build_table, render_cell


@pytest.fixture
def records(invoice_config: ParserConfig) -> list[ExtractionRecord]:
    return [
        ExtractionRecord(
            id="r1",
            file_name="a.pdf",
            schema_id=invoice_config.id,
            data={"invoiceNumber": "INV-1", "amount": 1234.5, "items": ["Widget", "Gadget"]},
        ),
        ExtractionRecord(
            id="r2",
            file_name="b.pdf",
            schema_id=invoice_config.id,
            data={"invoiceNumber": "INV-2", "amount": None, "items": []},
        ),
    ]


class TestRenderCell:
    """Tests for display rendering of cell values."""

    def test_null(self):
        assert render_cell(None) == "-"
        assert render_cell([]) == "-"

    def test_list_of_scalars(self):
        assert render_cell(["a", "b"]) == "a, b"

    def test_list_of_objects(self):
        value = [{"school": "MIT", "year": 2010}, {"school": "ETH", "year": 2012}]
        assert render_cell(value) == "school: MIT, year: 2010; school: ETH, year: 2012"

    def test_number_thousands_separator(self):
        assert render_cell(1234567.5, FieldType.NUMBER) == "1,234,567.5"

    def test_date_field(self):
        assert render_cell("2024-01-15", FieldType.DATE) == "15 Jan 2024"
        assert render_cell("someday", FieldType.DATE) == "someday"

    def test_boolean(self):
        assert render_cell(True, FieldType.BOOLEAN) == "Yes"
        assert render_cell(False) == "No"

    def test_plain_text(self):
        assert render_cell("ACME") == "ACME"


class TestBuildTable:
    """Tests for table construction."""

    def test_columns_follow_config_order(self, invoice_config: ParserConfig):
        columns = build_columns(invoice_config)
        assert columns[0].key == "fileName"
        assert columns[0].header == "File name"
        assert [c.key for c in columns[1:]] == [f.key for f in invoice_config.fields]
        assert columns[1].header == "Invoice number"

    def test_rows_rendered(self, invoice_config: ParserConfig, records):
        table = build_table(records, invoice_config)
        assert [r.file_name for r in table.rows] == ["a.pdf", "b.pdf"]
        first = table.rows[0].cells
        assert first["fileName"] == "a.pdf"
        assert first["amount"] == "1,234.5"
        assert first["items"] == "Widget, Gadget"
        assert first["date"] == "-"
        assert table.rows[1].cells["items"] == "-"

    def test_rows_of_other_configs_hidden(self, invoice_config: ParserConfig, records):
        """Test records produced under another config are counted but not shown."""
        other = ExtractionRecord(file_name="cv.pdf", schema_id="resume", data={"name": "Ada"})
        table = build_table(records + [other], invoice_config)
        assert len(table.rows) == 2
        assert table.hidden_records == 1


class TestExporter:
    """Tests for file exports."""

    def test_empty_export_refused(self):
        with pytest.raises(NothingToExportError):
            export_records([], ExportFormat.JSON)

    def test_filename_timestamp(self):
        name = export_filename(ExportFormat.CSV, datetime(2024, 3, 5, 14, 7, 9))
        assert name == "extraction_results_20240305140709.csv"

    def test_json_round_trips_rows(self, records):
        parsed = json.loads(to_json(records))
        assert parsed == [r.to_row() for r in records]

    def test_json_keeps_non_ascii(self):
        record = ExtractionRecord(file_name="发票.pdf", schema_id="invoice", data={"seller": "北京公司"})
        assert "北京公司" in to_json([record])

    def test_csv_bom_and_quoting(self, records):
        content = to_csv(records)
        assert content.startswith(b"\xef\xbb\xbf")
        text = content.decode("utf-8-sig")
        lines = text.splitlines()
        assert lines[0] == '"id","fileName","schemaId","invoiceNumber","amount","items"'
        assert '"Widget, Gadget"' in lines[1]

    def test_csv_header_is_union_of_keys(self, records):
        extra = ExtractionRecord(id="r3", file_name="c.pdf", schema_id="resume", data={"name": "Ada"})
        header = to_csv(records + [extra]).decode("utf-8-sig").splitlines()[0]
        assert header.endswith('"items","name"')

    def test_flatten_cell(self):
        assert flatten_cell(["a", None, "b"]) == "a, b"
        assert flatten_cell([{"k": "v", "n": 1}]) == "k: v, n: 1"
        assert flatten_cell([{"a": 1}, {"b": 2}]) == "a: 1; b: 2"
        assert flatten_cell(5) == 5

    def test_flattened_objects_match_table(self):
        value = [{"name": "Widget", "qty": 2}, {"name": "Gadget", "qty": 1}]
        assert flatten_cell(value) == render_cell(value, FieldType.TEXT_LIST)

    def test_whole_numbers_with_gaps_stay_integers(self):
        records = [
            ExtractionRecord(id="r1", file_name="a.pdf", schema_id="invoice", data={"amount": 1500}),
            ExtractionRecord(id="r2", file_name="b.pdf", schema_id="invoice", data={"amount": None}),
        ]
        lines = to_csv(records).decode("utf-8-sig").splitlines()
        assert lines[1].endswith('"1500"')
        assert lines[2].endswith('""')
        assert "1500.0" not in lines[1]

        frame = pd.read_excel(io.BytesIO(to_xlsx(records)), sheet_name="Extraction results")
        assert frame.loc[0, "amount"] == 1500

    def test_xlsx_readable(self, records):
        frame = pd.read_excel(io.BytesIO(to_xlsx(records)), sheet_name="Extraction results")
        assert list(frame["fileName"]) == ["a.pdf", "b.pdf"]
        assert frame.loc[0, "items"] == "Widget, Gadget"

    def test_export_artifact(self, records):
        artifact = export_records(records, ExportFormat.XLSX, now=datetime(2024, 1, 1))
        assert artifact.filename == "extraction_results_20240101000000.xlsx"
        assert artifact.media_type.startswith("application/vnd.openxmlformats")
        assert artifact.content[:2] == b"PK"
