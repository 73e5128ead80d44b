"""Tests for the AI service: value parsing, validation, prompt and model call."""

import base64
from types import SimpleNamespace

import pytest

from app.backend.models import ConfigField, FieldType, ParserConfig
from app.backend.services.ai import (
    AIService,
    AIServiceError,
    UnparseableResponseError,
    build_extraction_prompt,
    extract_record,
    parse_date,
    parse_number,
    validate_extracted_data,
)
from app.backend.services.config_registry import default_configs


class FakeCompletions:
    """Records the request and answers with canned text (or raises)."""

    def __init__(self, content=None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content=None, error: Exception | None = None) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content, error)))


class TestParseNumber:
    """Tests for number parsing utility."""

    def test_parse_currency_format(self):
        """Test currency symbols and thousands separators are tolerated."""
        assert parse_number("$1,234.50") == 1234.5
        assert parse_number("€100.00") == 100.0

    def test_parse_plain_numbers(self):
        assert parse_number("42") == 42
        assert isinstance(parse_number("42"), int)
        assert parse_number("3.5") == 3.5
        assert parse_number(7) == 7
        assert parse_number(99.99) == 99.99

    def test_parse_invalid_returns_none(self):
        assert parse_number(None) is None
        assert parse_number("") is None
        assert parse_number("not a number") is None
        assert parse_number(True) is None


class TestParseDate:
    """Tests for date parsing utility."""

    def test_parse_iso_format(self):
        assert parse_date("2024-01-15") == "2024-01-15"

    def test_parse_us_format(self):
        assert parse_date("01/15/2024") == "2024-01-15"

    def test_parse_written_format(self):
        assert parse_date("January 15, 2024") == "2024-01-15"
        assert parse_date("15 Jan 2024") == "2024-01-15"

    def test_parse_chinese_format(self):
        assert parse_date("2024年1月15日") == "2024-01-15"

    def test_parse_invalid_returns_none(self):
        assert parse_date(None) is None
        assert parse_date("") is None
        assert parse_date("not a date") is None
        assert parse_date("2024-13-45") is None


class TestValidateExtractedData:
    """Tests for data validation against a config."""

    def test_valid_data_passes_unchanged(self, invoice_config: ParserConfig):
        data = {
            "invoiceNumber": "INV-001",
            "date": "2024-01-15",
            "amount": 1500,
            "paid": True,
            "items": ["Widget", "Gadget"],
        }
        result = validate_extracted_data(data, invoice_config)
        assert result.validated_data == data
        assert result.warnings == []

    def test_number_coercion(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"invoiceNumber": "1", "amount": "$1,234.50"}, invoice_config)
        assert result.validated_data["amount"] == 1234.5

    def test_invalid_number_becomes_none_with_warning(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"invoiceNumber": "1", "amount": "unknown"}, invoice_config)
        assert result.validated_data["amount"] is None
        assert any("invalid number" in w for w in result.warnings)

    def test_missing_required_field_warns(self, invoice_config: ParserConfig):
        result = validate_extracted_data({}, invoice_config)
        assert "Required field 'invoiceNumber' has empty value" in result.warnings
        assert set(result.validated_data) == {f.key for f in invoice_config.fields}
        assert result.validated_data["invoiceNumber"] is None

    def test_optional_missing_field_is_silent(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"invoiceNumber": "1"}, invoice_config)
        assert result.warnings == []

    def test_boolean_strings(self, invoice_config: ParserConfig):
        assert validate_extracted_data({"paid": "yes"}, invoice_config).validated_data["paid"] is True
        assert validate_extracted_data({"paid": "No"}, invoice_config).validated_data["paid"] is False
        result = validate_extracted_data({"paid": "maybe"}, invoice_config)
        assert result.validated_data["paid"] is None
        assert any("ambiguous boolean" in w for w in result.warnings)

    def test_date_normalized(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"date": "January 15, 2024"}, invoice_config)
        assert result.validated_data["date"] == "2024-01-15"

    def test_unrecognized_date_kept_raw(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"date": "sometime soon"}, invoice_config)
        assert result.validated_data["date"] == "sometime soon"
        assert any("unrecognized date" in w for w in result.warnings)

    def test_single_value_wrapped_into_list(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"items": "Widget"}, invoice_config)
        assert result.validated_data["items"] == ["Widget"]

    def test_list_of_objects_kept(self, invoice_config: ParserConfig):
        items = [{"name": "Widget", "qty": 2}]
        result = validate_extracted_data({"items": items}, invoice_config)
        assert result.validated_data["items"] == items

    def test_nulls_removed_from_lists(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"items": ["a", None, "b"]}, invoice_config)
        assert result.validated_data["items"] == ["a", "b"]

    def test_list_for_text_field_is_joined(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"invoiceNumber": ["A", "B"]}, invoice_config)
        assert result.validated_data["invoiceNumber"] == "A, B"
        assert result.warnings

    def test_extra_keys_dropped(self, invoice_config: ParserConfig):
        result = validate_extracted_data({"invoiceNumber": "1", "bonus": "x"}, invoice_config)
        assert "bonus" not in result.validated_data
        assert "Ignored fields not in config: bonus" in result.warnings


class TestExtractionPrompt:
    """Tests for prompt generation."""

    def test_every_key_and_description_appears_once(self):
        """Test each field key and description is mentioned exactly once."""
        for config in default_configs():
            prompt = build_extraction_prompt(config)
            for field in config.fields:
                assert prompt.count(f'"{field.key}"') == 1
                assert prompt.count(field.description) == 1

    def test_fields_listed_in_config_order(self, invoice_config: ParserConfig):
        prompt = build_extraction_prompt(invoice_config)
        positions = [prompt.index(f'"{f.key}"') for f in invoice_config.fields]
        assert positions == sorted(positions)

    def test_display_name_used_when_description_blank(self):
        config = ParserConfig(name="Test", fields=[ConfigField(name="Seller name", key="seller")])
        assert "Seller name" in build_extraction_prompt(config)

    def test_type_hints(self, invoice_config: ParserConfig):
        prompt = build_extraction_prompt(invoice_config)
        assert "array of text" in prompt
        assert "YYYY-MM-DD" in prompt
        assert "required" in prompt


class TestExtractRecord:
    """Tests for the model call with a fake OpenAI client."""

    @pytest.mark.asyncio
    async def test_sends_pdf_inline_and_returns_record(self, invoice_config: ParserConfig):
        client = fake_client('```json\n{"invoiceNumber": "INV-7", "amount": "1,000"}\n```')
        record = await extract_record(b"%PDF-1.4", "inv.pdf", invoice_config, client=client, model="gpt-4.1")

        assert record.file_name == "inv.pdf"
        assert record.schema_id == "test-invoice"
        assert record.data["invoiceNumber"] == "INV-7"
        assert record.data["amount"] == 1000

        request = client.chat.completions.requests[0]
        assert request["model"] == "gpt-4.1"
        file_part = request["messages"][1]["content"][1]
        assert file_part["type"] == "file"
        expected = base64.b64encode(b"%PDF-1.4").decode("utf-8")
        assert file_part["file"]["file_data"] == f"data:application/pdf;base64,{expected}"

    @pytest.mark.asyncio
    async def test_unparseable_answer(self, invoice_config: ParserConfig):
        client = fake_client("I could not read this document.")
        with pytest.raises(UnparseableResponseError) as exc_info:
            await extract_record(b"%PDF", "x.pdf", invoice_config, client=client)
        assert exc_info.value.raw_response == "I could not read this document."

    @pytest.mark.asyncio
    async def test_upstream_failure_wrapped(self, invoice_config: ParserConfig):
        client = fake_client(error=RuntimeError("connection reset"))
        with pytest.raises(AIServiceError, match="connection reset"):
            await extract_record(b"%PDF", "x.pdf", invoice_config, client=client)

    @pytest.mark.asyncio
    async def test_empty_answer(self, invoice_config: ParserConfig):
        client = fake_client("")
        with pytest.raises(AIServiceError):
            await extract_record(b"%PDF", "x.pdf", invoice_config, client=client)


class TestAIServiceInit:
    """Tests for AIService construction."""

    def test_empty_api_key_rejected(self):
        with pytest.raises(AIServiceError):
            AIService(api_key="", model="gpt-4.1", timeout=10)

    def test_explicit_settings(self):
        service = AIService(api_key="sk-test", model="gpt-4.1-mini", timeout=5)
        assert service.model == "gpt-4.1-mini"
        assert service.timeout == 5

    def test_defaults_from_settings(self):
        service = AIService()
        assert service.model == "gpt-4.1"
