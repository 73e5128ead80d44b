"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

# Settings refuse to load without a key; no request ever reaches OpenAI in tests
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from app.backend.main import app  # noqa: E402
from app.backend.models import ConfigField, ExtractionRecord, FieldType, ParserConfig  # noqa: E402
from app.backend.services.ai import (  # noqa: E402
    get_ai_service,
    recover_json_object,
    validate_extracted_data,
)
from app.backend.services.config_registry import ConfigRegistry, get_config_registry  # noqa: E402
from app.backend.services.workspace import Workspace, get_workspace  # noqa: E402


class FakeAIService:
    """
    Stand-in for AIService with scripted answers per file name.

    A script entry may be a dict (already-recovered data), a str (raw model
    text, run through recovery and validation like the real service), or an
    exception instance to raise. An optional delay simulates latency.
    """

    def __init__(self, script: dict[str, Any] | None = None, delays: dict[str, float] | None = None):
        self.script = script or {}
        self.delays = delays or {}
        self.calls: list[str] = []

    async def extract(self, file_bytes: bytes, file_name: str, config: ParserConfig) -> ExtractionRecord:
        self.calls.append(file_name)
        if file_name in self.delays:
            await asyncio.sleep(self.delays[file_name])

        answer = self.script.get(file_name, {})
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, str):
            answer, _ = recover_json_object(answer)

        validation = validate_extracted_data(answer, config)
        return ExtractionRecord(
            file_name=file_name,
            schema_id=config.id,
            data=validation.validated_data,
            warnings=validation.warnings,
        )


@pytest.fixture
def make_fake_ai() -> type[FakeAIService]:
    """The fake class itself, for tests that script answers."""
    return FakeAIService


@pytest.fixture
def fake_ai() -> FakeAIService:
    return FakeAIService()


@pytest.fixture
def workspace() -> Workspace:
    """A fresh, empty workspace."""
    return Workspace(max_file_bytes=10 * 1024 * 1024)


@pytest.fixture
def registry() -> ConfigRegistry:
    """A fresh registry with the built-in configs."""
    return ConfigRegistry()


@pytest.fixture
def client(
    fake_ai: FakeAIService, workspace: Workspace, registry: ConfigRegistry
) -> Generator[TestClient, None, None]:
    """Create a test client with in-memory state and the fake AI service."""
    app.dependency_overrides[get_ai_service] = lambda: fake_ai
    app.dependency_overrides[get_workspace] = lambda: workspace
    app.dependency_overrides[get_config_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def invoice_config() -> ParserConfig:
    """A small invoice config exercising every field type."""
    return ParserConfig(
        id="test-invoice",
        name="Test invoice",
        fields=[
            ConfigField(name="Invoice number", key="invoiceNumber", description="Invoice serial number", required=True),
            ConfigField(name="Issue date", key="date", type=FieldType.DATE, description="Date of issue"),
            ConfigField(name="Total", key="amount", type=FieldType.NUMBER, description="Total amount"),
            ConfigField(name="Paid", key="paid", type=FieldType.BOOLEAN, description="Whether it is paid"),
            ConfigField(name="Items", key="items", type=FieldType.TEXT_LIST, description="Line items"),
        ],
    )


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    The content is never parsed locally; it only has to look like a PDF.
    """
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>
endobj
xref
0 4
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
trailer
<< /Size 4 /Root 1 0 R >>
startxref
188
%%EOF"""
    return pdf_content
