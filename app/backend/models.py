"""
Pydantic models for the PDF field extraction service.

Defines strict types for extraction configs (schemas), field specifications,
extraction records and the request/response bodies of the HTTP API.

Wire format is camelCase (``fileName``, ``isDefault``) to stay compatible
with the browser front end; Python code may use the snake_case names.
"""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Keys of an extraction record that are not schema fields
RESERVED_ROW_KEYS = ("id", "fileName", "schemaId")

_FIELD_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting both spellings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FieldType(str, Enum):
    """Supported field types for extraction."""

    TEXT = "string"
    TEXT_LIST = "string[]"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


class ConfigField(CamelModel):
    """
    Definition of a single field to extract from a document.

    Attributes:
        id: Stable identifier used by the editor.
        name: Human-readable column header.
        key: Property name in the extracted JSON object.
        type: The expected value shape.
        description: Description sent to the model to guide extraction.
        required: Whether the document is expected to contain the field.
    """

    id: str = Field(default_factory=_new_id, description="Field ID")
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name",
        examples=["Invoice number"],
    )
    key: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Object property name",
        examples=["invoiceNumber"],
    )
    type: FieldType = Field(
        default=FieldType.TEXT,
        description="Expected value shape",
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Description to guide AI extraction",
    )
    required: bool = Field(
        default=False,
        description="Whether this field must be present",
    )

    @field_validator("key")
    @classmethod
    def validate_key_format(cls, v: str) -> str:
        """Ensure the key can be used as a JSON property and column id."""
        v = v.strip()
        if not _FIELD_KEY_PATTERN.match(v):
            raise ValueError(
                "Field key must start with a letter or underscore and contain only "
                "alphanumeric characters, underscores, or hyphens"
            )
        if v in RESERVED_ROW_KEYS:
            raise ValueError(f"Field key '{v}' is reserved")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field name must not be blank")
        return v


class ParserConfig(CamelModel):
    """
    A named, ordered list of fields describing what to extract.

    The id is fixed at creation time; editing replaces name and fields.
    Built-in configs carry ``is_default`` and cannot be deleted.
    """

    id: str = Field(default_factory=_new_id, description="Config ID")
    name: str = Field(..., min_length=1, max_length=100, description="Config name")
    fields: list[ConfigField] = Field(
        ...,
        min_length=1,
        description="Fields to extract, in column order",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    is_default: bool = Field(default=False)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Config name must not be blank")
        return v

    @field_validator("fields")
    @classmethod
    def validate_unique_field_keys(cls, v: list[ConfigField]) -> list[ConfigField]:
        """Ensure all field keys are unique."""
        keys = [f.key for f in v]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(
                f"All field keys must be unique within a config (duplicated: {', '.join(duplicates)})"
            )
        return v

    def field_by_key(self, key: str) -> ConfigField | None:
        return next((f for f in self.fields if f.key == key), None)


class ExtractionRecord(CamelModel):
    """
    One document's extracted values.

    ``data`` holds one entry per config field key. Values are strings,
    lists of strings, lists of objects, numbers, booleans or None.
    """

    id: str = Field(default_factory=_new_id)
    file_name: str = Field(..., description="Originating file name")
    schema_id: str = Field(..., description="ID of the config that produced the record")
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    def to_row(self) -> dict[str, Any]:
        """Flatten into the export shape: id, fileName, schemaId, then the data."""
        row: dict[str, Any] = {
            "id": self.id,
            "fileName": self.file_name,
            "schemaId": self.schema_id,
        }
        for key, value in self.data.items():
            if key not in row:
                row[key] = value
        return row


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="")
    version: str = Field(default="1.0.0")


# =============================================================================
# Notifications
# =============================================================================


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class Notification(CamelModel):
    """A transient user-facing message (the UI shows these as toasts)."""

    level: NotificationLevel
    title: str
    message: str


# =============================================================================
# Upload Queue Models
# =============================================================================


class RejectionReason(str, Enum):
    INVALID_TYPE = "invalid_type"
    TOO_LARGE = "too_large"
    DUPLICATE = "duplicate"


class QueuedFileResponse(CamelModel):
    """A file waiting in the upload queue."""

    id: str
    file_name: str
    content_type: str
    size_bytes: int


class RejectedFile(CamelModel):
    """A candidate file that was not enqueued."""

    file_name: str
    reason: RejectionReason
    message: str


class AddFilesResponse(CamelModel):
    """Response model for adding files to the queue."""

    accepted: list[QueuedFileResponse] = Field(default_factory=list)
    rejected: list[RejectedFile] = Field(default_factory=list)
    queue: list[QueuedFileResponse] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)


class QueueResponse(CamelModel):
    """Current queue contents."""

    items: list[QueuedFileResponse] = Field(default_factory=list)
    total: int = Field(..., ge=0)


# =============================================================================
# Processing Models
# =============================================================================


class FailureKind(str, Enum):
    UPSTREAM_FAILURE = "upstream_failure"
    UNPARSEABLE_RESPONSE = "unparseable_response"


class FileFailure(CamelModel):
    """A file whose extraction failed during a pass."""

    file_name: str
    kind: FailureKind
    message: str
    raw_response: str | None = None


class ProcessResponse(CamelModel):
    """Report of one processing pass over the queue."""

    config_id: str
    results: list[ExtractionRecord] = Field(default_factory=list)
    failures: list[FileFailure] = Field(default_factory=list)
    total_files: int = Field(..., ge=0)
    successful_files: int = Field(..., ge=0)
    failed_files: int = Field(..., ge=0)
    progress_percent: float = Field(..., ge=0.0, le=100.0)
    notifications: list[Notification] = Field(default_factory=list)


class ProgressResponse(CamelModel):
    """Progress of the running pass (0 when idle)."""

    processing: bool
    progress_percent: float = Field(..., ge=0.0, le=100.0)
    completed_files: int = Field(..., ge=0)
    total_files: int = Field(..., ge=0)


# =============================================================================
# Result Models
# =============================================================================


class ResultListResponse(CamelModel):
    results: list[ExtractionRecord] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class TableColumn(CamelModel):
    key: str
    header: str
    type: FieldType | None = None


class TableRow(CamelModel):
    id: str
    file_name: str
    cells: dict[str, str] = Field(default_factory=dict)


class ResultTableResponse(CamelModel):
    """Rendered result table for one config."""

    config_id: str
    config_name: str
    columns: list[TableColumn] = Field(default_factory=list)
    rows: list[TableRow] = Field(default_factory=list)
    hidden_records: int = Field(
        default=0,
        ge=0,
        description="Records produced under other configs and not shown",
    )


# =============================================================================
# Config Registry Models
# =============================================================================


class ConfigListResponse(CamelModel):
    configs: list[ParserConfig] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    selected_id: str | None = None


class SaveConfigRequest(CamelModel):
    """Request body for creating or replacing a config."""

    name: str
    fields: list[ConfigField]


class AddFieldRequest(CamelModel):
    name: str
    key: str
    type: FieldType = FieldType.TEXT
    description: str = ""
    required: bool = False


class UpdateFieldRequest(CamelModel):
    """Partial update of one field; omitted attributes are left unchanged."""

    name: str | None = None
    key: str | None = None
    type: FieldType | None = None
    description: str | None = None
    required: bool | None = None
