"""
Field extraction from PDF documents.

Sends the raw PDF (inline, base64-encoded) together with a config-derived
instruction prompt to an OpenAI chat model, recovers a JSON object from the
free-text answer and validates it against the config.
"""

import base64
import logging
from typing import Any

from ...models import ConfigField, ExtractionRecord, FieldType, ParserConfig
from .exceptions import AIServiceError
from .parsing import recover_json_object
from .validation import validate_extracted_data

logger = logging.getLogger(__name__)


# =============================================================================
# Extraction System Prompt
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are a precise Data Entry Clerk with exceptional attention to detail.
Your task is to read the attached document and extract specific fields from it.

## Extraction Rules:

1. **Strict Adherence**: Only extract the fields specified. Do not add extra fields.
2. **Accuracy Over Guessing**: If a value is unclear or not present, return null. DO NOT HALLUCINATE.
3. **Lists**: For list fields, return a JSON array of strings with one entry per item.
4. **Output**: Return ONLY the JSON object. No markdown, no explanations, no commentary."""

_TYPE_HINTS = {
    FieldType.TEXT: "text",
    FieldType.TEXT_LIST: "array of text",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "true or false",
    FieldType.DATE: "date as YYYY-MM-DD",
}


# =============================================================================
# Helper Functions
# =============================================================================


def _describe_field(field: ConfigField) -> str:
    required_marker = ", required" if field.required else ""
    description = field.description.strip() or field.name
    return f'- "{field.key}": {description} ({_TYPE_HINTS[field.type]}{required_marker})'


def build_extraction_prompt(config: ParserConfig) -> str:
    """
    Build the instruction prompt for a config.

    Each field key and description is mentioned exactly once, in config order.
    """
    fields_text = "\n".join(_describe_field(field) for field in config.fields)
    return f"""Analyze this document and extract the following fields. Return them as a JSON object.

## Fields:
{fields_text}

Return a single JSON object that contains exactly the keys listed above, and no others.
Use a JSON array for array fields. Use null for any field that is not present in the document.
Important: return only the JSON data, without any additional explanation or analysis."""


def _file_part(file_bytes: bytes, file_name: str) -> dict[str, Any]:
    encoded = base64.b64encode(file_bytes).decode("utf-8")
    return {
        "type": "file",
        "file": {
            "filename": file_name,
            "file_data": f"data:application/pdf;base64,{encoded}",
        },
    }


# =============================================================================
# Main Extraction Function
# =============================================================================


async def extract_record(
    file_bytes: bytes,
    file_name: str,
    config: ParserConfig,
    client: Any,  # AsyncOpenAI client
    model: str = "gpt-4.1",
) -> ExtractionRecord:
    """
    Extract one record from a PDF according to a config.

    Args:
        file_bytes: The PDF content, forwarded opaquely.
        file_name: Original file name, used for the record and the file part.
        config: The config defining what fields to extract.
        client: AsyncOpenAI client instance.
        model: Model name to use.

    Returns:
        ExtractionRecord tagged with the file name and config id.

    Raises:
        UnparseableResponseError: If no JSON object can be recovered.
        AIServiceError: If the model call fails or returns nothing.
    """
    prompt = build_extraction_prompt(config)
    logger.info(
        "Extracting '%s' (%d bytes) with config '%s' (%d fields)",
        file_name,
        len(file_bytes),
        config.name,
        len(config.fields),
    )

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        _file_part(file_bytes, file_name),
                    ],
                },
            ],
        )
    except Exception as e:
        logger.exception("Model call failed for '%s'", file_name)
        raise AIServiceError(f"Model processing error: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise AIServiceError("Empty response from the model")

    data, strategy = recover_json_object(content)
    logger.debug("Recovered response for '%s' via %s", file_name, strategy.value)

    validation = validate_extracted_data(data, config)
    if validation.warnings:
        logger.info(
            "Extraction of '%s' produced %d warning(s)",
            file_name,
            len(validation.warnings),
        )

    return ExtractionRecord(
        file_name=file_name,
        schema_id=config.id,
        data=validation.validated_data,
        warnings=validation.warnings,
    )
