"""
Router for the single-document extraction endpoint.

Handles:
- POST /api/extract: one PDF plus one config, answered with the record data
"""

import logging
import traceback
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..models import ParserConfig
from ..services.ai import AIService, UnparseableResponseError, get_ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["extraction"])


def _error(status_code: int, error: str, details: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "details": details, **extra},
    )


@router.post("/extract")
async def extract_document(
    pdf: Annotated[UploadFile | None, File(description="PDF document")] = None,
    config: Annotated[str | None, Form(description="Config as JSON")] = None,
    ai_service: AIService = Depends(get_ai_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Extract one record from one PDF.

    Returns the validated field values keyed by config field key. Error
    bodies always carry ``error`` and ``details``.
    """
    if pdf is None or not pdf.filename:
        return _error(status.HTTP_400_BAD_REQUEST, "No file provided", "Attach a PDF as 'pdf'")

    try:
        if not config:
            return _error(status.HTTP_400_BAD_REQUEST, "No config provided", "Attach a config as 'config'")
        try:
            parser_config = ParserConfig.model_validate_json(config)
        except ValidationError as e:
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid config", str(e))

        file_bytes = await pdf.read()
        logger.info("Extracting %s (%d bytes) with config '%s'", pdf.filename, len(file_bytes), parser_config.name)

        try:
            record = await ai_service.extract(file_bytes, pdf.filename, parser_config)
        except UnparseableResponseError as e:
            logger.warning("Unparseable model response for %s", pdf.filename)
            return _error(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "Invalid response format",
                str(e),
                rawResponse=e.raw_response,
            )

        if record.warnings:
            logger.info("Extraction warnings for %s: %s", pdf.filename, "; ".join(record.warnings))
        return JSONResponse(content=record.data)

    except Exception as e:
        logger.exception("Failed to process %s", pdf.filename)
        extra = {"stack": traceback.format_exc()} if settings.debug else {}
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to process PDF",
            str(e),
            **extra,
        )
    finally:
        await pdf.close()
