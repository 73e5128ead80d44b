"""
AI service package for field extraction from PDF documents.

This package provides modular AI functionality split into:
- extraction: Prompt construction and the model call
- parsing: Recovery of a JSON object from free-text model output
- validation: Shape checks and normalization against a config

The AIService class owns the OpenAI client and delegates to these modules.
"""

import logging

from ...config import get_settings
from ...models import ExtractionRecord, ParserConfig
from .exceptions import AIServiceError, UnparseableResponseError
from .extraction import build_extraction_prompt, extract_record
from .parsing import RecoveryStrategy, parse_model_response, recover_json_object
from .validation import ValidationResult, parse_date, parse_number, validate_extracted_data

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "RecoveryStrategy",
    "UnparseableResponseError",
    "ValidationResult",
    "build_extraction_prompt",
    "extract_record",
    "get_ai_service",
    "parse_date",
    "parse_model_response",
    "parse_number",
    "recover_json_object",
    "validate_extracted_data",
]


class AIService:
    """
    Service for AI-powered field extraction.

    Sends each PDF to an OpenAI model with a config-derived prompt and turns
    the answer into an ExtractionRecord.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, read from settings.
            model: OpenAI model to use (must accept PDF file input).
            timeout: Request timeout in seconds.
        """
        if api_key is None or model is None or timeout is None:
            settings = get_settings()
            api_key = settings.openai_api_key if api_key is None else api_key
            model = model or settings.openai_model
            timeout = settings.openai_timeout_seconds if timeout is None else timeout

        if not api_key:
            raise AIServiceError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
            )

        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def build_prompt(self, config: ParserConfig) -> str:
        return build_extraction_prompt(config)

    async def extract(
        self,
        file_bytes: bytes,
        file_name: str,
        config: ParserConfig,
    ) -> ExtractionRecord:
        """
        Extract one record from a PDF.

        Raises:
            UnparseableResponseError: If the answer cannot be recovered as JSON.
            AIServiceError: If the model call fails.
        """
        return await extract_record(
            file_bytes,
            file_name,
            config,
            client=self.client,
            model=self.model,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
