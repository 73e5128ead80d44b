"""
Recovery of a JSON object from free-text model output.

Model answers are expected to be "JSON, possibly wrapped in commentary or a
markdown fence". Three strategies are tried in order and the first one that
yields a JSON object wins:

1. parse the whole text,
2. parse the first fenced block (```json ... ``` or ``` ... ```),
3. parse the span from the first ``{`` to the last ``}``.

No schema validation happens here; see ``validation.py``.
"""

import json
import logging
import re
from enum import Enum
from typing import Any

from .exceptions import UnparseableResponseError

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class RecoveryStrategy(str, Enum):
    """Which step of the recovery ladder produced the object."""

    DIRECT = "direct"
    FENCED_BLOCK = "fenced_block"
    BRACE_SPAN = "brace_span"


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def _fenced_block(text: str) -> str | None:
    match = _FENCED_BLOCK.search(text)
    return match.group(1).strip() if match else None


def _brace_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def recover_json_object(text: str) -> tuple[dict[str, Any], RecoveryStrategy]:
    """
    Recover a JSON object from raw model text.

    Args:
        text: The model's answer, unmodified.

    Returns:
        Tuple of (parsed object, strategy that succeeded).

    Raises:
        UnparseableResponseError: If none of the strategies yields an object.
            The original text is attached as ``raw_response``.
    """
    parsed = _loads_object(text.strip()) if text else None
    if parsed is not None:
        return parsed, RecoveryStrategy.DIRECT

    block = _fenced_block(text or "")
    if block is not None:
        parsed = _loads_object(block)
        if parsed is not None:
            logger.info("Recovered JSON from fenced code block")
            return parsed, RecoveryStrategy.FENCED_BLOCK

    span = _brace_span(text or "")
    if span is not None:
        parsed = _loads_object(span)
        if parsed is not None:
            logger.info("Recovered JSON from brace-delimited span")
            return parsed, RecoveryStrategy.BRACE_SPAN

    logger.warning("Unparseable model response: %s", (text or "")[:500])
    raise UnparseableResponseError(text)


def parse_model_response(text: str) -> dict[str, Any]:
    """Convenience wrapper returning only the recovered object."""
    parsed, _ = recover_json_object(text)
    return parsed
