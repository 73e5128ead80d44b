"""
Validation and normalization of extracted records.

Handles:
- Shape checks per field type (text, text list, number, boolean, date)
- Coercion of near-miss values (numeric strings, yes/no strings, dates)
- Data cleaning (null removal from arrays)

Nothing here fails an extraction: problems become warnings on the record.
"""

import logging
import re
from datetime import datetime
from typing import Any

from dateutil import parser as date_parser
from price_parser import Price

from ...models import ConfigField, FieldType, ParserConfig

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "y", "1", "on", "是"}
_FALSE_STRINGS = {"false", "no", "n", "0", "off", "否"}


class ValidationResult:
    """Result of data validation."""

    def __init__(self):
        self.validated_data: dict[str, Any] = {}
        self.warnings: list[str] = []


def parse_number(value: Any) -> int | float | None:
    """
    Parse a numeric value, tolerating currency symbols and separators.

    Handles "$1,234.56", "1.234,56 €", "1000 USD" and plain numbers via
    price-parser. Returns None if no number can be found.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not value:
        return None

    # Plain integers/decimals first so "42" stays an int
    if re.fullmatch(r"-?\d+", value):
        return int(value)
    if re.fullmatch(r"-?\d+\.\d+", value):
        return float(value)

    price = Price.fromstring(value)
    if price.amount_float is None:
        return None
    return price.amount_float


def parse_date(value: Any) -> str | None:
    """
    Parse various date formats to YYYY-MM-DD.

    Returns None if parsing fails.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    # ISO format (YYYY-MM-DD) is already normalized
    if re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            return None
        return value

    # Chinese style "2024年1月15日"
    match = re.match(r"^(\d{4})\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日?$", value)
    if match:
        year, month, day = match.groups()
        try:
            return datetime(int(year), int(month), int(day)).strftime("%Y-%m-%d")
        except ValueError:
            return None

    try:
        return date_parser.parse(value).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return None


def _clean_null_from_arrays(
    data: dict[str, Any] | list[Any] | Any,
) -> dict[str, Any] | list[Any] | Any:
    """Recursively remove None/null values from arrays in the data structure."""
    if isinstance(data, dict):
        return {k: _clean_null_from_arrays(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_clean_null_from_arrays(item) for item in data if item is not None]
    else:
        return data


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return isinstance(value, list) and not value


def _validate_text(field: ConfigField, value: Any, warnings: set[str]) -> Any:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        warnings.add(f"Field '{field.key}' expected text, got a list; values were joined")
        return ", ".join(str(v) for v in value if v is not None)
    warnings.add(f"Field '{field.key}' expected text, got: {type(value).__name__}")
    return str(value)


def _validate_text_list(field: ConfigField, value: Any, warnings: set[str]) -> Any:
    if isinstance(value, list):
        cleaned = []
        for item in value:
            if isinstance(item, str):
                cleaned.append(item.strip())
            elif isinstance(item, dict):
                cleaned.append(item)
            else:
                cleaned.append(str(item))
        return cleaned
    if isinstance(value, str):
        warnings.add(f"Field '{field.key}' expected a list, got a single value")
        return [value.strip()]
    warnings.add(f"Field '{field.key}' expected a list, got: {type(value).__name__}")
    return [value]


def _validate_number(field: ConfigField, value: Any, warnings: set[str]) -> Any:
    parsed = parse_number(value)
    if parsed is None:
        warnings.add(f"Field '{field.key}' has invalid number format: '{value}'")
    return parsed


def _validate_boolean(field: ConfigField, value: Any, warnings: set[str]) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lower = value.lower().strip()
        if lower in _TRUE_STRINGS:
            return True
        if lower in _FALSE_STRINGS:
            return False
    warnings.add(f"Field '{field.key}' has ambiguous boolean value: '{value}'")
    return None


def _validate_date(field: ConfigField, value: Any, warnings: set[str]) -> Any:
    parsed = parse_date(value)
    if parsed is None:
        # Keep the original value (prefer raw data over no data)
        warnings.add(f"Field '{field.key}' has unrecognized date format: '{value}'")
        return value
    return parsed


_VALIDATORS = {
    FieldType.TEXT: _validate_text,
    FieldType.TEXT_LIST: _validate_text_list,
    FieldType.NUMBER: _validate_number,
    FieldType.BOOLEAN: _validate_boolean,
    FieldType.DATE: _validate_date,
}


def validate_extracted_data(
    data: dict[str, Any], config: ParserConfig
) -> ValidationResult:
    """
    Validate an extracted object against a config.

    Every config field gets exactly one entry in ``validated_data`` (None when
    the model did not supply a usable value). Keys not in the config are
    dropped.

    Args:
        data: The object recovered from the model response.
        config: The config the object was extracted with.

    Returns:
        ValidationResult with validated_data and warnings.
    """
    result = ValidationResult()
    warnings_set: set[str] = set()
    cleaned = _clean_null_from_arrays(data)

    for field in config.fields:
        value = cleaned.get(field.key)

        if _is_empty(value):
            if field.required:
                warnings_set.add(f"Required field '{field.key}' has empty value")
            if field.type == FieldType.TEXT_LIST and isinstance(value, list):
                result.validated_data[field.key] = []
            else:
                result.validated_data[field.key] = None
            continue

        result.validated_data[field.key] = _VALIDATORS[field.type](field, value, warnings_set)

    extra_keys = sorted(set(cleaned) - {f.key for f in config.fields})
    if extra_keys:
        logger.debug("Dropping keys not in config '%s': %s", config.name, extra_keys)
        warnings_set.add(f"Ignored fields not in config: {', '.join(extra_keys)}")

    result.warnings = sorted(warnings_set)
    return result
