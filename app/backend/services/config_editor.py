"""
Editing of a config's field list.

The editor works on a draft copy of a config. Nothing leaves the editor
until ``save()``, which validates the draft and hands the resulting config
to the save callback.
"""

import logging
from typing import Any, Callable

from pydantic import ValidationError

from ..models import ConfigField, FieldType, ParserConfig

logger = logging.getLogger(__name__)


class ConfigValidationError(ValueError):
    """Raised when a draft config or field is not valid."""


class FieldNotFoundError(LookupError):
    """Raised when a field id is not part of the draft."""


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


class ConfigEditor:
    """
    Draft editor for one config.

    Args:
        on_save: Called with the validated config; its return value (if any)
            is returned from ``save()``.
        existing: Config to edit. None starts a new, empty draft.
    """

    def __init__(
        self,
        on_save: Callable[[ParserConfig], ParserConfig | None],
        existing: ParserConfig | None = None,
    ):
        self._on_save = on_save
        self._existing = existing
        self.name: str = existing.name if existing else ""
        self.fields: list[ConfigField] = [f.model_copy() for f in existing.fields] if existing else []

    def _index_of(self, field_id: str) -> int:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        raise FieldNotFoundError(f"Field {field_id} not found")

    def rename(self, name: str) -> None:
        self.name = name

    def add_field(
        self,
        name: str,
        key: str,
        type: FieldType = FieldType.TEXT,
        description: str = "",
        required: bool = False,
    ) -> ConfigField:
        try:
            field = ConfigField(
                name=name,
                key=key,
                type=type,
                description=description,
                required=required,
            )
        except ValidationError as e:
            raise ConfigValidationError(_first_error(e)) from e
        self.fields.append(field)
        return field

    def update_field(self, field_id: str, **updates: Any) -> ConfigField:
        """Apply a partial update; None values leave the attribute unchanged."""
        index = self._index_of(field_id)
        current = self.fields[index].model_dump()
        current.update({k: v for k, v in updates.items() if v is not None})
        current["id"] = field_id
        try:
            field = ConfigField.model_validate(current)
        except ValidationError as e:
            raise ConfigValidationError(_first_error(e)) from e
        self.fields[index] = field
        return field

    def remove_field(self, field_id: str) -> None:
        del self.fields[self._index_of(field_id)]

    def save(self) -> ParserConfig:
        """
        Validate the draft and invoke the save callback.

        Raises:
            ConfigValidationError: Blank name, no fields, or duplicate keys.
        """
        if not self.name.strip():
            raise ConfigValidationError("Config name must not be blank")
        if not self.fields:
            raise ConfigValidationError("Add at least one field to the config")

        values: dict[str, Any] = {"name": self.name, "fields": self.fields}
        if self._existing is not None:
            values["id"] = self._existing.id
            values["created_at"] = self._existing.created_at
            values["is_default"] = self._existing.is_default
        try:
            config = ParserConfig(**values)
        except ValidationError as e:
            raise ConfigValidationError(_first_error(e)) from e

        saved = self._on_save(config)
        logger.info("Saved config '%s' with %d field(s)", config.name, len(config.fields))
        return saved if saved is not None else config
