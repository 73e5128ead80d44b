"""
In-memory registry of extraction configs.

Seeded with the built-in resume and invoice configs. Built-in configs are
read-only reference schemas: they can be selected but never edited or
deleted. The registry also remembers which config is currently
selected; new results are tagged with that config's id.
"""

import logging
from datetime import datetime, timezone

from ..models import ConfigField, FieldType, ParserConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_ID = "resume"


class ConfigNotFoundError(LookupError):
    """Raised when a config id is unknown."""


class DefaultConfigError(Exception):
    """Raised when trying to edit or delete a built-in config."""


def default_configs() -> list[ParserConfig]:
    """Return fresh copies of the built-in configs."""
    created_at = datetime.now(timezone.utc)
    return [
        ParserConfig(
            id="resume",
            name="Default - Basic resume parsing",
            fields=[
                ConfigField(
                    id="name",
                    name="Name",
                    key="name",
                    type=FieldType.TEXT,
                    description="Candidate's full name",
                    required=True,
                ),
                ConfigField(
                    id="education",
                    name="Education",
                    key="education",
                    type=FieldType.TEXT_LIST,
                    description="List of education background entries",
                    required=True,
                ),
                ConfigField(
                    id="companies",
                    name="Work experience",
                    key="companies",
                    type=FieldType.TEXT_LIST,
                    description="List of companies the candidate has worked for",
                    required=True,
                ),
            ],
            created_at=created_at,
            is_default=True,
        ),
        ParserConfig(
            id="invoice",
            name="Default - Basic invoice parsing",
            fields=[
                ConfigField(
                    id="invoiceCode",
                    name="Invoice code",
                    key="invoiceCode",
                    type=FieldType.TEXT,
                    description="Unique invoice code",
                    required=True,
                ),
                ConfigField(
                    id="invoiceNumber",
                    name="Invoice number",
                    key="invoiceNumber",
                    type=FieldType.TEXT,
                    description="Invoice serial number",
                    required=True,
                ),
                ConfigField(
                    id="date",
                    name="Issue date",
                    key="date",
                    type=FieldType.DATE,
                    description="Date the invoice was issued",
                    required=True,
                ),
                ConfigField(
                    id="amount",
                    name="Amount",
                    key="amount",
                    type=FieldType.NUMBER,
                    description="Invoice total amount",
                    required=True,
                ),
                ConfigField(
                    id="seller",
                    name="Seller",
                    key="seller",
                    type=FieldType.TEXT,
                    description="Name of the selling party",
                    required=True,
                ),
                ConfigField(
                    id="buyer",
                    name="Buyer",
                    key="buyer",
                    type=FieldType.TEXT,
                    description="Name of the buying party",
                    required=True,
                ),
                ConfigField(
                    id="items",
                    name="Line items",
                    key="items",
                    type=FieldType.TEXT_LIST,
                    description="Goods or services listed on the invoice",
                    required=True,
                ),
            ],
            created_at=created_at,
            is_default=True,
        ),
    ]


class ConfigRegistry:
    """Ordered, in-memory collection of configs plus the current selection."""

    def __init__(self, configs: list[ParserConfig] | None = None):
        self._configs: dict[str, ParserConfig] = {}
        for config in default_configs() if configs is None else configs:
            self._configs[config.id] = config
        self._selected_id: str | None = next(iter(self._configs), None)

    def list_configs(self) -> list[ParserConfig]:
        return list(self._configs.values())

    def get(self, config_id: str) -> ParserConfig:
        try:
            return self._configs[config_id]
        except KeyError:
            raise ConfigNotFoundError(f"Config {config_id} not found") from None

    def save(self, config: ParserConfig) -> ParserConfig:
        """
        Insert a new config or replace an existing one with the same id.

        Name and fields are replaced; identity and creation time of an
        existing config are kept. The saved config becomes the selected one.

        Raises:
            DefaultConfigError: If the id belongs to a built-in config.
        """
        existing = self._configs.get(config.id)
        if existing is not None and existing.is_default:
            raise DefaultConfigError(f"Built-in config '{existing.name}' cannot be edited")
        if existing is not None:
            config = config.model_copy(
                update={
                    "created_at": existing.created_at,
                    "is_default": existing.is_default,
                }
            )
            logger.info("Updated config: %s (id=%s)", config.name, config.id)
        else:
            logger.info("Created config: %s (id=%s)", config.name, config.id)
        self._configs[config.id] = config
        self._selected_id = config.id
        return config

    def delete(self, config_id: str) -> None:
        config = self.get(config_id)
        if config.is_default:
            raise DefaultConfigError(f"Built-in config '{config.name}' cannot be deleted")
        del self._configs[config_id]
        if self._selected_id == config_id:
            self._selected_id = (
                DEFAULT_CONFIG_ID
                if DEFAULT_CONFIG_ID in self._configs
                else next(iter(self._configs), None)
            )
        logger.info("Deleted config %s", config_id)

    @property
    def selected(self) -> ParserConfig:
        if self._selected_id is None:
            raise ConfigNotFoundError("No config is selected")
        return self.get(self._selected_id)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def select(self, config_id: str) -> ParserConfig:
        config = self.get(config_id)
        self._selected_id = config_id
        logger.info("Selected config: %s (id=%s)", config.name, config_id)
        return config


_registry: ConfigRegistry | None = None


def get_config_registry() -> ConfigRegistry:
    """Get or create the config registry singleton."""
    global _registry
    if _registry is None:
        _registry = ConfigRegistry()
    return _registry
