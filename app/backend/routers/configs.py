"""
Router for extraction config management endpoints.

Handles:
- Listing, creating, replacing and deleting configs
- Selecting the active config
- Adding, editing and removing single fields
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import (
    AddFieldRequest,
    ConfigListResponse,
    ParserConfig,
    SaveConfigRequest,
    UpdateFieldRequest,
)
from ..services.config_editor import ConfigEditor, ConfigValidationError, FieldNotFoundError
from ..services.config_registry import (
    ConfigNotFoundError,
    ConfigRegistry,
    DefaultConfigError,
    get_config_registry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/configs", tags=["configs"])


def _get_or_404(registry: ConfigRegistry, config_id: str) -> ParserConfig:
    try:
        return registry.get(config_id)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _get_editable(registry: ConfigRegistry, config_id: str) -> ParserConfig:
    """Look up a config that may be edited; built-ins are read-only."""
    config = _get_or_404(registry, config_id)
    if config.is_default:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Built-in config '{config.name}' cannot be edited",
        )
    return config


def _save(editor: ConfigEditor) -> ParserConfig:
    try:
        return editor.save()
    except ConfigValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except DefaultConfigError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


def _draft(registry: ConfigRegistry, request: SaveConfigRequest, existing: ParserConfig | None) -> ConfigEditor:
    editor = ConfigEditor(on_save=registry.save, existing=existing)
    editor.rename(request.name)
    editor.fields = list(request.fields)
    return editor


@router.get("", response_model=ConfigListResponse)
async def list_configs(
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ConfigListResponse:
    """List all configs, built-ins first."""
    configs = registry.list_configs()
    return ConfigListResponse(configs=configs, total=len(configs), selected_id=registry.selected_id)


@router.get("/selected", response_model=ParserConfig)
async def get_selected_config(
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    try:
        return registry.selected
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{config_id}", response_model=ParserConfig)
async def get_config(
    config_id: str,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    return _get_or_404(registry, config_id)


@router.post("", response_model=ParserConfig, status_code=status.HTTP_201_CREATED)
async def create_config(
    request: SaveConfigRequest,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    """
    Create a config from a name and a field list and select it.

    Returns:
        The saved config with its generated id.
    """
    return _save(_draft(registry, request, existing=None))


@router.put("/{config_id}", response_model=ParserConfig)
async def replace_config(
    config_id: str,
    request: SaveConfigRequest,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    """Replace the name and fields of a custom config, keeping its id."""
    existing = _get_editable(registry, config_id)
    return _save(_draft(registry, request, existing=existing))


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_config(
    config_id: str,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> None:
    try:
        registry.delete(config_id)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DefaultConfigError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/{config_id}/select", response_model=ParserConfig)
async def select_config(
    config_id: str,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    """Make a config the one used for the next processing pass."""
    try:
        return registry.select(config_id)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# Field Editing
# =============================================================================


@router.post("/{config_id}/fields", response_model=ParserConfig, status_code=status.HTTP_201_CREATED)
async def add_field(
    config_id: str,
    request: AddFieldRequest,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    """Append one field to a config."""
    editor = ConfigEditor(on_save=registry.save, existing=_get_editable(registry, config_id))
    try:
        editor.add_field(
            name=request.name,
            key=request.key,
            type=request.type,
            description=request.description,
            required=request.required,
        )
    except ConfigValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return _save(editor)


@router.patch("/{config_id}/fields/{field_id}", response_model=ParserConfig)
async def update_field(
    config_id: str,
    field_id: str,
    request: UpdateFieldRequest,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    editor = ConfigEditor(on_save=registry.save, existing=_get_editable(registry, config_id))
    try:
        editor.update_field(field_id, **request.model_dump(exclude_unset=True))
    except FieldNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConfigValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return _save(editor)


@router.delete("/{config_id}/fields/{field_id}", response_model=ParserConfig)
async def remove_field(
    config_id: str,
    field_id: str,
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ParserConfig:
    """Remove one field; the last field of a config cannot be removed."""
    editor = ConfigEditor(on_save=registry.save, existing=_get_editable(registry, config_id))
    try:
        editor.remove_field(field_id)
    except FieldNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _save(editor)
