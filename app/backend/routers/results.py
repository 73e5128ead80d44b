"""
Router for processing passes and results.

Handles:
- Running a pass over the queue and polling its progress
- Listing and clearing results
- The rendered result table
- xlsx / JSON / CSV export
"""

import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from ..config import Settings, get_settings
from ..models import (
    ParserConfig,
    ProcessResponse,
    ProgressResponse,
    ResultListResponse,
    ResultTableResponse,
)
from ..services.ai import AIService, get_ai_service
from ..services.config_registry import ConfigNotFoundError, ConfigRegistry, get_config_registry
from ..services.exporter import ExportFormat, NothingToExportError, export_records
from ..services.results_table import build_table
from ..services.workspace import (
    EmptyQueueError,
    PassInProgressError,
    Workspace,
    get_workspace,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["results"])


def _resolve_config(registry: ConfigRegistry, config_id: str | None) -> ParserConfig:
    try:
        return registry.get(config_id) if config_id else registry.selected
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/process", response_model=ProcessResponse)
async def process_queue(
    config_id: str | None = None,
    workspace: Workspace = Depends(get_workspace),
    registry: ConfigRegistry = Depends(get_config_registry),
    ai_service: AIService = Depends(get_ai_service),
    settings: Settings = Depends(get_settings),
) -> ProcessResponse:
    """
    Run one extraction pass over every queued file.

    Uses ``config_id`` when given, otherwise the selected config. Failed
    files are reported in the response; they never stop the pass. The queue
    is empty afterwards.
    """
    config = _resolve_config(registry, config_id)
    try:
        return await workspace.process(
            config,
            ai_service,
            max_concurrency=settings.max_concurrent_extractions,
        )
    except PassInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except EmptyQueueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(workspace: Workspace = Depends(get_workspace)) -> ProgressResponse:
    return workspace.progress()


@router.get("/results", response_model=ResultListResponse)
async def list_results(workspace: Workspace = Depends(get_workspace)) -> ResultListResponse:
    """All records of the session, oldest first."""
    return ResultListResponse(results=workspace.results, total=len(workspace.results))


@router.delete("/results", status_code=status.HTTP_204_NO_CONTENT)
async def clear_results(workspace: Workspace = Depends(get_workspace)) -> None:
    try:
        workspace.clear_results()
    except PassInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/results/table", response_model=ResultTableResponse)
async def get_result_table(
    config_id: str | None = None,
    workspace: Workspace = Depends(get_workspace),
    registry: ConfigRegistry = Depends(get_config_registry),
) -> ResultTableResponse:
    """Render the results produced under a config (default: the selected one)."""
    config = _resolve_config(registry, config_id)
    return build_table(workspace.results, config)


@router.get("/results/export/{fmt}")
async def export_results(
    fmt: ExportFormat,
    workspace: Workspace = Depends(get_workspace),
) -> Response:
    """
    Download all results as a file.

    Returns 204 with no body when there is nothing to export.
    """
    try:
        artifact = export_records(workspace.results, fmt)
    except NothingToExportError:
        logger.info("Export requested with no results; nothing to do")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return StreamingResponse(
        io.BytesIO(artifact.content),
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )
