"""
Router for the upload queue endpoints.

Handles:
- Adding PDFs to the queue (type, size and duplicate checks)
- Listing the queue
- Removing one file or clearing the queue
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ..models import (
    AddFilesResponse,
    Notification,
    NotificationLevel,
    QueueResponse,
    RejectionReason,
)
from ..services.upload_queue import AddFilesResult, QueueItemNotFound, UploadedFile
from ..services.workspace import PassInProgressError, Workspace, get_workspace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["queue"])

_REJECTION_TITLES = {
    RejectionReason.INVALID_TYPE: ("Invalid file type", "Only PDF files are accepted"),
    RejectionReason.TOO_LARGE: ("File too large", "Files must not exceed {limit} MB"),
    RejectionReason.DUPLICATE: ("Duplicate files skipped", "Already in the queue"),
}


def _ensure_idle(workspace: Workspace) -> None:
    try:
        workspace.ensure_idle()
    except PassInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


def _queue_response(workspace: Workspace) -> QueueResponse:
    items = [f.to_response() for f in workspace.queue.items]
    return QueueResponse(items=items, total=len(items))


def build_notifications(result: AddFilesResult, max_file_bytes: int) -> list[Notification]:
    """One notification per rejection reason, naming the affected files."""
    notifications = []
    for reason, (title, hint) in _REJECTION_TITLES.items():
        names = result.names_for(reason)
        if not names:
            continue
        hint = hint.format(limit=max_file_bytes // (1024 * 1024))
        notifications.append(
            Notification(
                level=NotificationLevel.ERROR,
                title=title,
                message=f"{hint}: {', '.join(names)}",
            )
        )
    if result.accepted:
        notifications.append(
            Notification(
                level=NotificationLevel.SUCCESS,
                title="Files added",
                message=f"{len(result.accepted)} file(s) added to the queue",
            )
        )
    return notifications


@router.get("", response_model=QueueResponse)
async def list_queue(workspace: Workspace = Depends(get_workspace)) -> QueueResponse:
    return _queue_response(workspace)


@router.post("", response_model=AddFilesResponse)
async def add_files(
    files: Annotated[list[UploadFile], File(description="PDF files to queue")],
    workspace: Workspace = Depends(get_workspace),
) -> AddFilesResponse:
    """
    Add files to the queue.

    Invalid files are reported, never raised: the response lists what was
    accepted, what was rejected and why, and the resulting queue.
    """
    _ensure_idle(workspace)

    candidates = []
    for upload in files:
        try:
            content = await upload.read()
        finally:
            await upload.close()
        candidates.append(
            UploadedFile(
                file_name=upload.filename or "unnamed",
                content=content,
                content_type=upload.content_type or "",
            )
        )

    # A pass may have started while the uploads were being read
    _ensure_idle(workspace)
    result = workspace.queue.add(candidates)
    for rejected in result.rejected:
        logger.warning("Rejected %s: %s", rejected.file_name, rejected.message)

    return AddFilesResponse(
        accepted=[f.to_response() for f in result.accepted],
        rejected=result.rejected,
        queue=[f.to_response() for f in workspace.queue.items],
        notifications=build_notifications(result, workspace.queue.max_file_bytes),
    )


@router.delete("/{file_id}", response_model=QueueResponse)
async def remove_file(
    file_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> QueueResponse:
    _ensure_idle(workspace)
    try:
        removed = workspace.queue.remove(file_id)
    except QueueItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.info("Removed %s from the queue", removed.file_name)
    return _queue_response(workspace)


@router.delete("", response_model=QueueResponse)
async def clear_queue(workspace: Workspace = Depends(get_workspace)) -> QueueResponse:
    _ensure_idle(workspace)
    workspace.queue.clear()
    logger.info("Cleared the upload queue")
    return _queue_response(workspace)
