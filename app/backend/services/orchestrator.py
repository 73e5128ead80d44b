"""
Extraction orchestrator: one model request per queued file.

A pass walks the queue snapshot, asks the extractor for one record per file
and isolates failures per file. Progress is published after every file,
success or not, as ``completed / total * 100``.

By default files are processed strictly one after another. With
``max_concurrency > 1`` a semaphore-bounded pool is used instead; records are
still delivered in queue order.
"""

import asyncio
import logging
from typing import Callable, Protocol

from ..models import (
    ExtractionRecord,
    FailureKind,
    FileFailure,
    Notification,
    NotificationLevel,
    ParserConfig,
    ProcessResponse,
)
from .ai.exceptions import AIServiceError, UnparseableResponseError
from .upload_queue import UploadedFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
RecordCallback = Callable[[ExtractionRecord], None]


class Extractor(Protocol):
    async def extract(
        self, file_bytes: bytes, file_name: str, config: ParserConfig
    ) -> ExtractionRecord: ...


def progress_percent(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 1)


async def _process_one(
    file: UploadedFile,
    config: ParserConfig,
    extractor: Extractor,
) -> ExtractionRecord | FileFailure:
    """Run one extraction; every failure is converted into a FileFailure."""
    try:
        record = await extractor.extract(file.content, file.file_name, config)
    except UnparseableResponseError as e:
        logger.warning("Unparseable response for %s: %s", file.file_name, e)
        return FileFailure(
            file_name=file.file_name,
            kind=FailureKind.UNPARSEABLE_RESPONSE,
            message=str(e),
            raw_response=e.raw_response,
        )
    except AIServiceError as e:
        logger.warning("Extraction failed for %s: %s", file.file_name, e)
        return FileFailure(
            file_name=file.file_name,
            kind=FailureKind.UPSTREAM_FAILURE,
            message=str(e),
        )
    except Exception as e:
        logger.exception("Unexpected error processing %s", file.file_name)
        return FileFailure(
            file_name=file.file_name,
            kind=FailureKind.UPSTREAM_FAILURE,
            message=f"Could not process file {file.file_name}: {e}",
        )

    # The queue entry id becomes the record id, as the front end expects
    return record.model_copy(
        update={"id": file.id, "file_name": file.file_name, "schema_id": config.id}
    )


def _notification_for(outcome: ExtractionRecord | FileFailure) -> Notification:
    if isinstance(outcome, FileFailure):
        return Notification(
            level=NotificationLevel.ERROR,
            title="Processing failed",
            message=f"{outcome.file_name}: {outcome.message}",
        )
    return Notification(
        level=NotificationLevel.SUCCESS,
        title="Processed",
        message=f"Finished parsing: {outcome.file_name}",
    )


async def run_extraction_pass(
    files: list[UploadedFile],
    config: ParserConfig,
    extractor: Extractor,
    on_progress: ProgressCallback | None = None,
    on_record: RecordCallback | None = None,
    max_concurrency: int = 1,
) -> ProcessResponse:
    """
    Process every file once and report per-file outcomes.

    Args:
        files: Queue snapshot, in order.
        config: The config to extract with.
        extractor: Object with an async ``extract`` (the AI service).
        on_progress: Called with (completed, total) after each file.
        on_record: Called with each successful record, in queue order.
        max_concurrency: Upper bound of in-flight requests (1 = sequential).

    Returns:
        ProcessResponse with records, failures and notifications.
    """
    total = len(files)
    outcomes: list[ExtractionRecord | FileFailure | None] = [None] * total
    completed = 0
    next_to_deliver = 0

    logger.info(
        "Starting extraction pass: %d file(s), config '%s', max %d concurrent",
        total,
        config.name,
        max_concurrency,
    )

    def finish(index: int, outcome: ExtractionRecord | FileFailure) -> None:
        nonlocal completed, next_to_deliver
        outcomes[index] = outcome
        completed += 1
        # Deliver the contiguous prefix of finished outcomes
        while next_to_deliver < total and outcomes[next_to_deliver] is not None:
            delivered = outcomes[next_to_deliver]
            if on_record is not None and isinstance(delivered, ExtractionRecord):
                on_record(delivered)
            next_to_deliver += 1
        if on_progress is not None:
            on_progress(completed, total)

    if max_concurrency <= 1:
        for index, file in enumerate(files):
            finish(index, await _process_one(file, config, extractor))
    else:
        semaphore = asyncio.Semaphore(max_concurrency)

        async def bounded(index: int, file: UploadedFile) -> None:
            async with semaphore:
                outcome = await _process_one(file, config, extractor)
            finish(index, outcome)

        await asyncio.gather(*(bounded(i, f) for i, f in enumerate(files)))

    results = [o for o in outcomes if isinstance(o, ExtractionRecord)]
    failures = [o for o in outcomes if isinstance(o, FileFailure)]

    logger.info(
        "Extraction pass completed: %d successful, %d failed",
        len(results),
        len(failures),
    )

    return ProcessResponse(
        config_id=config.id,
        results=results,
        failures=failures,
        total_files=total,
        successful_files=len(results),
        failed_files=len(failures),
        progress_percent=progress_percent(completed, total),
        notifications=[_notification_for(o) for o in outcomes if o is not None],
    )
