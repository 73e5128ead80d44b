"""
In-memory session state: upload queue, result list and pass progress.

There is one workspace per process. Results live until they are cleared or
the process restarts.
"""

import logging

from ..config import get_settings
from ..models import ExtractionRecord, ParserConfig, ProcessResponse, ProgressResponse
from .orchestrator import Extractor, progress_percent, run_extraction_pass
from .upload_queue import UploadQueue

logger = logging.getLogger(__name__)


class PassInProgressError(Exception):
    """Raised when a pass is already running."""


class EmptyQueueError(Exception):
    """Raised when processing an empty queue."""


class Workspace:
    """Queue, results and progress of the single user session."""

    def __init__(self, max_file_bytes: int | None = None):
        if max_file_bytes is None:
            max_file_bytes = get_settings().max_upload_bytes
        self.queue = UploadQueue(max_file_bytes=max_file_bytes)
        self.results: list[ExtractionRecord] = []
        self.processing = False
        self.completed_files = 0
        self.total_files = 0

    def ensure_idle(self) -> None:
        if self.processing:
            raise PassInProgressError("A processing pass is already running")

    def progress(self) -> ProgressResponse:
        return ProgressResponse(
            processing=self.processing,
            progress_percent=progress_percent(self.completed_files, self.total_files),
            completed_files=self.completed_files,
            total_files=self.total_files,
        )

    def _on_progress(self, completed: int, total: int) -> None:
        self.completed_files = completed
        self.total_files = total
        logger.info("Progress: %d/%d (%.1f%%)", completed, total, progress_percent(completed, total))

    async def process(
        self,
        config: ParserConfig,
        extractor: Extractor,
        max_concurrency: int = 1,
    ) -> ProcessResponse:
        """
        Run one pass over the queue with ``config``.

        The processed files leave the queue and progress is reset
        afterwards, however many files failed.

        Raises:
            PassInProgressError: If a pass is already running.
            EmptyQueueError: If nothing is queued.
        """
        self.ensure_idle()
        files = self.queue.items
        if not files:
            raise EmptyQueueError("No files are queued; upload PDF files first")

        self.processing = True
        self.completed_files = 0
        self.total_files = len(files)
        try:
            return await run_extraction_pass(
                files,
                config,
                extractor,
                on_progress=self._on_progress,
                on_record=self.results.append,
                max_concurrency=max_concurrency,
            )
        finally:
            self.queue.discard({f.id for f in files})
            self.processing = False
            self.completed_files = 0
            self.total_files = 0

    def clear_results(self) -> int:
        self.ensure_idle()
        count = len(self.results)
        self.results.clear()
        logger.info("Cleared %d result(s)", count)
        return count


_workspace: Workspace | None = None


def get_workspace() -> Workspace:
    """Get or create the workspace singleton."""
    global _workspace
    if _workspace is None:
        _workspace = Workspace()
    return _workspace
