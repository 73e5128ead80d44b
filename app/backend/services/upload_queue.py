"""
Upload queue for PDFs waiting to be processed.

Candidates are checked before anything is enqueued: the content type must
indicate a PDF, the size must be within the per-file ceiling, and the file
name must not already be queued. Rejections never touch the rest of the
batch.
"""

import logging
import uuid
from dataclasses import dataclass, field

from ..config import DEFAULT_MAX_UPLOAD_BYTES
from ..models import QueuedFileResponse, RejectedFile, RejectionReason

logger = logging.getLogger(__name__)


class QueueItemNotFound(LookupError):
    """Raised when removing an id that is not queued."""


@dataclass
class UploadedFile:
    """A file held in the queue, content kept in memory."""

    file_name: str
    content: bytes
    content_type: str = "application/pdf"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def to_response(self) -> QueuedFileResponse:
        return QueuedFileResponse(
            id=self.id,
            file_name=self.file_name,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
        )


@dataclass
class AddFilesResult:
    accepted: list[UploadedFile] = field(default_factory=list)
    rejected: list[RejectedFile] = field(default_factory=list)

    def names_for(self, reason: RejectionReason) -> list[str]:
        return [r.file_name for r in self.rejected if r.reason == reason]


def is_pdf_content_type(content_type: str | None) -> bool:
    return bool(content_type) and "pdf" in content_type.lower()


class UploadQueue:
    """Ordered queue of pending uploads."""

    def __init__(self, max_file_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.max_file_bytes = max_file_bytes
        self._items: list[UploadedFile] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[UploadedFile]:
        return list(self._items)

    def add(self, files: list[UploadedFile]) -> AddFilesResult:
        """
        Merge candidates into the queue.

        Args:
            files: Candidate files in drop/selection order.

        Returns:
            AddFilesResult with the enqueued files and the rejections.
        """
        result = AddFilesResult()
        queued_names = {f.file_name for f in self._items}

        for candidate in files:
            if not is_pdf_content_type(candidate.content_type):
                result.rejected.append(
                    RejectedFile(
                        file_name=candidate.file_name,
                        reason=RejectionReason.INVALID_TYPE,
                        message=f"Not a PDF file (content type: {candidate.content_type or 'unknown'})",
                    )
                )
                continue

            if candidate.size_bytes > self.max_file_bytes:
                result.rejected.append(
                    RejectedFile(
                        file_name=candidate.file_name,
                        reason=RejectionReason.TOO_LARGE,
                        message=(
                            f"File exceeds the {self.max_file_bytes // (1024 * 1024)} MB limit "
                            f"({candidate.size_bytes} bytes)"
                        ),
                    )
                )
                continue

            if candidate.file_name in queued_names:
                result.rejected.append(
                    RejectedFile(
                        file_name=candidate.file_name,
                        reason=RejectionReason.DUPLICATE,
                        message="A file with this name is already queued",
                    )
                )
                continue

            queued_names.add(candidate.file_name)
            self._items.append(candidate)
            result.accepted.append(candidate)

        logger.info(
            "Queue add: %d accepted, %d rejected (queue size %d)",
            len(result.accepted),
            len(result.rejected),
            len(self._items),
        )
        return result

    def remove(self, file_id: str) -> UploadedFile:
        for index, item in enumerate(self._items):
            if item.id == file_id:
                return self._items.pop(index)
        raise QueueItemNotFound(f"File {file_id} is not queued")

    def discard(self, file_ids: set[str]) -> None:
        """Drop the given ids; ids that are not queued are ignored."""
        self._items = [item for item in self._items if item.id not in file_ids]

    def clear(self) -> None:
        self._items.clear()
