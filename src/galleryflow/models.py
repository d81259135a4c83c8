"""Public data models for galleryflow.

This module contains every value type referenced by the public API
surface.  All types are frozen dataclasses: the pipeline never mutates an
item in place, it builds a replacement with :func:`dataclasses.replace` and
swaps the whole collection.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class UploadStatus(str, Enum):
    """Lifecycle states for a gallery item."""

    QUEUED = "queued"
    """Waiting for the scheduler.  Initial state, and the state a retried
    item returns to."""

    UPLOADING = "uploading"
    """Being compressed and transferred.  At most one item at a time."""

    COMPLETED = "completed"
    """Stored remotely; ``remote_key`` and ``remote_url`` are set."""

    ERRORED = "errored"
    """The upload failed; ``error`` holds the message.  May go back to
    ``QUEUED`` through an explicit retry."""


PENDING_STATUSES: frozenset[UploadStatus] = frozenset(
    {UploadStatus.QUEUED, UploadStatus.UPLOADING}
)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceFile:
    """A raw file selected by the user (picker or drag-and-drop).

    Attributes
    ----------
    name:
        Original file name, used for the remote key extension.
    content_type:
        MIME type reported for the file (``""`` when unknown).
    data:
        The file bytes.
    """

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.lower().startswith("image/")

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> SourceFile:
        """Read a file from disk, guessing its MIME type from the extension."""
        p = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(p.name)[0] or ""
        return cls(name=p.name, content_type=content_type, data=p.read_bytes())


@dataclass(frozen=True)
class RemoteImage:
    """An image that is already stored remotely (e.g. loaded with a listing).

    Seeded into a pipeline as a ``COMPLETED`` item without a preview handle.
    """

    remote_key: str
    remote_url: str
    is_featured: bool = False
    id: str | None = None


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PreviewHandle:
    """A locally allocated, revocable display reference for a file."""

    handle_id: str
    url: str


@dataclass(frozen=True)
class UploadItem:
    """Per-file unit of work tracked by the pipeline.

    Attributes
    ----------
    id:
        Opaque identifier, stable for the lifetime of the pipeline.
    name:
        File name, kept after ``source`` is released.
    source:
        The selected file.  ``None`` once the item is ``COMPLETED`` and for
        seeded remote images.
    preview:
        Local preview handle, ``None`` for seeded remote images.
    status:
        Current lifecycle state.
    remote_key / remote_url:
        Storage location; set iff ``status`` is ``COMPLETED``.
    is_featured:
        Explicitly chosen as the primary image.
    error:
        Failure message; set iff ``status`` is ``ERRORED``.
    original_size:
        Byte size of the selection.
    queue_seq:
        Position in the upload queue.  Assigned on intake and again on
        retry, so a retried item waits behind everything queued before it.
    """

    id: str
    name: str
    source: SourceFile | None = field(default=None, repr=False)
    preview: PreviewHandle | None = None
    status: UploadStatus = UploadStatus.QUEUED
    remote_key: str | None = None
    remote_url: str | None = None
    is_featured: bool = False
    error: str | None = None
    original_size: int = 0
    queue_seq: int = 0

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES


def featured_item(items: Iterable[UploadItem]) -> UploadItem | None:
    """Return the item to display as featured.

    The explicitly featured item wins; otherwise the first ``COMPLETED``
    item in enqueue order is featured implicitly.
    """
    first_completed: UploadItem | None = None
    for item in items:
        if item.is_featured:
            return item
        if first_completed is None and item.status == UploadStatus.COMPLETED:
            first_completed = item
    return first_completed


# ---------------------------------------------------------------------------
# Results and snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IntakeResult:
    """Outcome of adding a batch of files.

    Attributes
    ----------
    items:
        Newly queued items, in selection order.
    skipped:
        Names of files excluded because they are not images.
    """

    items: tuple[UploadItem, ...] = ()
    skipped: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImageSummary:
    """Per-image view handed to the owning context.

    Deliberately omits error text: owners only see aggregate counts.
    """

    id: str
    status: UploadStatus
    remote_url: str | None
    remote_key: str | None
    preview_url: str | None
    is_featured: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "remoteUrl": self.remote_url,
            "remoteKey": self.remote_key,
            "previewUrl": self.preview_url,
            "isFeatured": self.is_featured,
        }


@dataclass(frozen=True)
class GallerySnapshot:
    """Aggregate status of the gallery delivered to the owner callback."""

    images: tuple[ImageSummary, ...]
    is_uploading: bool
    uploading_count: int
    queued_count: int = 0
    active_count: int = 0
    completed_count: int = 0
    failed_count: int = 0
    featured_id: str | None = None

    @property
    def pending_count(self) -> int:
        """Items that still need work (queued plus uploading)."""
        return self.uploading_count

    @classmethod
    def from_items(cls, items: Sequence[UploadItem]) -> GallerySnapshot:
        counts = dict.fromkeys(UploadStatus, 0)
        for item in items:
            counts[item.status] += 1
        pending = counts[UploadStatus.QUEUED] + counts[UploadStatus.UPLOADING]
        featured = featured_item(items)
        return cls(
            images=tuple(
                ImageSummary(
                    id=item.id,
                    status=item.status,
                    remote_url=item.remote_url,
                    remote_key=item.remote_key,
                    preview_url=item.preview.url if item.preview else None,
                    is_featured=item.is_featured,
                )
                for item in items
            ),
            is_uploading=pending > 0,
            uploading_count=pending,
            queued_count=counts[UploadStatus.QUEUED],
            active_count=counts[UploadStatus.UPLOADING],
            completed_count=counts[UploadStatus.COMPLETED],
            failed_count=counts[UploadStatus.ERRORED],
            featured_id=featured.id if featured else None,
        )

    def completed_records(self) -> list[dict[str, Any]]:
        """Rows describing stored images, ready to persist with a listing.

        ``sort_order`` follows gallery order over completed images only.
        """
        completed = [
            img for img in self.images
            if img.status == UploadStatus.COMPLETED and img.remote_url
        ]
        return [
            {
                "image_url": img.remote_url,
                "image_key": img.remote_key,
                "sort_order": index,
                "is_featured": img.id == self.featured_id,
            }
            for index, img in enumerate(completed)
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "images": [img.to_dict() for img in self.images],
            "isUploading": self.is_uploading,
            "uploadingCount": self.uploading_count,
        }
