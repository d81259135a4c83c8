"""Intake of user-selected files.

Turns a raw batch from a file picker or a drop into queued
:class:`UploadItem` objects, each with its own preview handle.  No network
I/O happens here.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable

from galleryflow.config import GalleryConfig
from galleryflow.errors import NonImageFileError
from galleryflow.models import IntakeResult, SourceFile, UploadItem, UploadStatus
from galleryflow.observability import NoopMetricsHook, get_logger

from .preview import PreviewRegistry

log = get_logger("galleryflow.intake")


def new_item_id() -> str:
    return f"img-{uuid.uuid4().hex}"


def normalize_files(
    files: Iterable[SourceFile],
    previews: PreviewRegistry,
    config: GalleryConfig,
    id_factory: Callable[[], str] = new_item_id,
) -> IntakeResult:
    """Build queued items for the image files in *files*.

    Files whose MIME type is not ``image/*`` are excluded.  By default the
    exclusion is silent to the end user and only logged; with
    ``config.reject_non_images`` the whole batch is refused instead.

    Parameters
    ----------
    files:
        The raw selection, in the order the user made it.
    previews:
        Registry that allocates one preview handle per accepted file.
    config:
        Pipeline configuration.
    id_factory:
        Produces a fresh item id per accepted file.

    Returns
    -------
    IntakeResult
        Accepted items in selection order, plus the names of skipped files.

    Raises
    ------
    NonImageFileError
        If ``config.reject_non_images`` is set and the batch contains a
        non-image file.  No item or handle is created in that case.
    """
    batch = list(files)
    accepted = [f for f in batch if f.is_image]
    rejected = [f for f in batch if not f.is_image]
    metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    if rejected:
        if config.reject_non_images:
            raise NonImageFileError(
                message=f"{len(rejected)} selected file(s) are not images",
                context={
                    "names": [f.name for f in rejected],
                    "content_types": [f.content_type for f in rejected],
                },
            )
        metrics.increment("galleryflow.intake_skipped_total", value=len(rejected))
        log.info(
            "Skipped non-image files",
            extra={
                "extra_fields": {
                    "op": "intake",
                    "skipped": [f.name for f in rejected],
                    "content_types": [f.content_type for f in rejected],
                }
            },
        )

    items = tuple(
        UploadItem(
            id=id_factory(),
            name=f.name,
            source=f,
            preview=previews.create(f),
            status=UploadStatus.QUEUED,
            original_size=f.size,
        )
        for f in accepted
    )
    return IntakeResult(items=items, skipped=tuple(f.name for f in rejected))
