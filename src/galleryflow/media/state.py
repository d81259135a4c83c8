"""Item lifecycle transition table.

Enforces the only legal status edges of an :class:`UploadItem` and keeps
the fields that depend on the status consistent with it.
"""

from __future__ import annotations

import dataclasses

from galleryflow.errors import InvalidTransitionError
from galleryflow.models import UploadItem, UploadStatus

VALID_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.QUEUED: frozenset({UploadStatus.UPLOADING}),
    UploadStatus.UPLOADING: frozenset({UploadStatus.COMPLETED, UploadStatus.ERRORED}),
    UploadStatus.ERRORED: frozenset({UploadStatus.QUEUED}),  # retry
    UploadStatus.COMPLETED: frozenset(),
}
"""Valid transitions::

    QUEUED     -> UPLOADING
    UPLOADING  -> COMPLETED | ERRORED
    ERRORED    -> QUEUED  (explicit retry)
    COMPLETED  -> (terminal)
"""


def check_transition(item: UploadItem, new_status: UploadStatus) -> None:
    """Raise if *item* may not move to *new_status*.

    Raises
    ------
    InvalidTransitionError
        If the edge is not in :data:`VALID_TRANSITIONS`.
    """
    allowed = VALID_TRANSITIONS[item.status]
    if new_status not in allowed:
        raise InvalidTransitionError(
            message=(
                f"Invalid state transition: {item.status.value} -> {new_status.value} "
                f"for item {item.id}. "
                f"Allowed transitions from {item.status.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            ),
            context={
                "item_id": item.id,
                "current_status": item.status.value,
                "requested_status": new_status.value,
            },
        )


def to_uploading(item: UploadItem) -> UploadItem:
    check_transition(item, UploadStatus.UPLOADING)
    return dataclasses.replace(item, status=UploadStatus.UPLOADING)


def to_completed(item: UploadItem, remote_key: str, remote_url: str) -> UploadItem:
    """Mark *item* stored remotely and release its source bytes."""
    check_transition(item, UploadStatus.COMPLETED)
    return dataclasses.replace(
        item,
        status=UploadStatus.COMPLETED,
        remote_key=remote_key,
        remote_url=remote_url,
        source=None,
        error=None,
    )


def to_errored(item: UploadItem, error: str) -> UploadItem:
    check_transition(item, UploadStatus.ERRORED)
    return dataclasses.replace(item, status=UploadStatus.ERRORED, error=error)


def to_queued(item: UploadItem) -> UploadItem:
    """Re-queue an errored item for another attempt.

    The source payload is carried over unchanged.
    """
    check_transition(item, UploadStatus.QUEUED)
    if item.source is None:
        raise InvalidTransitionError(
            message=f"Item {item.id} has no source payload to retry",
            context={"item_id": item.id, "current_status": item.status.value},
        )
    return dataclasses.replace(item, status=UploadStatus.QUEUED, error=None)
