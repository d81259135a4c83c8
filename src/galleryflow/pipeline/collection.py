"""The ordered item collection shared by every pipeline component.

The collection is the only shared mutable state of a pipeline.  It holds an
immutable tuple that is swapped as a whole on every change; no item is ever
patched in place.  Each commit re-checks the collection invariants and then
notifies subscribers with the new tuple.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Iterator

from galleryflow.errors import ItemNotFoundError, PipelineInvariantError
from galleryflow.models import UploadItem, UploadStatus

Listener = Callable[[tuple[UploadItem, ...]], None]


def check_invariants(items: tuple[UploadItem, ...]) -> None:
    """Raise :class:`PipelineInvariantError` if *items* is inconsistent."""
    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise PipelineInvariantError(
            message="Duplicate item ids in collection",
            context={"invariant": "unique_ids", "item_ids": ids},
        )

    uploading = [item.id for item in items if item.status == UploadStatus.UPLOADING]
    if len(uploading) > 1:
        raise PipelineInvariantError(
            message=f"{len(uploading)} items uploading at once",
            context={"invariant": "single_upload", "item_ids": uploading},
        )

    featured = [item.id for item in items if item.is_featured]
    if len(featured) > 1:
        raise PipelineInvariantError(
            message=f"{len(featured)} items marked featured",
            context={"invariant": "single_featured", "item_ids": featured},
        )

    for item in items:
        completed = item.status == UploadStatus.COMPLETED
        if completed != (item.remote_key is not None and item.remote_url is not None):
            raise PipelineInvariantError(
                message=f"Item {item.id} remote location does not match status",
                context={"invariant": "remote_iff_completed", "item_ids": [item.id]},
            )
        if (item.status == UploadStatus.ERRORED) != (item.error is not None):
            raise PipelineInvariantError(
                message=f"Item {item.id} error text does not match status",
                context={"invariant": "error_iff_errored", "item_ids": [item.id]},
            )


class ItemCollection:
    """Ordered, replace-on-write collection of :class:`UploadItem`.

    Parameters
    ----------
    items:
        Initial items, in display order.
    """

    def __init__(self, items: Iterable[UploadItem] = ()) -> None:
        initial = tuple(items)
        check_invariants(initial)
        self._items: tuple[UploadItem, ...] = initial
        self._seq = max((item.queue_seq for item in initial), default=0)
        self._listeners: list[Listener] = []

    # -- reads ---------------------------------------------------------------

    @property
    def items(self) -> tuple[UploadItem, ...]:
        return self._items

    def __iter__(self) -> Iterator[UploadItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    def get(self, item_id: str) -> UploadItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def require(self, item_id: str) -> UploadItem:
        item = self.get(item_id)
        if item is None:
            raise ItemNotFoundError(
                message=f"No gallery item with id {item_id}",
                context={"item_id": item_id},
            )
        return item

    def next_queued(self) -> UploadItem | None:
        """The queued item with the lowest queue position, if any."""
        queued = [item for item in self._items if item.status == UploadStatus.QUEUED]
        if not queued:
            return None
        return min(queued, key=lambda item: item.queue_seq)

    def has_queued(self) -> bool:
        return any(item.status == UploadStatus.QUEUED for item in self._items)

    # -- writes --------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def next_sequence(self) -> int:
        self._seq += 1
        return self._seq

    def commit(self, items: Iterable[UploadItem]) -> None:
        """Replace the whole collection and notify subscribers."""
        new_items = tuple(items)
        check_invariants(new_items)
        self._items = new_items
        for listener in list(self._listeners):
            listener(new_items)

    def append(self, items: Iterable[UploadItem]) -> tuple[UploadItem, ...]:
        """Add *items* at the end, in order, assigning queue positions."""
        added = tuple(
            dataclasses.replace(item, queue_seq=self.next_sequence()) for item in items
        )
        if added:
            self.commit(self._items + added)
        return added

    def map_item(
        self,
        item_id: str,
        fn: Callable[[UploadItem], UploadItem],
    ) -> UploadItem | None:
        """Replace the item *item_id* with ``fn(item)``.

        Returns the new item, or ``None`` without committing anything when
        the id is no longer in the collection.
        """
        current = self.get(item_id)
        if current is None:
            return None
        updated = fn(current)
        self.commit(updated if item.id == item_id else item for item in self._items)
        return updated

    def remove(self, item_id: str) -> UploadItem:
        """Drop *item_id* from the collection and return it."""
        item = self.require(item_id)
        self.commit(other for other in self._items if other.id != item_id)
        return item
