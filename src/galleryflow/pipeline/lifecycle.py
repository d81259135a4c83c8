"""User-driven item mutations: remove, retry, and featured selection."""

from __future__ import annotations

import dataclasses

from galleryflow.media.preview import PreviewRegistry
from galleryflow.media.state import to_queued
from galleryflow.models import UploadItem
from galleryflow.observability import MetricsHook, get_logger
from galleryflow.storage.base import ObjectStore

from .collection import ItemCollection

log = get_logger("galleryflow.lifecycle")


async def delete_best_effort(
    store: ObjectStore,
    key: str,
    metrics: MetricsHook,
    *,
    reason: str = "remove",
) -> bool:
    """Delete *key* from *store*, logging instead of raising on failure.

    A failed delete leaves an orphaned remote object behind; no
    reconciliation is attempted.

    Returns
    -------
    bool
        ``True`` if the store reported success.
    """
    try:
        await store.delete(key)
    except Exception as exc:  # noqa: BLE001 - deletion is best-effort
        metrics.increment("galleryflow.delete_failure_total", tags={"reason": reason})
        log.warning(
            "Remote delete failed, object left in storage",
            extra={
                "extra_fields": {
                    "op": "delete",
                    "reason": reason,
                    "remote_key": key,
                    "error": str(exc) or type(exc).__name__,
                }
            },
        )
        return False
    log.debug(
        "Remote object deleted",
        extra={"extra_fields": {"op": "delete", "reason": reason, "remote_key": key}},
    )
    return True


class ItemLifecycleManager:
    """Apply remove / retry / feature actions to the shared collection.

    Parameters
    ----------
    collection:
        The pipeline's item collection.
    store:
        Object store used for best-effort deletes.
    previews:
        Registry that owns the items' preview handles.
    metrics:
        Metrics backend.
    """

    def __init__(
        self,
        collection: ItemCollection,
        store: ObjectStore,
        previews: PreviewRegistry,
        metrics: MetricsHook,
    ) -> None:
        self._collection = collection
        self._store = store
        self._previews = previews
        self._metrics = metrics

    async def remove(self, item_id: str) -> UploadItem:
        """Remove an item from the gallery.

        The item leaves the collection and its preview handle is revoked
        before any remote call, so a removal is never undone by a slow or
        failing delete.  A queued item is thereby cancelled without any
        network call; an uploading item's eventual result is discarded by
        the scheduler.

        Raises
        ------
        ItemNotFoundError
            If *item_id* is not in the gallery.
        """
        item = self._collection.remove(item_id)
        if item.preview is not None:
            self._previews.revoke(item.preview)
        log.info(
            "Item removed",
            extra={
                "extra_fields": {
                    "op": "remove",
                    "item_id": item.id,
                    "status": item.status.value,
                    "remote_key": item.remote_key,
                }
            },
        )
        if item.remote_key is not None:
            await delete_best_effort(self._store, item.remote_key, self._metrics)
        return item

    def retry(self, item_id: str) -> UploadItem:
        """Send an errored item back to the end of the upload queue.

        Raises
        ------
        ItemNotFoundError
            If *item_id* is not in the gallery.
        InvalidTransitionError
            If the item is not ``ERRORED``.
        """
        item = self._collection.require(item_id)
        updated = dataclasses.replace(
            to_queued(item), queue_seq=self._collection.next_sequence()
        )
        self._collection.map_item(item_id, lambda _: updated)
        log.info(
            "Item queued for retry",
            extra={"extra_fields": {"op": "retry", "item_id": item_id}},
        )
        return updated

    def set_featured(self, item_id: str) -> UploadItem:
        """Make *item_id* the only featured item.

        Rewrites every item so exactly the target carries the flag.
        """
        self._collection.require(item_id)
        self._collection.commit(
            dataclasses.replace(item, is_featured=item.id == item_id)
            for item in self._collection
        )
        return self._collection.require(item_id)

    def clear_featured(self) -> None:
        """Drop the explicit choice; the first completed item shows as featured."""
        self._collection.commit(
            dataclasses.replace(item, is_featured=False) for item in self._collection
        )
