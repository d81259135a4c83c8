"""Single-flight upload loop.

Exactly one upload is in flight at any time.  The guard is a plain boolean
that :meth:`SequentialUploadScheduler.kick` checks and sets synchronously,
before the worker task performs its first await, so repeated kicks from new
drops or retries during a run are no-ops.

Each run drains the queue one item at a time:

1. Pick the queued item with the lowest queue position.
2. Mark it ``UPLOADING``.
3. Compress the source bytes (falls back to the original).
4. Build a remote key and ``put`` the payload.
5. Resolve the public URL and mark the item ``COMPLETED``, releasing its
   source; or mark it ``ERRORED`` with the failure message.

An exception raised in steps 3 to 5 marks only that item ``ERRORED``; the
run moves on to the next queued item.  Results for an item that was
removed in the meantime are never written back.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable

from galleryflow.config import GalleryConfig
from galleryflow.media.compress import CompressionStage
from galleryflow.media.keys import build_remote_key
from galleryflow.media.state import to_completed, to_errored, to_uploading
from galleryflow.models import UploadItem
from galleryflow.observability import NoopMetricsHook, get_logger
from galleryflow.storage.base import ObjectStore

from .collection import ItemCollection
from .lifecycle import delete_best_effort

log = get_logger("galleryflow.scheduler")

KeyFactory = Callable[[str, str], str]


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class SequentialUploadScheduler:
    """Drive queued items through compression and upload, one at a time.

    Parameters
    ----------
    collection:
        The pipeline's item collection.
    store:
        Destination object store.
    compressor:
        Compression stage applied before each upload.
    owner_id:
        Namespace for remote keys.
    config:
        Pipeline configuration.
    key_factory:
        ``(owner_id, filename) -> key``; defaults to :func:`build_remote_key`.
    """

    def __init__(
        self,
        collection: ItemCollection,
        store: ObjectStore,
        compressor: CompressionStage,
        owner_id: str,
        config: GalleryConfig,
        key_factory: KeyFactory = build_remote_key,
    ) -> None:
        self._collection = collection
        self._store = store
        self._compressor = compressor
        self._owner_id = owner_id
        self._config = config
        self._key_factory = key_factory
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self.runs_started = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def kick(self) -> asyncio.Task[None] | None:
        """Start draining the queue unless a run is already active.

        Must be called from within the running event loop.

        Returns
        -------
        asyncio.Task | None
            The new worker task, or ``None`` if a run is active or nothing
            is queued.
        """
        if self._running:
            return None
        if not self._collection.has_queued():
            return None
        self._running = True
        self.runs_started += 1
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def wait_idle(self) -> None:
        """Wait until no run is active."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        task = self._task
        if task is not None and not task.cancelled():
            # Surface defects raised inside the worker.
            task.result()

    async def aclose(self) -> None:
        """Cancel the active run, if any, and wait for it to finish."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        try:
            while True:
                item = self._collection.next_queued()
                if item is None:
                    break
                await self._process(item)
            log.debug("Upload queue drained", extra={"extra_fields": {"op": "drain"}})
        finally:
            self._running = False

    async def _process(self, item: UploadItem) -> None:
        source = item.source
        if source is None:
            # Queued items always own their source; treat as a failed upload.
            self._collection.map_item(
                item.id, lambda it: to_errored(to_uploading(it), "Source file is missing")
            )
            return

        t0 = time.monotonic()
        self._collection.map_item(item.id, to_uploading)

        key: str | None = None
        try:
            payload = await self._compressor.compress(source)
            if item.id not in self._collection:
                log.info(
                    "Item removed before upload, skipping",
                    extra={"extra_fields": {"op": "upload", "item_id": item.id}},
                )
                return
            key = self._key_factory(self._owner_id, source.name)
            await self._store.put(key, payload.data, payload.content_type)
            url = await self._store.get_public_url(key)
        except Exception as exc:  # noqa: BLE001 - any failure here fails only this item
            message = _error_message(exc)
            self._metrics.increment("galleryflow.upload_failure_total")
            log.warning(
                "Upload failed",
                extra={
                    "extra_fields": {
                        "op": "upload",
                        "item_id": item.id,
                        "remote_key": key,
                        "error": message,
                    }
                },
            )
            self._collection.map_item(item.id, lambda it: to_errored(it, message))
            return

        if item.id not in self._collection:
            log.info(
                "Item removed during upload, discarding result",
                extra={"extra_fields": {"op": "upload", "item_id": item.id, "remote_key": key}},
            )
            if self._config.delete_orphaned_uploads:
                await delete_best_effort(self._store, key, self._metrics, reason="orphan")
            return

        self._collection.map_item(item.id, lambda it: to_completed(it, key, url))
        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.increment("galleryflow.upload_success_total")
        self._metrics.timing("galleryflow.upload_duration_ms", elapsed_ms)
        log.info(
            "Upload complete",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "item_id": item.id,
                    "remote_key": key,
                    "size_before": source.size,
                    "size_after": payload.size,
                }
            },
        )
