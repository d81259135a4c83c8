"""The gallery upload pipeline.

:class:`GalleryUploadPipeline` is the object an embedding application
holds for one image gallery (one property/listing being edited).  It owns
the item collection and wires intake, the upload scheduler, lifecycle
actions and the status publisher together.

Usage::

    from galleryflow import GalleryConfig, GalleryUploadPipeline, SourceFile

    config = GalleryConfig(storage_url="https://xyz.supabase.co", storage_key="...")

    async with GalleryUploadPipeline.from_config("seller-42", config,
                                                 on_change=render) as gallery:
        gallery.add_files([SourceFile.from_path("lobby.jpg")])
        await gallery.wait_settled()
        rows = gallery.snapshot().completed_records()
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from galleryflow.config import GalleryConfig
from galleryflow.errors import PipelineClosedError, UploadFailedError
from galleryflow.media.compress import CompressionStage
from galleryflow.media.intake import new_item_id, normalize_files
from galleryflow.media.keys import build_remote_key, check_owner_id
from galleryflow.media.preview import PreviewRegistry
from galleryflow.models import (
    GallerySnapshot,
    IntakeResult,
    RemoteImage,
    SourceFile,
    UploadItem,
    UploadStatus,
    featured_item,
)
from galleryflow.observability import NoopMetricsHook, get_logger
from galleryflow.storage.base import ObjectStore

from .collection import ItemCollection
from .lifecycle import ItemLifecycleManager
from .publisher import AggregateStatusPublisher, StatusCallback
from .scheduler import KeyFactory, SequentialUploadScheduler

log = get_logger("galleryflow.gallery")


def _seed_items(
    images: Iterable[RemoteImage],
    id_factory: Callable[[], str],
) -> list[UploadItem]:
    return [
        UploadItem(
            id=image.id or id_factory(),
            name=image.remote_key.rsplit("/", 1)[-1],
            status=UploadStatus.COMPLETED,
            remote_key=image.remote_key,
            remote_url=image.remote_url,
            is_featured=image.is_featured,
        )
        for image in images
    ]


class GalleryUploadPipeline:
    """Upload pipeline for one image gallery.

    All methods must be called from the event loop that runs the pipeline.

    Parameters
    ----------
    owner_id:
        Identifier of the owning entity; prefixes every remote key.
    store:
        Object store that receives the uploads.
    config:
        Pipeline configuration.  Defaults to ``GalleryConfig()``.
    on_change:
        Callback receiving debounced :class:`GallerySnapshot` objects.
    initial_images:
        Images already stored for this gallery; seeded as completed items.
    compressor:
        Compression stage override.
    id_factory:
        Item id generator.
    key_factory:
        Remote key builder ``(owner_id, filename) -> key``.
    owns_store:
        Close *store* (via its ``aclose`` coroutine) on teardown.
    """

    def __init__(
        self,
        owner_id: str,
        store: ObjectStore,
        config: GalleryConfig | None = None,
        *,
        on_change: StatusCallback | None = None,
        initial_images: Iterable[RemoteImage] = (),
        compressor: CompressionStage | None = None,
        id_factory: Callable[[], str] = new_item_id,
        key_factory: KeyFactory = build_remote_key,
        owns_store: bool = False,
    ) -> None:
        self._config = config or GalleryConfig()
        self._owner_id = check_owner_id(owner_id)
        self._store = store
        self._owns_store = owns_store
        self._id_factory = id_factory
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._closed = False

        self._previews = PreviewRegistry()
        self._collection = ItemCollection(_seed_items(initial_images, id_factory))
        self._publisher = AggregateStatusPublisher(on_change, self._config.debounce_seconds)
        self._scheduler = SequentialUploadScheduler(
            self._collection,
            store,
            compressor or CompressionStage(self._config),
            owner_id,
            self._config,
            key_factory=key_factory,
        )
        self._lifecycle = ItemLifecycleManager(
            self._collection, store, self._previews, self._metrics
        )
        self._collection.subscribe(self._on_collection_change)

    @classmethod
    def from_config(
        cls,
        owner_id: str,
        config: GalleryConfig,
        **kwargs: Any,
    ) -> GalleryUploadPipeline:
        """Build a pipeline backed by :class:`SupabaseObjectStore`."""
        from galleryflow.storage.supabase import SupabaseObjectStore

        store = SupabaseObjectStore(config)
        return cls(owner_id, store, config, owns_store=True, **kwargs)

    # -- reads ---------------------------------------------------------------

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def items(self) -> tuple[UploadItem, ...]:
        return self._collection.items

    @property
    def featured(self) -> UploadItem | None:
        return featured_item(self._collection)

    @property
    def previews(self) -> PreviewRegistry:
        return self._previews

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_uploading(self) -> bool:
        return any(item.is_pending for item in self._collection)

    def get(self, item_id: str) -> UploadItem:
        return self._collection.require(item_id)

    def snapshot(self) -> GallerySnapshot:
        """Current aggregate status, without waiting for the debounce."""
        return GallerySnapshot.from_items(self._collection.items)

    # -- user actions --------------------------------------------------------

    def add_files(self, files: Iterable[SourceFile]) -> IntakeResult:
        """Queue the image files of a picker selection or drop.

        Returns immediately; uploads proceed in the background.
        """
        self._ensure_open()
        result = normalize_files(files, self._previews, self._config, self._id_factory)
        added = self._collection.append(result.items)
        log.info(
            "Files queued",
            extra={
                "extra_fields": {
                    "op": "intake",
                    "owner_id": self._owner_id,
                    "queued": len(added),
                    "skipped": len(result.skipped),
                }
            },
        )
        return IntakeResult(items=added, skipped=result.skipped)

    async def remove(self, item_id: str) -> UploadItem:
        self._ensure_open()
        return await self._lifecycle.remove(item_id)

    def retry(self, item_id: str) -> UploadItem:
        self._ensure_open()
        return self._lifecycle.retry(item_id)

    def retry_failed(self) -> list[UploadItem]:
        """Retry every errored item, in gallery order."""
        self._ensure_open()
        failed = [item.id for item in self._collection if item.status == UploadStatus.ERRORED]
        return [self._lifecycle.retry(item_id) for item_id in failed]

    def set_featured(self, item_id: str) -> UploadItem:
        self._ensure_open()
        return self._lifecycle.set_featured(item_id)

    def clear_featured(self) -> None:
        self._ensure_open()
        self._lifecycle.clear_featured()

    def raise_for_errors(self) -> None:
        """Raise :class:`UploadFailedError` if any item is ``ERRORED``."""
        failed = [item for item in self._collection if item.status == UploadStatus.ERRORED]
        if failed:
            raise UploadFailedError(
                message=f"{len(failed)} image upload(s) failed",
                context={
                    "item_ids": [item.id for item in failed],
                    "errors": [item.error for item in failed],
                },
            )

    # -- waiting -------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait until no item is queued or uploading."""
        await self._scheduler.wait_idle()

    async def wait_settled(self) -> None:
        """Wait until uploads are idle and the last status was published."""
        while True:
            await self._scheduler.wait_idle()
            await self._publisher.wait_flushed()
            if not self._scheduler.is_running and not self._publisher.pending:
                return

    # -- teardown ------------------------------------------------------------

    async def aclose(self) -> None:
        """Tear the pipeline down.

        Cancels the pending status notification, cancels the active upload
        run, and revokes every outstanding preview handle.  Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        self._publisher.close()
        await self._scheduler.aclose()
        revoked = self._previews.revoke_all()
        log.info(
            "Gallery pipeline closed",
            extra={
                "extra_fields": {
                    "op": "close",
                    "owner_id": self._owner_id,
                    "handles_revoked": revoked,
                }
            },
        )
        if self._owns_store:
            aclose = getattr(self._store, "aclose", None)
            if aclose is not None:
                await aclose()

    async def __aenter__(self) -> GalleryUploadPipeline:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # -- internals -----------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise PipelineClosedError(
                message="Gallery pipeline has been closed",
                context={"owner_id": self._owner_id},
            )

    def _on_collection_change(self, items: tuple[UploadItem, ...]) -> None:
        if self._closed:
            return
        pending = sum(1 for item in items if item.is_pending)
        self._metrics.gauge(
            "galleryflow.queue_depth", pending, tags={"owner_id": self._owner_id}
        )
        self._publisher.notify(items)
        self._scheduler.kick()
