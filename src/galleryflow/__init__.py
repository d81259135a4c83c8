"""galleryflow: image gallery upload pipeline.

Takes a batch of user-selected photos for a property listing, compresses
them, uploads them one at a time to object storage, tracks each item's
lifecycle, and reports a debounced aggregate status to the owner.

Public re-exports
-----------------

* **Pipeline:** :class:`GalleryUploadPipeline`
* **Configuration:** :class:`GalleryConfig`
* **Storage:** :class:`ObjectStore`, :class:`SupabaseObjectStore`
* **Errors:** Every :class:`GalleryError` subclass and :class:`ErrorCode`
* **Models:** Items, snapshots, and supporting types

Usage::

    from galleryflow import GalleryConfig, GalleryUploadPipeline, SourceFile

    async with GalleryUploadPipeline.from_config(
        "seller-42", GalleryConfig(storage_url=url, storage_key=key),
        on_change=print,
    ) as gallery:
        gallery.add_files([SourceFile.from_path("pool.jpg")])
        await gallery.wait_settled()
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from galleryflow.config import DEFAULT_BUCKET, GalleryConfig

# ── Errors ──────────────────────────────────────────────────────────────
from galleryflow.errors import (
    CompressionError,
    ErrorCode,
    GalleryError,
    InvalidTransitionError,
    ItemNotFoundError,
    NonImageFileError,
    PipelineClosedError,
    PipelineInvariantError,
    PreviewHandleError,
    StorageAuthError,
    StorageConflictError,
    StorageError,
    StorageNetworkError,
    StorageNotFoundError,
    StorageRetryExhaustedError,
    StorageValidationError,
    UploadFailedError,
)

# ── Models ──────────────────────────────────────────────────────────────
from galleryflow.models import (
    GallerySnapshot,
    ImageSummary,
    IntakeResult,
    PreviewHandle,
    RemoteImage,
    SourceFile,
    UploadItem,
    UploadStatus,
    featured_item,
)

# ── Pipeline ────────────────────────────────────────────────────────────
from galleryflow.pipeline import GalleryUploadPipeline

# ── Storage ─────────────────────────────────────────────────────────────
from galleryflow.storage import ObjectStore, SupabaseObjectStore

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Pipeline
    "GalleryUploadPipeline",
    # Configuration
    "GalleryConfig",
    "DEFAULT_BUCKET",
    # Storage
    "ObjectStore",
    "SupabaseObjectStore",
    # Error base + code enum
    "GalleryError",
    "ErrorCode",
    # Storage errors
    "StorageError",
    "StorageAuthError",
    "StorageNotFoundError",
    "StorageConflictError",
    "StorageValidationError",
    "StorageNetworkError",
    "StorageRetryExhaustedError",
    # Media errors
    "UploadFailedError",
    "CompressionError",
    "NonImageFileError",
    # Lifecycle errors
    "InvalidTransitionError",
    "ItemNotFoundError",
    "PreviewHandleError",
    "PipelineClosedError",
    "PipelineInvariantError",
    # Models
    "SourceFile",
    "RemoteImage",
    "PreviewHandle",
    "UploadItem",
    "UploadStatus",
    "IntakeResult",
    "ImageSummary",
    "GallerySnapshot",
    "featured_item",
]
