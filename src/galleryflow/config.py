"""Pipeline configuration for galleryflow.

:class:`GalleryConfig` is a dataclass that captures every tuneable knob of
the upload pipeline and of the bundled Supabase storage client.  Defaults
reproduce the behaviour of the dashboard's gallery manager: JPEG output at
quality 85, a 1920 px long edge, a 0.8 MB size target, a 100 ms debounce
window and one-hour cache headers.

One module-level constant is exported:

* :data:`DEFAULT_BUCKET` -- storage bucket used for listing photos.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_BUCKET: str = "sellerpropertyimages"
"""Bucket that holds property/listing photos."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class GalleryConfig:
    """Complete configuration for a gallery upload pipeline.

    Every parameter has a default, so ``GalleryConfig()`` is valid for
    pipelines that are handed a custom object store.  The storage fields
    only matter when :class:`SupabaseObjectStore` is built from this config.

    Parameters
    ----------
    storage_url:
        Project root URL of the storage service
        (e.g. ``"https://xyz.supabase.co"``).
    storage_key:
        API key sent as ``apikey`` and bearer token.  Never logged.
    bucket:
        Bucket that receives uploads.
    cache_control_seconds:
        ``max-age`` advertised for uploaded objects.
    upsert:
        Overwrite an existing object with the same key.  Keys are unique by
        construction, so the default refuses overwrites.
    compress_max_dimension:
        Longest edge, in pixels, of a compressed image.  Only shrinks.
    compress_max_size_bytes:
        Target upper bound for the compressed payload.
    compress_output_format:
        Pillow encoder used for compressed output.
    compress_quality:
        Initial encoder quality (1-100).
    compress_min_quality:
        Quality floor used while stepping down to meet the size target.
    debounce_seconds:
        Quiet window before an aggregate status notification is delivered.
    reject_non_images:
        Raise :class:`NonImageFileError` instead of silently skipping files
        whose MIME type is not ``image/*``.
    delete_orphaned_uploads:
        Best-effort delete of an object whose item was removed while its
        upload was in flight.
    retry_max_attempts:
        Maximum attempts for idempotent storage requests (deletes).
        Uploads are always attempted once.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Add random jitter to backoff intervals.
    timeout_seconds:
        HTTP timeout for storage requests.  ``None`` disables it and relies
        on the transport surfacing failures.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`MetricsHook` implementation.
    """

    # ── Storage ─────────────────────────────────────────────────────────
    storage_url: str = ""

    storage_key: str = ""

    bucket: str = DEFAULT_BUCKET

    cache_control_seconds: int = 3600

    upsert: bool = False

    # ── Compression ─────────────────────────────────────────────────────
    compress_max_dimension: int = 1920

    compress_max_size_bytes: int = 800_000  # 0.8 MB

    compress_output_format: Literal["JPEG", "WEBP", "PNG"] = "JPEG"

    compress_quality: int = 85

    compress_min_quality: int = 40

    # ── Pipeline ────────────────────────────────────────────────────────
    debounce_seconds: float = 0.1

    reject_non_images: bool = False

    delete_orphaned_uploads: bool = True

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_base_delay: float = 0.5

    retry_max_delay: float = 10.0

    retry_jitter: bool = True

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float | None = None

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        if self.storage_url:
            parsed = urlparse(self.storage_url)
            if parsed.scheme not in ("http", "https"):
                raise ValueError(
                    f"storage_url must be an http(s) URL, got {self.storage_url!r}"
                )
            if parsed.scheme == "http" and parsed.hostname not in (
                "localhost",
                "127.0.0.1",
                "::1",
            ):
                raise ValueError(
                    f"storage_url uses insecure HTTP for non-local host "
                    f"'{parsed.hostname}'. Use HTTPS to protect the storage key."
                )

        if not self.bucket:
            raise ValueError("bucket must not be empty")
        if self.cache_control_seconds < 0:
            raise ValueError(
                f"cache_control_seconds must be >= 0, got {self.cache_control_seconds}"
            )
        if self.compress_max_dimension < 1:
            raise ValueError(
                f"compress_max_dimension must be >= 1, got {self.compress_max_dimension}"
            )
        if self.compress_max_size_bytes <= 0:
            raise ValueError(
                f"compress_max_size_bytes must be > 0, got {self.compress_max_size_bytes}"
            )
        if not 1 <= self.compress_quality <= 100:
            raise ValueError(f"compress_quality must be in 1..100, got {self.compress_quality}")
        if not 1 <= self.compress_min_quality <= self.compress_quality:
            raise ValueError(
                f"compress_min_quality must be in 1..{self.compress_quality}, "
                f"got {self.compress_min_quality}"
            )
        if self.debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Mask the storage key to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "storage_key":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"storage_key='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"GalleryConfig({', '.join(parts)})"
