"""Image compression before transfer.

Shrinks an image to the configured long edge, re-encodes it, and steps the
encoder quality down until the payload fits the size target.  Any failure
falls back to the original bytes: a larger upload is preferred over a
failed one.
"""

from __future__ import annotations

import asyncio
import io

from PIL import Image, ImageOps

from galleryflow.config import GalleryConfig
from galleryflow.errors import CompressionError
from galleryflow.models import SourceFile
from galleryflow.observability import NoopMetricsHook, get_logger

log = get_logger("galleryflow.compress")

_QUALITY_STEP = 10
_SHRINK_FACTOR = 0.8
_MIN_LONG_EDGE = 64


def _encode(im: Image.Image, fmt: str, quality: int) -> bytes:
    buf = io.BytesIO()
    if fmt == "PNG":
        im.save(buf, format=fmt, optimize=True)
    else:
        im.save(buf, format=fmt, quality=quality, optimize=True)
    return buf.getvalue()


def _fit_long_edge(im: Image.Image, max_long_edge: int) -> Image.Image:
    w, h = im.size
    long_edge = max(w, h)
    if long_edge <= max_long_edge:
        return im
    scale = max_long_edge / float(long_edge)
    new_size = (max(1, int(w * scale)), max(1, int(h * scale)))
    return im.resize(new_size, Image.Resampling.LANCZOS)


def compress_bytes(source: SourceFile, config: GalleryConfig) -> SourceFile:
    """Compress *source* synchronously.

    - Auto-orient using EXIF orientation
    - Resize to ``compress_max_dimension`` (only shrink)
    - Re-encode as ``compress_output_format`` starting at
      ``compress_quality``, lowering quality and then dimensions until the
      output fits ``compress_max_size_bytes``

    The original is returned unchanged when it already fits every bound
    and re-encoding would not make it smaller.

    Raises
    ------
    CompressionError
        If Pillow cannot decode or encode the image.
    """
    fmt = config.compress_output_format
    try:
        with Image.open(io.BytesIO(source.data)) as opened:
            original_size = opened.size
            im = ImageOps.exif_transpose(opened)
            if fmt == "JPEG" and im.mode != "RGB":
                im = im.convert("RGB")
            elif im.mode not in ("RGB", "RGBA", "L", "LA"):
                im = im.convert("RGBA")

            im = _fit_long_edge(im, config.compress_max_dimension)
            quality = config.compress_quality
            data = _encode(im, fmt, quality)

            while len(data) > config.compress_max_size_bytes:
                if fmt != "PNG" and quality > config.compress_min_quality:
                    quality = max(config.compress_min_quality, quality - _QUALITY_STEP)
                elif max(im.size) > _MIN_LONG_EDGE:
                    im = _fit_long_edge(im, int(max(im.size) * _SHRINK_FACTOR))
                else:
                    break
                data = _encode(im, fmt, quality)
    except Exception as exc:  # noqa: BLE001 - any decoder failure means fallback
        raise CompressionError(
            message=f"Failed to compress image {source.name}: {exc}",
            context={
                "name": source.name,
                "content_type": source.content_type,
                "size_bytes": source.size,
            },
            cause=exc,
        ) from exc

    fits_already = (
        source.size <= config.compress_max_size_bytes
        and max(original_size) <= config.compress_max_dimension
    )
    if fits_already and len(data) >= source.size:
        return source

    return SourceFile(
        name=source.name,
        content_type=Image.MIME.get(fmt, source.content_type),
        data=data,
    )


class CompressionStage:
    """Async wrapper running :func:`compress_bytes` on a worker thread.

    Parameters
    ----------
    config:
        Pipeline configuration holding the compression limits.
    """

    def __init__(self, config: GalleryConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def compress(self, source: SourceFile) -> SourceFile:
        """Return a compressed copy of *source*, or *source* itself on failure."""
        try:
            result = await asyncio.to_thread(compress_bytes, source, self._config)
        except CompressionError as exc:
            self._metrics.increment("galleryflow.compression_fallback_total")
            log.warning(
                "Compression failed, uploading original bytes",
                extra={"extra_fields": {"op": "compress", **exc.context, "error": str(exc.cause)}},
            )
            return source

        log.debug(
            "Compressed image",
            extra={
                "extra_fields": {
                    "op": "compress",
                    "name": source.name,
                    "size_before": source.size,
                    "size_after": result.size,
                }
            },
        )
        return result
