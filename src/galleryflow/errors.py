"""Full error hierarchy for galleryflow.

Every public error class inherits from GalleryError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Only upload failures ever reach the end user, and they do so as the
``error`` text of the affected item rather than as a raised exception.
The remaining classes are raised to the embedding application for
programming errors (illegal transitions, unknown ids, use after close) or
by the storage client.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error galleryflow can raise."""

    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_AUTH_ERROR = "STORAGE_AUTH_ERROR"
    STORAGE_NOT_FOUND = "STORAGE_NOT_FOUND"
    STORAGE_CONFLICT = "STORAGE_CONFLICT"
    STORAGE_VALIDATION_ERROR = "STORAGE_VALIDATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    COMPRESSION_ERROR = "COMPRESSION_ERROR"
    NON_IMAGE_FILE = "NON_IMAGE_FILE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    PREVIEW_HANDLE_ERROR = "PREVIEW_HANDLE_ERROR"
    PIPELINE_CLOSED = "PIPELINE_CLOSED"
    PIPELINE_INVARIANT = "PIPELINE_INVARIANT"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class GalleryError(Exception):
    """Base exception for all galleryflow errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Storage / transport errors
# ---------------------------------------------------------------------------

class StorageError(GalleryError):
    """Base class for failures reported by a remote object store.

    Context varies by subclass; transport errors always include
    ``status_code`` when a response was received.
    """

    def __init__(
        self,
        code: str = ErrorCode.STORAGE_ERROR,
        message: str = "Storage error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class StorageAuthError(StorageError):
    """The storage service rejected the API key (401/403).

    Context keys: ``status_code``, ``key_suffix`` (last 4 characters only).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class StorageNotFoundError(StorageError):
    """The bucket or object does not exist (404).

    Context keys: ``status_code``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class StorageConflictError(StorageError):
    """An object already exists under the key and upsert is disabled (409).

    Context keys: ``status_code``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_CONFLICT,
            message=message,
            context=context,
            cause=cause,
        )


class StorageValidationError(StorageError):
    """The storage service rejected the request payload (other 4xx).

    Context keys: ``status_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class StorageNetworkError(StorageError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class StorageRetryExhaustedError(StorageError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Media errors
# ---------------------------------------------------------------------------

class UploadFailedError(GalleryError):
    """An item's upload failed; the item is now ``ERRORED``.

    Raised by :meth:`GalleryUploadPipeline.raise_for_errors` so callers that
    prefer exceptions can surface item failures.

    Context keys: ``item_ids``, ``errors``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class CompressionError(GalleryError):
    """Pillow could not decode or re-encode an image.

    Never escapes the compression stage, which falls back to the original
    bytes; it exists so the fallback can be logged with structured context.

    Context keys: ``name``, ``content_type``, ``size_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.COMPRESSION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NonImageFileError(GalleryError):
    """A non-image file was offered and ``reject_non_images`` is enabled.

    Context keys: ``names``, ``content_types``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NON_IMAGE_FILE,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Lifecycle errors
# ---------------------------------------------------------------------------

class InvalidTransitionError(GalleryError):
    """A status change not present in the transition table was requested.

    Context keys: ``item_id``, ``current_status``, ``requested_status``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=message,
            context=context,
            cause=cause,
        )


class ItemNotFoundError(GalleryError):
    """No item with the given id exists in the gallery.

    Context keys: ``item_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.ITEM_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class PreviewHandleError(GalleryError):
    """A preview handle was revoked twice or does not belong to the registry.

    Context keys: ``handle``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PREVIEW_HANDLE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class PipelineClosedError(GalleryError):
    """An operation was attempted on a pipeline that has been torn down."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PIPELINE_CLOSED,
            message=message,
            context=context,
            cause=cause,
        )


class PipelineInvariantError(GalleryError):
    """A commit would break a collection invariant.

    This indicates a defect in galleryflow, not a runtime condition.

    Context keys: ``invariant``, ``item_ids``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PIPELINE_INVARIANT,
            message=message,
            context=context,
            cause=cause,
        )
