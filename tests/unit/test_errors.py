"""Tests for the galleryflow error hierarchy."""

from __future__ import annotations

import pytest

from galleryflow import errors
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

_EXPECTED_CODES = [
    (StorageAuthError, ErrorCode.STORAGE_AUTH_ERROR),
    (StorageNotFoundError, ErrorCode.STORAGE_NOT_FOUND),
    (StorageConflictError, ErrorCode.STORAGE_CONFLICT),
    (StorageValidationError, ErrorCode.STORAGE_VALIDATION_ERROR),
    (StorageNetworkError, ErrorCode.NETWORK_ERROR),
    (StorageRetryExhaustedError, ErrorCode.RETRY_EXHAUSTED),
    (UploadFailedError, ErrorCode.UPLOAD_FAILED),
    (CompressionError, ErrorCode.COMPRESSION_ERROR),
    (NonImageFileError, ErrorCode.NON_IMAGE_FILE),
    (InvalidTransitionError, ErrorCode.INVALID_TRANSITION),
    (ItemNotFoundError, ErrorCode.ITEM_NOT_FOUND),
    (PreviewHandleError, ErrorCode.PREVIEW_HANDLE_ERROR),
    (PipelineClosedError, ErrorCode.PIPELINE_CLOSED),
    (PipelineInvariantError, ErrorCode.PIPELINE_INVARIANT),
]


class TestHierarchy:
    @pytest.mark.parametrize(("cls", "code"), _EXPECTED_CODES)
    def test_code_and_base(self, cls, code):
        err = cls(message="something broke", context={"k": "v"})
        assert isinstance(err, GalleryError)
        assert err.code == code
        assert err.message == "something broke"
        assert err.context == {"k": "v"}
        assert str(err) == "something broke"

    @pytest.mark.parametrize(
        "cls",
        [
            StorageAuthError,
            StorageNotFoundError,
            StorageConflictError,
            StorageValidationError,
            StorageNetworkError,
            StorageRetryExhaustedError,
        ],
    )
    def test_storage_errors_share_a_base(self, cls):
        assert issubclass(cls, StorageError)

    def test_every_code_is_used(self):
        used = {code for _, code in _EXPECTED_CODES} | {ErrorCode.STORAGE_ERROR}
        assert used == set(ErrorCode)

    def test_every_public_error_is_tested(self):
        public = {
            obj
            for obj in vars(errors).values()
            if isinstance(obj, type) and issubclass(obj, GalleryError)
        }
        assert public == {cls for cls, _ in _EXPECTED_CODES} | {GalleryError, StorageError}


class TestContextAndCause:
    def test_context_defaults_to_empty_dict(self):
        assert ItemNotFoundError(message="x").context == {}

    def test_cause_is_chained(self):
        root = OSError("disk")
        err = CompressionError(message="failed", cause=root)
        assert err.cause is root
        assert err.__cause__ is root

    def test_storage_error_default_code(self):
        err = StorageError(message="generic")
        assert err.code == ErrorCode.STORAGE_ERROR

    def test_repr_includes_code_and_context(self):
        text = repr(PipelineClosedError(message="closed", context={"owner_id": "o"}))
        assert "PipelineClosedError" in text
        assert "PIPELINE_CLOSED" in text
        assert "owner_id" in text

    def test_error_code_is_a_string(self):
        assert ErrorCode.UPLOAD_FAILED == "UPLOAD_FAILED"
