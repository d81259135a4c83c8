"""Tests for the preview handle registry."""

from __future__ import annotations

import gc
import weakref

import pytest
from conftest import image_file

from galleryflow.errors import ErrorCode, PreviewHandleError
from galleryflow.media.preview import PreviewRegistry
from galleryflow.models import PreviewHandle


class TestPreviewRegistry:
    def test_create_returns_distinct_handles(self):
        registry = PreviewRegistry()
        first = registry.create(image_file("a.jpg"))
        second = registry.create(image_file("a.jpg"))
        assert first.handle_id != second.handle_id
        assert first.url == f"preview:{first.handle_id}"
        assert registry.outstanding == 2

    def test_custom_scheme(self):
        registry = PreviewRegistry(scheme="blob")
        handle = registry.create(image_file())
        assert handle.url.startswith("blob:")

    def test_resolve_live_handle(self):
        registry = PreviewRegistry()
        source = image_file("lobby.jpg")
        handle = registry.create(source)
        assert registry.resolve(handle) is source

    def test_revoke_releases_handle(self):
        registry = PreviewRegistry()
        handle = registry.create(image_file())
        registry.revoke(handle)
        assert registry.outstanding == 0
        assert handle.handle_id in registry.revoked
        with pytest.raises(PreviewHandleError):
            registry.resolve(handle)

    def test_registry_does_not_keep_source_bytes_alive(self):
        registry = PreviewRegistry()
        source = image_file("lobby.jpg")
        ref = weakref.ref(source)
        handle = registry.create(source)

        del source
        gc.collect()

        assert ref() is None
        assert registry.outstanding == 1
        with pytest.raises(PreviewHandleError, match="no longer has a source file"):
            registry.resolve(handle)
        # The handle itself is still live and is revoked normally.
        registry.revoke(handle)
        registry.assert_all_revoked()

    def test_double_revoke_raises(self):
        registry = PreviewRegistry()
        handle = registry.create(image_file())
        registry.revoke(handle)
        with pytest.raises(PreviewHandleError) as exc_info:
            registry.revoke(handle)
        assert exc_info.value.code == ErrorCode.PREVIEW_HANDLE_ERROR
        assert "already revoked" in exc_info.value.message

    def test_revoke_unknown_handle_raises(self):
        registry = PreviewRegistry()
        with pytest.raises(PreviewHandleError, match="unknown"):
            registry.revoke(PreviewHandle(handle_id="nope", url="preview:nope"))

    def test_revoke_all_counts_only_outstanding(self):
        registry = PreviewRegistry()
        handles = [registry.create(image_file(f"{i}.jpg")) for i in range(3)]
        registry.revoke(handles[0])

        assert registry.revoke_all() == 2
        assert registry.revoke_all() == 0
        assert registry.revoked == frozenset(h.handle_id for h in handles)

    def test_assert_all_revoked(self):
        registry = PreviewRegistry()
        handle = registry.create(image_file())
        with pytest.raises(PreviewHandleError, match="never revoked"):
            registry.assert_all_revoked()
        registry.revoke(handle)
        registry.assert_all_revoked()
