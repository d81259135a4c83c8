"""Tests for the item transition table."""

from __future__ import annotations

import pytest
from conftest import image_file

from galleryflow.errors import ErrorCode, InvalidTransitionError
from galleryflow.media.state import (
    VALID_TRANSITIONS,
    check_transition,
    to_completed,
    to_errored,
    to_queued,
    to_uploading,
)
from galleryflow.models import UploadItem, UploadStatus


def _queued() -> UploadItem:
    return UploadItem(id="img-1", name="a.jpg", source=image_file("a.jpg"))


class TestTransitionTable:
    def test_completed_is_terminal(self):
        assert VALID_TRANSITIONS[UploadStatus.COMPLETED] == frozenset()

    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(UploadStatus)

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (UploadStatus.QUEUED, UploadStatus.COMPLETED),
            (UploadStatus.QUEUED, UploadStatus.ERRORED),
            (UploadStatus.COMPLETED, UploadStatus.QUEUED),
            (UploadStatus.COMPLETED, UploadStatus.UPLOADING),
            (UploadStatus.ERRORED, UploadStatus.UPLOADING),
            (UploadStatus.UPLOADING, UploadStatus.QUEUED),
        ],
    )
    def test_illegal_edges_raise(self, current, requested):
        item = UploadItem(id="img-1", name="a.jpg", status=current)
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(item, requested)
        assert exc_info.value.code == ErrorCode.INVALID_TRANSITION
        assert exc_info.value.context == {
            "item_id": "img-1",
            "current_status": current.value,
            "requested_status": requested.value,
        }


class TestTransitions:
    def test_happy_path(self):
        uploading = to_uploading(_queued())
        assert uploading.status == UploadStatus.UPLOADING

        done = to_completed(uploading, "owner-1/1-abc.jpg", "https://cdn/x.jpg")
        assert done.status == UploadStatus.COMPLETED
        assert done.remote_key == "owner-1/1-abc.jpg"
        assert done.remote_url == "https://cdn/x.jpg"
        assert done.source is None

    def test_failure_keeps_source_for_retry(self):
        failed = to_errored(to_uploading(_queued()), "boom")
        assert failed.status == UploadStatus.ERRORED
        assert failed.error == "boom"
        assert failed.source is not None

        again = to_queued(failed)
        assert again.status == UploadStatus.QUEUED
        assert again.error is None
        assert again.source is failed.source

    def test_transitions_do_not_mutate_input(self):
        item = _queued()
        to_uploading(item)
        assert item.status == UploadStatus.QUEUED

    def test_requeue_without_source_raises(self):
        orphan = UploadItem(id="img-9", name="a.jpg", status=UploadStatus.ERRORED, error="x")
        with pytest.raises(InvalidTransitionError, match="no source"):
            to_queued(orphan)
