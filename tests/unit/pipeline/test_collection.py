"""Tests for the replace-on-write item collection and its invariants."""

from __future__ import annotations

import dataclasses

import pytest

from galleryflow.errors import ErrorCode, ItemNotFoundError, PipelineInvariantError
from galleryflow.models import UploadItem, UploadStatus
from galleryflow.pipeline.collection import ItemCollection, check_invariants


def _item(item_id: str, status: UploadStatus = UploadStatus.QUEUED, **kwargs) -> UploadItem:
    if status == UploadStatus.COMPLETED:
        kwargs.setdefault("remote_key", f"owner/{item_id}.jpg")
        kwargs.setdefault("remote_url", f"https://cdn/{item_id}.jpg")
    if status == UploadStatus.ERRORED:
        kwargs.setdefault("error", "boom")
    return UploadItem(id=item_id, name=f"{item_id}.jpg", status=status, **kwargs)


# ---------------------------------------------------------------------------
# check_invariants
# ---------------------------------------------------------------------------


class TestCheckInvariants:
    def test_valid_mix_passes(self):
        check_invariants(
            (
                _item("a", UploadStatus.COMPLETED, is_featured=True),
                _item("b", UploadStatus.UPLOADING),
                _item("c", UploadStatus.ERRORED),
                _item("d"),
            )
        )

    @pytest.mark.parametrize(
        ("items", "invariant"),
        [
            ((_item("a"), _item("a")), "unique_ids"),
            (
                (_item("a", UploadStatus.UPLOADING), _item("b", UploadStatus.UPLOADING)),
                "single_upload",
            ),
            ((_item("a", is_featured=True), _item("b", is_featured=True)), "single_featured"),
            ((_item("a", remote_key="k", remote_url="u"),), "remote_iff_completed"),
            (
                (UploadItem(id="a", name="a.jpg", status=UploadStatus.COMPLETED),),
                "remote_iff_completed",
            ),
            ((_item("a", error="stale"),), "error_iff_errored"),
            ((UploadItem(id="a", name="a.jpg", status=UploadStatus.ERRORED),), "error_iff_errored"),
        ],
    )
    def test_violations(self, items, invariant):
        with pytest.raises(PipelineInvariantError) as exc_info:
            check_invariants(items)
        assert exc_info.value.code == ErrorCode.PIPELINE_INVARIANT
        assert exc_info.value.context["invariant"] == invariant


# ---------------------------------------------------------------------------
# ItemCollection
# ---------------------------------------------------------------------------


class TestItemCollection:
    def test_append_assigns_increasing_queue_positions(self):
        collection = ItemCollection()
        added = collection.append([_item("a"), _item("b")])
        more = collection.append([_item("c")])
        assert [item.queue_seq for item in added + more] == [1, 2, 3]
        assert [item.id for item in collection] == ["a", "b", "c"]

    def test_append_nothing_does_not_notify(self):
        collection = ItemCollection()
        seen = []
        collection.subscribe(seen.append)
        assert collection.append([]) == ()
        assert seen == []

    def test_initial_items_seed_the_sequence(self):
        collection = ItemCollection([_item("a", UploadStatus.COMPLETED, queue_seq=7)])
        assert collection.next_sequence() == 8

    def test_commit_notifies_with_new_tuple(self):
        collection = ItemCollection()
        seen = []
        collection.subscribe(seen.append)
        collection.append([_item("a")])
        assert len(seen) == 1
        assert seen[0] is collection.items

    def test_failed_commit_leaves_collection_untouched(self):
        collection = ItemCollection()
        collection.append([_item("a")])
        before = collection.items
        with pytest.raises(PipelineInvariantError):
            collection.commit(before + (dataclasses.replace(before[0]),))
        assert collection.items is before

    def test_next_queued_uses_queue_position_not_display_order(self):
        collection = ItemCollection()
        collection.append([_item("a"), _item("b")])
        collection.map_item("a", lambda it: dataclasses.replace(it, queue_seq=99))
        assert collection.next_queued().id == "b"

    def test_next_queued_skips_other_states(self):
        collection = ItemCollection([_item("a", UploadStatus.ERRORED)])
        assert collection.next_queued() is None
        assert not collection.has_queued()

    def test_map_item_replaces_in_place(self):
        collection = ItemCollection()
        collection.append([_item("a"), _item("b")])
        updated = collection.map_item("b", lambda it: dataclasses.replace(it, name="renamed"))
        assert updated.name == "renamed"
        assert [item.name for item in collection] == ["a.jpg", "renamed"]

    def test_map_item_on_missing_id_is_a_no_op(self):
        collection = ItemCollection()
        seen = []
        collection.subscribe(seen.append)
        assert collection.map_item("ghost", lambda it: it) is None
        assert seen == []

    def test_remove(self):
        collection = ItemCollection()
        collection.append([_item("a"), _item("b")])
        removed = collection.remove("a")
        assert removed.id == "a"
        assert "a" not in collection
        assert len(collection) == 1

    def test_require_unknown_raises(self):
        with pytest.raises(ItemNotFoundError) as exc_info:
            ItemCollection().require("ghost")
        assert exc_info.value.context == {"item_id": "ghost"}
