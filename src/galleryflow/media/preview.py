"""Revocable preview handles.

A preview handle lets the UI show a selected file before (or without) it
being stored remotely.  Handles are allocated at intake and must be revoked
exactly once, on item removal or pipeline teardown.  The registry tracks
outstanding handles so teardown can revoke the remainder and tests can
assert that nothing leaked.

The registry holds only a weak reference to each source file, so the bytes
are released once the item drops its source (on completion) even while the
preview handle stays live.
"""

from __future__ import annotations

import uuid
import weakref

from galleryflow.errors import PreviewHandleError
from galleryflow.models import PreviewHandle, SourceFile
from galleryflow.observability import get_logger

log = get_logger("galleryflow.preview")


class PreviewRegistry:
    """Allocate and revoke :class:`PreviewHandle` objects.

    Parameters
    ----------
    scheme:
        URL scheme used for handle URLs.
    """

    def __init__(self, scheme: str = "preview") -> None:
        self._scheme = scheme
        self._outstanding: dict[str, weakref.ref[SourceFile]] = {}
        self._revoked: set[str] = set()

    def create(self, source: SourceFile) -> PreviewHandle:
        handle_id = uuid.uuid4().hex
        self._outstanding[handle_id] = weakref.ref(source)
        return PreviewHandle(handle_id=handle_id, url=f"{self._scheme}:{handle_id}")

    def resolve(self, handle: PreviewHandle) -> SourceFile:
        """Return the file behind a live handle, while its bytes are still held."""
        ref = self._outstanding.get(handle.handle_id)
        if ref is None:
            raise PreviewHandleError(
                message=f"Preview handle {handle.handle_id} is not live",
                context={"handle": handle.handle_id},
            )
        source = ref()
        if source is None:
            raise PreviewHandleError(
                message=f"Preview handle {handle.handle_id} no longer has a source file",
                context={"handle": handle.handle_id},
            )
        return source

    def revoke(self, handle: PreviewHandle) -> None:
        """Release *handle*.

        Raises
        ------
        PreviewHandleError
            If the handle was already revoked or never allocated here.
        """
        if handle.handle_id in self._revoked:
            raise PreviewHandleError(
                message=f"Preview handle {handle.handle_id} was already revoked",
                context={"handle": handle.handle_id},
            )
        if self._outstanding.pop(handle.handle_id, None) is None:
            raise PreviewHandleError(
                message=f"Preview handle {handle.handle_id} is unknown",
                context={"handle": handle.handle_id},
            )
        self._revoked.add(handle.handle_id)

    def revoke_all(self) -> int:
        """Revoke every outstanding handle.  Returns how many were revoked."""
        count = len(self._outstanding)
        self._revoked.update(self._outstanding)
        self._outstanding.clear()
        if count:
            log.debug(
                "Revoked outstanding preview handles",
                extra={"extra_fields": {"op": "revoke_all", "count": count}},
            )
        return count

    @property
    def outstanding(self) -> int:
        return len(self._outstanding)

    @property
    def revoked(self) -> frozenset[str]:
        return frozenset(self._revoked)

    def assert_all_revoked(self) -> None:
        if self._outstanding:
            raise PreviewHandleError(
                message=f"{len(self._outstanding)} preview handle(s) were never revoked",
                context={"handle": sorted(self._outstanding)},
            )
