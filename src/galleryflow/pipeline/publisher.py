"""Debounced aggregate status notifications.

Every collection change restarts a quiet-window timer; when the window
passes without further changes the owner callback receives one
:class:`GallerySnapshot` built from the latest items.  Because the timer is
reset rather than dropped, the last change of a burst always produces a
notification while the publisher is open.  After :meth:`close` nothing is
delivered.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from galleryflow.models import GallerySnapshot, UploadItem
from galleryflow.observability import get_logger

log = get_logger("galleryflow.publisher")

StatusCallback = Callable[[GallerySnapshot], None]


class AggregateStatusPublisher:
    """Deliver debounced :class:`GallerySnapshot` objects to a callback.

    Parameters
    ----------
    callback:
        Receives each snapshot.  ``None`` makes the publisher a no-op.
    delay:
        Quiet window in seconds.
    """

    def __init__(self, callback: StatusCallback | None, delay: float = 0.1) -> None:
        self._callback = callback
        self._delay = delay
        self._latest: Sequence[UploadItem] = ()
        self._handle: asyncio.TimerHandle | None = None
        self._settled = asyncio.Event()
        self._settled.set()
        self._closed = False
        self.notifications = 0

    @property
    def pending(self) -> bool:
        """Whether a notification is waiting for the quiet window to pass."""
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, items: Sequence[UploadItem]) -> None:
        """Record a change and (re)start the quiet-window timer."""
        if self._closed or self._callback is None:
            return
        self._latest = items
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._flush)
        self._settled.clear()

    def flush_now(self) -> None:
        """Deliver a pending notification immediately."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._flush()

    def _flush(self) -> None:
        self._handle = None
        try:
            if self._closed or self._callback is None:
                return
            snapshot = GallerySnapshot.from_items(self._latest)
            self.notifications += 1
            try:
                self._callback(snapshot)
            except Exception:  # noqa: BLE001 - owner callback must not break uploads
                log.exception(
                    "Status callback raised",
                    extra={"extra_fields": {"op": "publish"}},
                )
        finally:
            self._settled.set()

    async def wait_flushed(self) -> None:
        """Wait until no notification is pending."""
        await self._settled.wait()

    def close(self) -> None:
        """Cancel a pending timer; no notification is delivered afterwards."""
        self._closed = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._settled.set()
