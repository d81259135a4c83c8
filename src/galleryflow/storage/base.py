"""The remote object store interface consumed by the pipeline.

The pipeline only orchestrates calls against a store; it never implements
storage itself.  Any object with these three coroutines can be plugged in.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStore(Protocol):
    """Durable binary storage addressed by key."""

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store *data* under *key*.

        Raises on failure; the exception message becomes the item's error
        text.
        """
        ...

    async def get_public_url(self, key: str) -> str:
        """Return the public URL of the object stored under *key*."""
        ...

    async def delete(self, key: str) -> None:
        """Delete the object under *key*.

        The pipeline treats deletion as best-effort and only logs failures.
        """
        ...
