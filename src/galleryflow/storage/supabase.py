"""Supabase Storage implementation of :class:`ObjectStore`.

Maps the three store operations onto the Storage REST API:

1. **put** -- ``POST /object/{bucket}/{key}`` with the raw bytes.
2. **get_public_url** -- ``{storage_url}/storage/v1/object/public/{bucket}/{key}``
   (computed locally, no request).
3. **delete** -- ``DELETE /object/{bucket}`` with ``{"prefixes": [key]}``.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from galleryflow.config import GalleryConfig

from .transport import AsyncStorageTransport


class SupabaseObjectStore:
    """Object store backed by a Supabase Storage bucket.

    Parameters
    ----------
    config:
        Configuration with ``storage_url``, ``storage_key`` and ``bucket``.
    http_transport:
        Optional ``httpx`` transport override, forwarded to
        :class:`AsyncStorageTransport`.
    """

    def __init__(
        self,
        config: GalleryConfig,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._bucket = config.bucket
        self._transport = AsyncStorageTransport(config, http_transport=http_transport)

    def _object_path(self, key: str) -> str:
        return f"/object/{quote(self._bucket)}/{quote(key)}"

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload *data* under *key*.  Sent once, never retried."""
        await self._transport.request(
            "POST",
            self._object_path(key),
            retryable=False,
            content=data,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "cache-control": f"max-age={self._config.cache_control_seconds}",
                "x-upsert": "true" if self._config.upsert else "false",
            },
        )

    async def get_public_url(self, key: str) -> str:
        base = self._config.storage_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{quote(self._bucket)}/{quote(key)}"

    async def delete(self, key: str) -> None:
        await self._transport.request(
            "DELETE",
            f"/object/{quote(self._bucket)}",
            json={"prefixes": [key]},
        )

    async def aclose(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> SupabaseObjectStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
