"""galleryflow.storage -- remote object store interface and clients.

This sub-package provides:

* :mod:`.base` -- the :class:`ObjectStore` protocol the pipeline consumes.
* :mod:`.retries` -- Retry decision logic and exponential backoff.
* :mod:`.transport` -- HTTP transport with auth and retries.
* :mod:`.supabase` -- Supabase Storage implementation of the protocol.
"""

from __future__ import annotations

from .base import ObjectStore
from .retries import compute_backoff, should_retry
from .supabase import SupabaseObjectStore
from .transport import AsyncStorageTransport

__all__ = [
    "AsyncStorageTransport",
    "ObjectStore",
    "SupabaseObjectStore",
    "compute_backoff",
    "should_retry",
]
