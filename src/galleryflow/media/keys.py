"""Remote object key construction.

Keys have the shape ``{owner_id}/{timestamp_millis}-{random_token}.{ext}``.
Uniqueness comes from the timestamp plus token; collisions are not checked.
"""

from __future__ import annotations

import secrets
import string
import time
from pathlib import PurePosixPath

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_LENGTH = 6
DEFAULT_EXTENSION = "bin"


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def file_extension(name: str) -> str:
    """Lower-cased extension of *name* without the dot.

    Falls back to ``"bin"`` when the name has no usable extension.
    """
    suffix = PurePosixPath(name.replace("\\", "/")).suffix
    ext = suffix[1:].lower()
    if not ext or not ext.isalnum():
        return DEFAULT_EXTENSION
    return ext


def check_owner_id(owner_id: str) -> str:
    """Return *owner_id* if it can prefix a remote key, else raise ``ValueError``."""
    if not owner_id or "/" in owner_id:
        raise ValueError(f"owner_id must be a non-empty path segment, got {owner_id!r}")
    return owner_id


def build_remote_key(
    owner_id: str,
    filename: str,
    *,
    now_ms: int | None = None,
    token: str | None = None,
) -> str:
    """Build the storage key for an upload.

    Parameters
    ----------
    owner_id:
        Identifier of the owning entity (seller, property); namespaces keys.
    filename:
        Original file name; only its extension is used.
    now_ms:
        Timestamp in milliseconds.  Defaults to the current wall clock.
    token:
        Random suffix.  Defaults to a fresh :func:`random_token`.
    """
    check_owner_id(owner_id)
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if token is None:
        token = random_token()
    return f"{owner_id}/{now_ms}-{token}.{file_extension(filename)}"
