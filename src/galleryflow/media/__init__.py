"""Media handling for selected files: intake, previews, compression, keys.

Exports
-------
normalize_files
    Turn a raw selection into queued items with preview handles.
PreviewRegistry
    Allocate and revoke preview handles, exactly once each.
CompressionStage / compress_bytes
    Shrink and re-encode an image, falling back to the original on failure.
build_remote_key
    Build ``{owner}/{millis}-{token}.{ext}`` storage keys.
check_transition
    Enforce the item status transition table.
"""

from .compress import CompressionStage, compress_bytes
from .intake import new_item_id, normalize_files
from .keys import build_remote_key, check_owner_id, file_extension, random_token
from .preview import PreviewRegistry
from .state import VALID_TRANSITIONS, check_transition

__all__ = [
    "VALID_TRANSITIONS",
    "CompressionStage",
    "PreviewRegistry",
    "build_remote_key",
    "check_owner_id",
    "check_transition",
    "compress_bytes",
    "file_extension",
    "new_item_id",
    "normalize_files",
    "random_token",
]
