"""Upload orchestration: collection, scheduler, lifecycle, publisher.

Exports
-------
GalleryUploadPipeline
    Host object wiring every component for one gallery.
ItemCollection
    Replace-on-write ordered item list with invariant checks.
SequentialUploadScheduler
    Single-flight worker loop.
ItemLifecycleManager
    Remove, retry, and featured selection.
AggregateStatusPublisher
    Debounced status notifications.
"""

from .collection import ItemCollection, check_invariants
from .gallery import GalleryUploadPipeline
from .lifecycle import ItemLifecycleManager, delete_best_effort
from .publisher import AggregateStatusPublisher
from .scheduler import SequentialUploadScheduler

__all__ = [
    "AggregateStatusPublisher",
    "GalleryUploadPipeline",
    "ItemCollection",
    "ItemLifecycleManager",
    "SequentialUploadScheduler",
    "check_invariants",
    "delete_best_effort",
]
