"""Shared test fixtures for the galleryflow test suite."""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from galleryflow.config import GalleryConfig
from galleryflow.models import GallerySnapshot, SourceFile
from galleryflow.pipeline import GalleryUploadPipeline

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeObjectStore:
    """In-memory object store with failure injection and an upload gate.

    ``failures`` is consumed one entry per ``put`` call: an exception entry
    makes that call fail, ``None`` lets it succeed.  When ``gate`` is set,
    every ``put`` waits for it before completing.
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.puts: list[str] = []
        self.put_payloads: list[bytes] = []
        self.deletes: list[str] = []
        self.failures: list[Exception | None] = []
        self.delete_error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        self.puts.append(key)
        self.put_payloads.append(data)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            failure = self.failures.pop(0) if self.failures else None
            if failure is not None:
                raise failure
            self.objects[key] = data
            self.content_types[key] = content_type
        finally:
            self.in_flight -= 1

    async def get_public_url(self, key: str) -> str:
        return f"https://cdn.example.test/{key}"

    async def delete(self, key: str) -> None:
        self.deletes.append(key)
        await asyncio.sleep(0)
        if self.delete_error is not None:
            raise self.delete_error
        self.objects.pop(key, None)


class IdentityCompressor:
    """Compression stage stand-in that returns the source unchanged."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def compress(self, source: SourceFile) -> SourceFile:
        self.calls.append(source.name)
        await asyncio.sleep(0)
        return source


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [call["name"] for call in self.increments]


class SnapshotRecorder:
    """Owner callback that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.snapshots: list[GallerySnapshot] = []

    def __call__(self, snapshot: GallerySnapshot) -> None:
        self.snapshots.append(snapshot)

    @property
    def last(self) -> GallerySnapshot:
        return self.snapshots[-1]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def image_file(name: str = "photo.jpg", payload: bytes | None = None) -> SourceFile:
    return SourceFile(
        name=name,
        content_type="image/jpeg",
        data=payload if payload is not None else f"jpeg:{name}".encode(),
    )


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until *predicate* holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.001)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> GalleryConfig:
    """Test configuration with a short debounce window."""
    return GalleryConfig(debounce_seconds=0.01)


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def recorder() -> SnapshotRecorder:
    return SnapshotRecorder()


@pytest.fixture
def compressor() -> IdentityCompressor:
    return IdentityCompressor()


@pytest.fixture
def ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"img-{next(counter)}"


@pytest.fixture
async def gallery(
    store: FakeObjectStore,
    config: GalleryConfig,
    recorder: SnapshotRecorder,
    compressor: IdentityCompressor,
    ids: Callable[[], str],
) -> AsyncIterator[GalleryUploadPipeline]:
    pipeline = GalleryUploadPipeline(
        "owner-1",
        store,
        config,
        on_change=recorder,
        compressor=compressor,  # type: ignore[arg-type]
        id_factory=ids,
    )
    yield pipeline
    await pipeline.aclose()
