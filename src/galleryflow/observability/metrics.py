"""Metrics hook protocol and no-op default implementation.

galleryflow emits counters, timings, and gauges at key points of the upload
pipeline.  By default a :class:`NoopMetricsHook` is used.  Supply any object
satisfying :class:`MetricsHook` through ``GalleryConfig(metrics=...)`` to
route the data points to StatsD, Prometheus, or similar.

Emitted metric names:

* ``galleryflow.upload_success_total``        -- counter
* ``galleryflow.upload_failure_total``        -- counter
* ``galleryflow.upload_duration_ms``          -- timing
* ``galleryflow.compression_fallback_total``  -- counter
* ``galleryflow.delete_failure_total``        -- counter
* ``galleryflow.intake_skipped_total``        -- counter
* ``galleryflow.queue_depth``                 -- gauge
* ``galleryflow.requests_total``              -- counter
* ``galleryflow.request_duration_ms``         -- timing
* ``galleryflow.retries_total``               -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points.

    Lets call-sites skip ``if self._metrics is not None`` guards.
    """

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
