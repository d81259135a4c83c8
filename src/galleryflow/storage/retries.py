"""When to retry a storage request, and how long to wait first.

Only idempotent storage calls go through the retry loop: removing an
object by key can be repeated safely, while an upload is sent once so
that a failed attempt surfaces on the gallery item and the user decides
whether to retry it.

The storage gateway signals overload with ``429`` (optionally carrying
``Retry-After``) and transient edge failures with ``500``/``502``/``503``/
``504``.  Connection resets and timeouts are treated the same way.
Everything else, including ``501``, is final.
"""

from __future__ import annotations

import random

import httpx

_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Whether another attempt is allowed after this outcome.

    *attempt* is 0-indexed and *max_attempts* counts the first request, so
    a budget of one never retries.  A network *exception* is judged before
    the *status_code*; with neither there is nothing to retry on.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)
    if status_code is not None:
        return status_code in _RETRYABLE_STATUSES
    return False


def retry_reason(status_code: int | None) -> str:
    """Metric tag for a retry: ``rate_limited``, ``server_error`` or ``network_error``."""
    if status_code is None:
        return "network_error"
    if status_code == 429:
        return "rate_limited"
    return "server_error"


def compute_backoff(
    attempt: int,
    base: float = 0.5,
    maximum: float = 10.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Seconds to sleep before attempt ``attempt + 1``.

    A gateway ``Retry-After`` is honoured as given, even above *maximum*.
    Without one the delay doubles from *base* per attempt up to *maximum*.
    Jitter keeps between half and all of the delay so that several
    galleries backing off from the same outage do not retry in lockstep.
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay
