"""Async HTTP transport for the storage REST API.

Handles the request lifecycle for the storage client:

1. Send the HTTP request with ``apikey`` and bearer headers.
2. On ``2xx`` -- return the parsed JSON body (``{}`` when empty).
3. On ``429`` / ``5xx`` / network error -- back off and retry, but only for
   requests marked retryable.  Uploads are sent once so a failure always
   reaches the user as a retryable item.
4. On other ``4xx`` -- raise the matching typed error immediately.
5. On max attempts exceeded -- raise :class:`StorageRetryExhaustedError`.
   A single-attempt request that gets ``429`` / ``5xx`` raises a plain
   :class:`StorageError` carrying the status instead.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from galleryflow.config import GalleryConfig
from galleryflow.errors import (
    StorageAuthError,
    StorageConflictError,
    StorageError,
    StorageNetworkError,
    StorageNotFoundError,
    StorageRetryExhaustedError,
    StorageValidationError,
)
from galleryflow.observability import NoopMetricsHook, get_logger

from .retries import _RETRYABLE_STATUSES, compute_backoff, retry_reason, should_retry

log = get_logger("galleryflow.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _body_message(response: httpx.Response, body: dict[str, Any]) -> str:
    return body.get("message") or body.get("error") or response.text[:500]


def _raise_for_status(
    response: httpx.Response,
    method: str,
    path: str,
    key_suffix: str = "",
) -> None:
    """Raise the typed :class:`StorageError` for a non-retryable 4xx."""
    status = response.status_code
    body = _json_body(response)
    message = _body_message(response, body)
    # The storage API reports duplicates as 400 with statusCode "409".
    body_status = str(body.get("statusCode", ""))

    if status in (401, 403):
        raise StorageAuthError(
            message=f"Storage rejected credentials on {method} {path}: {message}",
            context={"status_code": status, "key_suffix": key_suffix},
        )
    if status == 404 or body_status == "404":
        raise StorageNotFoundError(
            message=f"Not found on {method} {path}: {message}",
            context={"status_code": status, "path": path},
        )
    if status == 409 or body_status == "409":
        raise StorageConflictError(
            message=f"Object already exists on {method} {path}: {message}",
            context={"status_code": status, "path": path},
        )
    raise StorageValidationError(
        message=f"Client error {status} on {method} {path}: {message}",
        context={"status_code": status, "body": body},
    )


def _raise_unretried(response: httpx.Response, method: str, path: str) -> None:
    """Raise a :class:`StorageError` for a 429/5xx on a single-attempt request."""
    status = response.status_code
    message = _body_message(response, _json_body(response)) or response.reason_phrase
    raise StorageError(
        message=f"Storage returned {status} on {method} {path}: {message}",
        context={"status_code": status, "path": path},
    )


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncStorageTransport:
    """Asynchronous HTTP transport with auth and retry.

    Parameters
    ----------
    config:
        A :class:`GalleryConfig` with ``storage_url`` and ``storage_key``.
    http_transport:
        Optional ``httpx`` transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: GalleryConfig,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.storage_url:
            raise ValueError("storage_url is required for the storage transport")
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._key_suffix = config.storage_key[-4:] if len(config.storage_key) >= 4 else ""

        self._client = httpx.AsyncClient(
            base_url=config.storage_url.rstrip("/") + "/storage/v1",
            headers={
                "apikey": config.storage_key,
                "Authorization": f"Bearer {config.storage_key}",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
            transport=http_transport,
        )

    # -- public API --------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        retryable: bool = True,
        **kwargs: Any,
    ) -> Any:
        """Execute an HTTP request against the storage API.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to ``{storage_url}/storage/v1``.
        retryable:
            Whether 429/5xx/network failures may be retried.  When
            ``False`` exactly one attempt is made.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request`.

        Returns
        -------
        Any
            Parsed JSON response body, or ``{}`` for empty bodies.

        Raises
        ------
        StorageAuthError
            On 401/403 responses.
        StorageNotFoundError
            On 404 responses.
        StorageConflictError
            On 409 responses.
        StorageValidationError
            On other non-retryable 4xx responses.
        StorageNetworkError
            On transport failures when no further attempt is allowed.
        StorageError
            On 429/5xx when ``retryable`` is ``False``.
        StorageRetryExhaustedError
            When all attempts returned retryable statuses.
        """
        max_attempts = self._config.retry_max_attempts if retryable else 1
        last_status: int | None = None

        for attempt in range(max_attempts):
            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                delay = self._handle_network_exception(method, path, exc, attempt, max_attempts)
                await asyncio.sleep(delay)
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            tags = {"method": method, "status": str(response.status_code)}
            self._metrics.increment("galleryflow.requests_total", tags=tags)
            self._metrics.timing("galleryflow.request_duration_ms", elapsed_ms, tags=tags)

            if 200 <= response.status_code < 300:
                if response.status_code == 204 or not response.content:
                    return {}
                return response.json()

            if response.status_code not in _RETRYABLE_STATUSES:
                _raise_for_status(response, method, path, self._key_suffix)
            if not retryable:
                _raise_unretried(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after: float | None = None
            if response.status_code == 429:
                retry_after = _parse_retry_after(response)

            log.warning(
                "Retryable storage response",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }
                },
            )
            delay = compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
                retry_after=retry_after,
            )
            self._metrics.increment(
                "galleryflow.retries_total",
                tags={"method": method, "reason": retry_reason(response.status_code)},
            )
            await asyncio.sleep(delay)

        raise StorageRetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    def _handle_network_exception(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
        max_attempts: int,
    ) -> float:
        """Return the backoff delay, or raise when no attempt is left."""
        self._metrics.increment(
            "galleryflow.requests_total",
            tags={"method": method, "status": "error"},
        )
        log.warning(
            "Storage network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        if should_retry(None, exc, attempt, max_attempts):
            self._metrics.increment(
                "galleryflow.retries_total",
                tags={"method": method, "reason": retry_reason(None)},
            )
            return compute_backoff(
                attempt,
                base=self._config.retry_base_delay,
                maximum=self._config.retry_max_delay,
                jitter=self._config.retry_jitter,
            )
        raise StorageNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncStorageTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
