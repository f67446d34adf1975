"""Instrumented HTTP client with auto-timing and metric emission."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

from gatewayload.dsl.checks import CheckResult, check

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from gatewayload._internal.types import Headers, Predicate


def _noop_callback(metric: RequestMetric | CheckResult) -> None:
    """Default no-op metric and check callback."""


@dataclass
class RequestMetric:
    """Raw metric emitted for every HTTP request.

    Attributes:
        timestamp: Monotonic timestamp when the request started.
        name: Logical name for metric grouping (e.g., "service-a hello").
        method: HTTP method.
        url: Full request URL.
        status_code: HTTP response status code (0 if request failed).
        latency_ms: Response time in milliseconds, body included.
        content_length: Response body size in bytes.
        error: Error message if the request failed, None otherwise.
        worker_id: ID of the worker that made the request.
    """

    timestamp: float
    name: str
    method: str
    url: str
    status_code: int
    latency_ms: float
    content_length: int
    error: str | None = None
    worker_id: int = 0

    @property
    def failed(self) -> bool:
        """True for transport errors and 4xx/5xx responses."""
        return self.error is not None or self.status_code >= 400


class HttpClient:
    """Instrumented async HTTP client wrapping ``aiohttp.ClientSession``.

    Every request is auto-timed and emits a ``RequestMetric`` via the
    configured ``metric_callback``. One client is opened per virtual user.

    Attributes:
        base_url: Base URL prepended to all request paths.
        headers: Mutable headers dict applied to every request. Setup hooks
            can modify this; per-call ``headers`` are merged on top.
    """

    def __init__(
        self,
        base_url: str,
        headers: Headers | None = None,
        metric_callback: Callable[[RequestMetric], None] | None = None,
        check_callback: Callable[[CheckResult], None] | None = None,
        worker_id: int = 0,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL prepended to all request paths.
            headers: Default headers applied to every request.
            metric_callback: Callback invoked with a ``RequestMetric``
                after each request. Defaults to a no-op.
            check_callback: Callback invoked with a ``CheckResult`` for
                every check made through ``check()``. Defaults to a no-op.
            worker_id: Worker identifier for metric tagging.
            timeout: Total request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.headers: Headers = dict(headers or {})
        self._metric_callback = metric_callback or _noop_callback
        self._check_callback = check_callback or _noop_callback
        self._worker_id = worker_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(
        self,
        path: str,
        *,
        name: str | None = None,
        headers: Headers | None = None,
        **kwargs: object,
    ) -> aiohttp.ClientResponse:
        """Send a GET request.

        Args:
            path: URL path appended to base_url.
            name: Logical name for metric grouping. Defaults to the path.
            headers: Extra headers for this request only, merged over the
                client headers.
            **kwargs: Additional keyword arguments passed to aiohttp.

        Returns:
            The aiohttp response object, body already read.
        """
        return await self._request("GET", path, name=name, headers=headers, **kwargs)

    def check(
        self,
        response: object | None,
        predicates: Mapping[str, Predicate],
    ) -> bool:
        """Evaluate named checks against a response and record them.

        Args:
            response: Response returned by one of the request methods.
            predicates: Mapping of check name to predicate.

        Returns:
            True if every check passed.
        """
        return check(
            response,
            predicates,
            callback=self._check_callback,
            worker_id=self._worker_id,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        name: str | None = None,
        headers: Headers | None = None,
        **kwargs: object,
    ) -> aiohttp.ClientResponse:
        """Send an HTTP request with auto-timing and metric emission.

        The response body is read before the metric is emitted so the
        connection goes back to the pool and the latency covers the full
        response.

        Raises:
            RuntimeError: If the client is used outside of an async context
                manager.
            aiohttp.ClientError: On transport failures, after the failed
                request has been recorded.
            TimeoutError: When the request exceeds the timeout.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        url = f"{self.base_url}{path}"
        metric_name = name or path
        merged_headers = {**self.headers, **(headers or {})}

        start = time.monotonic()
        status_code = 0
        content_length = 0
        error: str | None = None
        cancelled = False

        try:
            resp = await self._session.request(
                method,
                url,
                headers=merged_headers,
                **kwargs,  # type: ignore[arg-type]
            )
            status_code = resp.status
            body = await resp.read()
            content_length = len(body)
        except asyncio.CancelledError:
            # Interrupted by shutdown, not a request outcome
            cancelled = True
            raise
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            latency_ms = (time.monotonic() - start) * 1000
            if not cancelled:
                self._metric_callback(
                    RequestMetric(
                        timestamp=start,
                        name=metric_name,
                        method=method,
                        url=url,
                        status_code=status_code,
                        latency_ms=latency_ms,
                        content_length=content_length,
                        error=error,
                        worker_id=self._worker_id,
                    )
                )

        return resp
