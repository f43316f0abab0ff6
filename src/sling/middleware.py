"""Senders and the middleware that wraps them.

A sender (``Doer``) performs a prepared request and returns the response.
``requests.Session`` satisfies the protocol as-is. Middleware takes a sender
and returns a new one, so layers compose like decorators.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import monotonic, sleep
from typing import Any, Callable, Iterable, Protocol, runtime_checkable

import requests

logger = logging.getLogger(__name__)


@runtime_checkable
class Doer(Protocol):
    def send(
        self, request: requests.PreparedRequest, **kwargs: Any
    ) -> requests.Response: ...


@dataclass(frozen=True)
class DoerFunc:
    """Adapt a plain ``fn(request, **kwargs)`` to the Doer protocol."""

    fn: Callable[..., requests.Response]

    def send(
        self, request: requests.PreparedRequest, **kwargs: Any
    ) -> requests.Response:
        return self.fn(request, **kwargs)


Middleware = Callable[[Doer], Doer]


def wrap(doer: Doer, *middleware: Middleware) -> Doer:
    """Wrap ``doer`` so middleware runs in registration order.

    The first middleware is the outermost layer: it sees the request first
    and the response last.
    """
    for layer in reversed(middleware):
        doer = layer(doer)
    return doer


def logging_middleware(log: logging.Logger | None = None) -> Middleware:
    """Log each request line, the response status and the elapsed time."""
    log = log or logger

    def middleware(next_doer: Doer) -> Doer:
        def send(
            request: requests.PreparedRequest, **kwargs: Any
        ) -> requests.Response:
            log.debug("Request: %s %s", request.method, request.url)
            started = monotonic()
            try:
                response = next_doer.send(request, **kwargs)
            except requests.exceptions.RequestException as exc:
                log.error(
                    "Request failed: %s %s - %s", request.method, request.url, exc
                )
                raise
            log.debug(
                "Response: %s (%.3fs)", response.status_code, monotonic() - started
            )
            return response

        return DoerFunc(send)

    return middleware


def _is_retryable(
    method: str | None,
    error: requests.exceptions.RequestException,
    methods: frozenset[str],
) -> bool:
    if (method or "").upper() not in methods:
        return False
    return isinstance(
        error,
        (requests.exceptions.Timeout, requests.exceptions.ConnectionError),
    )


def retry_middleware(
    retries: int = 2,
    backoff_base_seconds: float = 0.0,
    methods: Iterable[str] = ("GET", "HEAD"),
) -> Middleware:
    """Retry timeouts and connection errors with exponential backoff.

    Only idempotent methods are retried by default. When the request carries
    a ``get_body`` function the body is replayed from it before each retry.
    """
    if retries < 0:
        raise ValueError("retries must be >= 0")
    if backoff_base_seconds < 0:
        raise ValueError("backoff_base_seconds must be >= 0")
    retry_methods = frozenset(m.upper() for m in methods)

    def middleware(next_doer: Doer) -> Doer:
        def send(
            request: requests.PreparedRequest, **kwargs: Any
        ) -> requests.Response:
            attempts = 0
            while True:
                attempts += 1
                try:
                    return next_doer.send(request, **kwargs)
                except requests.exceptions.RequestException as exc:
                    if attempts > retries or not _is_retryable(
                        request.method, exc, retry_methods
                    ):
                        raise
                    logger.warning(
                        "Retrying %s %s after %s (attempt %d of %d)",
                        request.method,
                        request.url,
                        type(exc).__name__,
                        attempts + 1,
                        retries + 1,
                    )
                if backoff_base_seconds > 0:
                    sleep(backoff_base_seconds * (2 ** (attempts - 1)))
                get_body = getattr(request, "get_body", None)
                if get_body is not None:
                    request.body = get_body()

        return DoerFunc(send)

    return middleware
