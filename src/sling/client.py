"""Default transport for sling: a ``requests.Session`` behind the Doer protocol.

Transport concerns (TLS verification, proxies, redirects, cookies, default
timeouts) are configured here once, before the client is handed to a
RequestBuilder as its sender.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from http.cookiejar import DefaultCookiePolicy
from typing import Any

import requests

from .config import HttpClientConfig

logger = logging.getLogger(__name__)

Timeout = float | tuple[float, float] | None


class HttpClient:
    """Core HTTP sender (sync).

    Wraps a ``requests.Session``. Requests are sent as prepared by the
    builder; the client only fills in transport defaults the request lacks.
    """

    def __init__(self, config: HttpClientConfig | None = None) -> None:
        """Create a new HttpClient.

        Args:
            config: Configuration for timeouts, headers, and transport
                settings. Defaults to ``HttpClientConfig()``.
        """
        self._config = config or HttpClientConfig()
        self._session = requests.Session()
        self._session.max_redirects = self._config.max_redirects
        self._session.trust_env = self._config.trust_env
        if self._config.proxy_url:
            self._session.proxies = {
                "http": self._config.proxy_url,
                "https": self._config.proxy_url,
            }
        if not self._config.cookies:
            self._session.cookies.set_policy(
                DefaultCookiePolicy(allowed_domains=[])
            )

    @property
    def config(self) -> HttpClientConfig:
        return self._config

    def _get_timeout(self, override: Timeout) -> Timeout:
        """Resolve timeout preference."""
        if override is not None:
            if isinstance(override, tuple):
                if any(part <= 0 for part in override):
                    raise ValueError("timeout override must be > 0 when provided")
            elif override <= 0:
                raise ValueError("timeout override must be > 0 when provided")
            return override
        if (
            self._config.connect_timeout_seconds is not None
            and self._config.read_timeout_seconds is not None
        ):
            return (
                self._config.connect_timeout_seconds,
                self._config.read_timeout_seconds,
            )
        return self._config.timeout_seconds

    def _apply_default_headers(self, request: requests.PreparedRequest) -> None:
        if self._config.user_agent and "User-Agent" not in request.headers:
            request.headers["User-Agent"] = self._config.user_agent
        for key, value in self._config.default_headers.items():
            if key not in request.headers:
                request.headers[key] = value

    def send(
        self, request: requests.PreparedRequest, **kwargs: Any
    ) -> requests.Response:
        """Send a prepared request.

        Args:
            request: The request to send.
            **kwargs: Passed to ``requests.Session.send``; ``timeout`` is
                resolved against the configured defaults.

        Returns:
            The response. Transport failures propagate as
            ``requests.exceptions.RequestException``.
        """
        kwargs["timeout"] = self._get_timeout(kwargs.get("timeout"))
        kwargs.setdefault("verify", self._config.verify_tls)
        kwargs.setdefault("allow_redirects", self._config.follow_redirects)
        self._apply_default_headers(request)
        logger.debug(
            "Sending %s %s (timeout=%s)",
            request.method,
            request.url,
            kwargs["timeout"],
        )
        return self._session.send(request, **kwargs)

    def close(self) -> None:
        self._session.close()


@lru_cache(maxsize=None)
def default_client() -> HttpClient:
    """Return the process-wide shared HttpClient, created on first use."""
    return HttpClient()
