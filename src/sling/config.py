"""Configuration model for the default HttpClient transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlsplit


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    Everything here shapes the transport, not individual requests: request
    attributes belong on a RequestBuilder.
    """

    user_agent: str | None = None
    default_headers: Mapping[str, str] = field(default_factory=_default_headers)
    verify_tls: bool = True
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    timeout_seconds: float | None = None
    follow_redirects: bool = True
    max_redirects: int = 30
    proxy_url: str | None = None
    trust_env: bool = True
    cookies: bool = True

    def __post_init__(self) -> None:
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")
        if (self.connect_timeout_seconds is None) != (
            self.read_timeout_seconds is None
        ):
            raise ValueError(
                "connect_timeout_seconds and read_timeout_seconds "
                "must be set together"
            )
        for name in (
            "timeout_seconds",
            "connect_timeout_seconds",
            "read_timeout_seconds",
        ):
            seconds = getattr(self, name)
            if seconds is not None and seconds <= 0:
                raise ValueError(f"{name} must be > 0 when provided")
        if self.proxy_url is not None:
            parts = urlsplit(self.proxy_url)
            if not parts.scheme or not parts.netloc:
                raise ValueError("proxy_url must be an absolute URL")

        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )
