"""Exception hierarchy for the sling request builder.

Transport failures are not wrapped: they surface as the
``requests.exceptions.RequestException`` raised by the sender.
"""

from __future__ import annotations

from typing import Any


class SlingError(Exception):
    """Base class for all errors raised by sling."""


class ConfigurationError(SlingError, ValueError):
    """An option could not be applied to a builder."""


class InvalidURLError(ConfigurationError):
    """A URL string is not a valid reference."""


class UnsupportedQuerySourceError(ConfigurationError):
    """A query parameter source has a shape that cannot be encoded."""


class OptionError(ConfigurationError):
    """Applying a sequence of options failed.

    The failing option's error is available as ``__cause__``.
    """


class MaterializationError(SlingError):
    """A builder could not be turned into a concrete request."""


class InvalidMethodError(MaterializationError, ValueError):
    """The HTTP method is not a legal token."""


class MarshalError(MaterializationError):
    """The request body could not be marshaled."""


class DecodeError(SlingError):
    """A response body could not be decoded."""


class UnmarshalError(DecodeError):
    """The unmarshaler rejected the payload or the decode target."""


class UnsupportedContentTypeError(DecodeError):
    """No codec is registered for the response content type."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"unsupported content type: {content_type}")
        self.content_type = content_type


class ResponseDecodeError(DecodeError):
    """Decoding a received response failed.

    The response has already been read in full; ``body`` holds the raw bytes
    so callers can fall back to inspecting them by hand.
    """

    def __init__(self, message: str, *, response: Any, body: bytes) -> None:
        super().__init__(message)
        self.response = response
        self.body = body
