"""sling: a composable HTTP request builder on top of requests."""

from __future__ import annotations

from typing import Any

import requests

from .builder import BodyKind, ReceiveResult, RequestBuilder, classify_body
from .client import HttpClient, default_client
from .codecs import (
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_XML,
    DEFAULT_MARSHALER,
    DEFAULT_UNMARSHALER,
    FormMarshaler,
    JSONMarshaler,
    MarshalFunc,
    Marshaler,
    MultiUnmarshaler,
    UnmarshalFunc,
    Unmarshaler,
    XMLMarshaler,
)
from .config import HttpClientConfig
from .errors import (
    ConfigurationError,
    DecodeError,
    InvalidMethodError,
    InvalidURLError,
    MarshalError,
    MaterializationError,
    OptionError,
    ResponseDecodeError,
    SlingError,
    UnmarshalError,
    UnsupportedContentTypeError,
    UnsupportedQuerySourceError,
)
from .middleware import (
    Doer,
    DoerFunc,
    Middleware,
    logging_middleware,
    retry_middleware,
    wrap,
)
from .options import (
    Option,
    OptionFunc,
    accept,
    add_header,
    add_trailer,
    basic_auth,
    bearer_auth,
    body,
    client,
    close_connection,
    content_length,
    content_type,
    delete,
    delete_header,
    form,
    get,
    get_body,
    head,
    header,
    host,
    json,
    method,
    patch,
    post,
    put,
    query_params,
    relative_url,
    timeout,
    trailer,
    transfer_encoding,
    url,
    use,
    with_doer,
    with_marshaler,
    with_unmarshaler,
    xml,
)
from .values import Header, Values

__version__ = "0.1.0"


def new(*options: Option) -> RequestBuilder:
    """Return a new RequestBuilder with ``options`` applied."""
    return RequestBuilder(*options)


def request(*options: Option) -> requests.PreparedRequest:
    """Build a prepared request from ``options`` in one call."""
    return RequestBuilder(*options).request()


def do(*options: Option, timeout: Any = None) -> requests.Response:
    """Send a request built from ``options``; the caller closes the response."""
    return RequestBuilder(*options).do(timeout=timeout)


def receive(
    *options: Option,
    success: Any = None,
    failure: Any = None,
    timeout: Any = None,
) -> ReceiveResult:
    """Send a request built from ``options`` and decode the response."""
    return RequestBuilder(*options).receive(
        success=success, failure=failure, timeout=timeout
    )


__all__ = [
    "BodyKind",
    "CONTENT_TYPE_FORM",
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_XML",
    "ConfigurationError",
    "DEFAULT_MARSHALER",
    "DEFAULT_UNMARSHALER",
    "DecodeError",
    "Doer",
    "DoerFunc",
    "FormMarshaler",
    "Header",
    "HttpClient",
    "HttpClientConfig",
    "InvalidMethodError",
    "InvalidURLError",
    "JSONMarshaler",
    "MarshalError",
    "MarshalFunc",
    "Marshaler",
    "MaterializationError",
    "Middleware",
    "MultiUnmarshaler",
    "Option",
    "OptionError",
    "OptionFunc",
    "ReceiveResult",
    "RequestBuilder",
    "ResponseDecodeError",
    "SlingError",
    "UnmarshalError",
    "UnmarshalFunc",
    "Unmarshaler",
    "UnsupportedContentTypeError",
    "UnsupportedQuerySourceError",
    "Values",
    "XMLMarshaler",
    "accept",
    "add_header",
    "add_trailer",
    "basic_auth",
    "bearer_auth",
    "body",
    "classify_body",
    "client",
    "close_connection",
    "content_length",
    "content_type",
    "default_client",
    "delete",
    "delete_header",
    "do",
    "form",
    "get",
    "get_body",
    "head",
    "header",
    "host",
    "json",
    "logging_middleware",
    "method",
    "new",
    "patch",
    "post",
    "put",
    "query_params",
    "receive",
    "relative_url",
    "request",
    "retry_middleware",
    "timeout",
    "trailer",
    "transfer_encoding",
    "url",
    "use",
    "with_doer",
    "with_marshaler",
    "with_unmarshaler",
    "wrap",
    "xml",
]
