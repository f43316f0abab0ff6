"""RequestBuilder: accumulate request attributes, then send.

A builder is configured by applying options. ``apply`` mutates it in place;
``with_options`` clones first, so a derived builder never changes its parent::

    api = RequestBuilder(url("https://api.io/"), bearer_auth(token))
    issues = api.with_options(get("issues/"))
    result = issues.receive(query_params({"state": "open"}), success=list)

Builders are not safe for concurrent ``apply`` calls. Derive a clone per
call path instead; deriving is safe because the parent is only read.
"""

from __future__ import annotations

import copy
import io
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import IO, Any, Callable

import requests

from .client import Timeout, default_client
from .codecs import DEFAULT_MARSHALER, DEFAULT_UNMARSHALER, Marshaler, Unmarshaler
from .errors import (
    InvalidMethodError,
    MarshalError,
    MaterializationError,
    OptionError,
    ResponseDecodeError,
)
from .middleware import Doer, Middleware, wrap
from .options import HEADER_CONTENT_TYPE, Option
from .urls import append_query
from .values import Header, Values, is_token

logger = logging.getLogger(__name__)


class BodyKind(Enum):
    """How a body value reaches the wire."""

    NONE = "none"
    STREAM = "stream"
    RAW = "raw"
    STRUCTURED = "structured"


def classify_body(value: Any) -> BodyKind:
    """Classify a body value.

    Streams (anything with ``read``) are sent as-is, ``str`` and bytes-like
    values are sent verbatim, and everything else goes through a marshaler.
    """
    if value is None:
        return BodyKind.NONE
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return BodyKind.RAW
    if callable(getattr(value, "read", None)):
        return BodyKind.STREAM
    return BodyKind.STRUCTURED


@dataclass(frozen=True)
class ReceiveResult:
    """Outcome of :meth:`RequestBuilder.receive`.

    ``body`` always holds the full raw response body. ``value`` is the
    decoded target, or None when decoding was skipped.
    """

    response: requests.Response
    body: bytes
    value: Any = None

    @property
    def status_code(self) -> int:
        return self.response.status_code


class RequestBuilder:
    """Configuration for building and sending HTTP requests.

    Attributes:
        method: HTTP method; empty means GET.
        url: Absolute URL or relative reference; None until one is set.
        header: Request headers. An explicit Content-Type here wins over the
            one a marshaler supplies.
        trailer: Trailer fields, attached to the prepared request as
            ``trailer`` for senders that support them.
        query_params: Added to the request after any query string already
            in ``url``.
        body: None, a stream, ``str``/bytes, or a value to marshal.
        marshaler: Marshals structured bodies; None means
            ``DEFAULT_MARSHALER`` (JSON).
        unmarshaler: Decodes received bodies; None means
            ``DEFAULT_UNMARSHALER`` (JSON or XML by content type).
        doer: Sender; None means the shared default HttpClient.
        middleware: Wrappers around the sender, outermost first.
        timeout: Seconds, or a ``(connect, read)`` pair, passed to the sender.

    The remaining attributes (``content_length``, ``transfer_encoding``,
    ``close``, ``host``, ``get_body``) override values normally computed
    during materialization and are ignored while unset.
    """

    def __init__(self, *options: Option) -> None:
        self.method: str = ""
        self.url: str | None = None
        self.header: Header = Header()
        self.trailer: Header = Header()
        self.query_params: Values = Values()
        self.body: Any = None
        self.marshaler: Marshaler | None = None
        self.unmarshaler: Unmarshaler | None = None
        self.doer: Doer | None = None
        self.middleware: tuple[Middleware, ...] = ()
        self.timeout: Timeout = None
        self.content_length: int = 0
        self.transfer_encoding: tuple[str, ...] = ()
        self.close: bool = False
        self.host: str = ""
        self.get_body: Callable[[], IO[bytes]] | None = None
        self.apply(*options)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(method={self.method!r}, url={self.url!r}, "
            f"header={dict(self.header)!r}, query_params={dict(self.query_params)!r})"
        )

    def clone(self) -> RequestBuilder:
        """Return a copy whose header, trailer, URL and query parameters can
        be changed without affecting this builder.

        Other attributes are shared references.
        """
        other = copy.copy(self)
        other.header = self.header.copy()
        other.trailer = self.trailer.copy()
        other.query_params = self.query_params.copy()
        return other

    def apply(self, *options: Option) -> None:
        """Apply options in order, mutating this builder.

        Raises:
            OptionError: wrapping the first option failure; the original
                error is its ``__cause__``. Options before it stay applied.
        """
        for option in options:
            try:
                option.apply(self)
            except OptionError:
                raise
            except Exception as exc:
                raise OptionError(f"applying options: {exc}") from exc

    def with_options(self, *options: Option) -> RequestBuilder:
        """Return a clone with ``options`` applied.

        On failure the clone is discarded and this builder is unchanged.
        """
        other = self.clone()
        other.apply(*options)
        return other

    def _derive(self, options: tuple[Option, ...]) -> RequestBuilder:
        return self.with_options(*options) if options else self

    def _resolve_body(self) -> tuple[Any, str]:
        kind = classify_body(self.body)
        if kind is BodyKind.NONE:
            return None, ""
        if kind is BodyKind.STREAM:
            return self.body, ""
        if kind is BodyKind.RAW:
            if isinstance(self.body, str):
                return self.body.encode("utf-8"), ""
            return bytes(self.body), ""
        marshaler = self.marshaler or DEFAULT_MARSHALER
        try:
            data, content_type = marshaler.marshal(self.body)
        except Exception as exc:
            raise MarshalError(f"marshaling body: {exc}") from exc
        return data, content_type

    def _materialize(self) -> requests.PreparedRequest:
        method = self.method or "GET"
        if not is_token(method):
            raise InvalidMethodError(f"invalid method {method!r}")

        data, inferred_type = self._resolve_body()

        header = self.header.copy()
        if inferred_type and HEADER_CONTENT_TYPE not in header:
            header.set(HEADER_CONTENT_TYPE, inferred_type)
        if self.host:
            header.set("Host", self.host)
        if self.close:
            header.set("Connection", "close")
        if self.trailer:
            header.set("Trailer", ", ".join(self.trailer))

        target = append_query(self.url or "", self.query_params)
        try:
            prepared = requests.Request(
                method=method,
                url=target,
                headers=header.to_flat(),
                data=data,
            ).prepare()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise MaterializationError(f"preparing request: {exc}") from exc

        # Transfer-Encoding and Content-Length never travel together; an
        # explicit transfer coding wins over any length.
        if self.transfer_encoding:
            prepared.headers.pop("Content-Length", None)
            prepared.headers["Transfer-Encoding"] = ", ".join(self.transfer_encoding)
        elif self.content_length:
            prepared.headers.pop("Transfer-Encoding", None)
            prepared.headers["Content-Length"] = str(self.content_length)

        get_body = self.get_body
        if get_body is None and isinstance(data, bytes):
            get_body = partial(io.BytesIO, data)
        prepared.get_body = get_body  # type: ignore[attr-defined]
        prepared.trailer = self.trailer.copy()  # type: ignore[attr-defined]
        return prepared

    def request(self, *options: Option) -> requests.PreparedRequest:
        """Build a prepared request.

        Options passed here apply to this request only.

        Raises:
            OptionError: if an option fails.
            InvalidMethodError: if the method is not a legal HTTP token.
            MarshalError: if the body could not be marshaled.
            MaterializationError: if the URL cannot be prepared.
        """
        return self._derive(options)._materialize()

    def _send(self, timeout: Timeout) -> requests.Response:
        prepared = self._materialize()
        doer = self.doer if self.doer is not None else default_client()
        sender = wrap(doer, *self.middleware)
        logger.debug("%s %s", prepared.method, prepared.url)
        return sender.send(
            prepared,
            timeout=timeout if timeout is not None else self.timeout,
            stream=True,
        )

    def do(self, *options: Option, timeout: Timeout = None) -> requests.Response:
        """Send a request and return the raw response.

        The body is streamed and left unread: the caller must close the
        response (``with builder.do() as response: ...``). Use
        :meth:`receive` to have the body read, closed and decoded.

        Options passed here apply to this call only, including ones that
        swap the sender or add middleware.
        """
        return self._derive(options)._send(timeout)

    def _decode(
        self, response: requests.Response, body: bytes, target: Any
    ) -> Any:
        if target is str:
            return response.text
        if target is bytes:
            return body
        if not body:
            return None
        unmarshaler = self.unmarshaler or DEFAULT_UNMARSHALER
        return unmarshaler.unmarshal(
            body, response.headers.get(HEADER_CONTENT_TYPE, ""), target
        )

    def receive(
        self,
        *options: Option,
        success: Any = None,
        failure: Any = None,
        timeout: Timeout = None,
    ) -> ReceiveResult:
        """Send a request, read the whole body and decode it.

        2xx responses decode into ``success``, anything else into
        ``failure``. A target is a class to construct or an instance to
        populate; ``str`` receives the body text. When the selected target
        is None, decoding is skipped. The response is always closed.

        Raises:
            OptionError, MaterializationError: before anything is sent.
            requests.exceptions.RequestException: transport failures,
                unchanged.
            ResponseDecodeError: decoding failed; ``response`` and ``body``
                are attached.
        """
        builder = self._derive(options)
        response = builder._send(timeout)
        with response:
            body = response.content

        target = success if 200 <= response.status_code <= 299 else failure
        if target is None:
            return ReceiveResult(response, body)
        try:
            value = builder._decode(response, body, target)
        except Exception as exc:
            raise ResponseDecodeError(
                f"decoding response body: {exc}", response=response, body=body
            ) from exc
        return ReceiveResult(response, body, value)
