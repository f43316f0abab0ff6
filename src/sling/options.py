"""Options: named, composable mutations of a RequestBuilder.

Each option is a small frozen value carrying just the data it needs, with an
``apply(builder)`` method that mutates the builder in place and raises on
failure. Compound options apply other options in sequence and let the first
failure propagate.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from .client import HttpClient, Timeout
from .codecs import FormMarshaler, JSONMarshaler, Marshaler, Unmarshaler, XMLMarshaler
from .config import HttpClientConfig
from .errors import ConfigurationError
from .middleware import Doer, Middleware
from .query import encode_query
from .urls import parse_reference, resolve_reference

if TYPE_CHECKING:
    from .builder import RequestBuilder

HEADER_ACCEPT = "Accept"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"


@runtime_checkable
class Option(Protocol):
    def apply(self, builder: RequestBuilder) -> None: ...


@dataclass(frozen=True)
class OptionFunc:
    """Adapt a plain ``fn(builder)`` to the Option protocol."""

    fn: Callable[[RequestBuilder], None]

    def apply(self, builder: RequestBuilder) -> None:
        self.fn(builder)


@dataclass(frozen=True)
class Method:
    """Set the method, then extend the URL with each path in turn."""

    method: str
    paths: tuple[str, ...] = ()

    def apply(self, builder: RequestBuilder) -> None:
        builder.method = self.method
        for path in self.paths:
            RelativeURL(path).apply(builder)


@dataclass(frozen=True)
class SetURL:
    """Replace the builder's URL outright."""

    url: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.url = parse_reference(self.url)


@dataclass(frozen=True)
class RelativeURL:
    """Resolve a reference against the builder's URL.

    With no URL set yet, the reference becomes the URL.
    """

    ref: str

    def apply(self, builder: RequestBuilder) -> None:
        ref = parse_reference(self.ref)
        builder.url = resolve_reference(builder.url, ref)


@dataclass(frozen=True)
class SetHeader:
    key: str
    value: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.header.set(self.key, self.value)


@dataclass(frozen=True)
class AddHeader:
    key: str
    value: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.header.add(self.key, self.value)


@dataclass(frozen=True)
class DeleteHeader:
    key: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.header.delete(self.key)


@dataclass(frozen=True)
class SetTrailer:
    key: str
    value: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.trailer.set(self.key, self.value)


@dataclass(frozen=True)
class AddTrailer:
    key: str
    value: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.trailer.add(self.key, self.value)


@dataclass(frozen=True)
class QueryParams:
    """Merge query sources additively, in order."""

    sources: tuple[Any, ...]

    def apply(self, builder: RequestBuilder) -> None:
        for source in self.sources:
            builder.query_params.extend(encode_query(source))


@dataclass(frozen=True)
class Body:
    value: Any

    def apply(self, builder: RequestBuilder) -> None:
        builder.body = self.value


@dataclass(frozen=True)
class WithMarshaler:
    marshaler: Marshaler | None

    def apply(self, builder: RequestBuilder) -> None:
        builder.marshaler = self.marshaler


@dataclass(frozen=True)
class WithUnmarshaler:
    unmarshaler: Unmarshaler | None

    def apply(self, builder: RequestBuilder) -> None:
        builder.unmarshaler = self.unmarshaler


@dataclass(frozen=True)
class Use:
    """Append middleware after any already registered."""

    middleware: tuple[Middleware, ...]

    def apply(self, builder: RequestBuilder) -> None:
        builder.middleware = (*builder.middleware, *self.middleware)


@dataclass(frozen=True)
class WithDoer:
    doer: Doer | None

    def apply(self, builder: RequestBuilder) -> None:
        builder.doer = self.doer


@dataclass(frozen=True)
class Client:
    """Install a new HttpClient built from ``config`` as the sender."""

    config: HttpClientConfig | None = None

    def apply(self, builder: RequestBuilder) -> None:
        builder.doer = HttpClient(self.config)


@dataclass(frozen=True)
class Host:
    host: str

    def apply(self, builder: RequestBuilder) -> None:
        builder.host = self.host


@dataclass(frozen=True)
class ContentLength:
    length: int

    def apply(self, builder: RequestBuilder) -> None:
        if self.length < 0:
            raise ConfigurationError("content length must be >= 0")
        builder.content_length = self.length


@dataclass(frozen=True)
class TransferEncoding:
    codings: tuple[str, ...]

    def apply(self, builder: RequestBuilder) -> None:
        builder.transfer_encoding = self.codings


@dataclass(frozen=True)
class CloseConnection:
    close: bool = True

    def apply(self, builder: RequestBuilder) -> None:
        builder.close = self.close


@dataclass(frozen=True)
class GetBody:
    fn: Callable[[], IO[bytes]] | None

    def apply(self, builder: RequestBuilder) -> None:
        builder.get_body = self.fn


@dataclass(frozen=True)
class SetTimeout:
    timeout: Timeout

    def apply(self, builder: RequestBuilder) -> None:
        builder.timeout = self.timeout


def method(m: str, *paths: str) -> Option:
    return Method(m, paths)


def head(*paths: str) -> Option:
    return Method("HEAD", paths)


def get(*paths: str) -> Option:
    return Method("GET", paths)


def post(*paths: str) -> Option:
    return Method("POST", paths)


def put(*paths: str) -> Option:
    return Method("PUT", paths)


def patch(*paths: str) -> Option:
    return Method("PATCH", paths)


def delete(*paths: str) -> Option:
    return Method("DELETE", paths)


def url(raw: str) -> Option:
    """Set the base URL, discarding any previous one.

    If the URL will later be extended with relative paths, it should end
    with a trailing slash.
    """
    return SetURL(raw)


def relative_url(ref: str) -> Option:
    return RelativeURL(ref)


def header(key: str, value: str) -> Option:
    return SetHeader(key, value)


def add_header(key: str, value: str) -> Option:
    return AddHeader(key, value)


def delete_header(key: str) -> Option:
    return DeleteHeader(key)


def trailer(key: str, value: str) -> Option:
    return SetTrailer(key, value)


def add_trailer(key: str, value: str) -> Option:
    return AddTrailer(key, value)


def basic_auth(username: str, password: str) -> Option:
    """Set HTTP Basic Authorization. Credentials are not encrypted."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8"))
    return SetHeader(HEADER_AUTHORIZATION, "Basic " + token.decode("ascii"))


def bearer_auth(token: str) -> Option:
    """Set a bearer token; an empty token removes the Authorization header."""
    if not token:
        return DeleteHeader(HEADER_AUTHORIZATION)
    return SetHeader(HEADER_AUTHORIZATION, "Bearer " + token)


def accept(value: str) -> Option:
    return SetHeader(HEADER_ACCEPT, value)


def content_type(value: str) -> Option:
    return SetHeader(HEADER_CONTENT_TYPE, value)


def host(value: str) -> Option:
    return Host(value)


def query_params(*sources: Any) -> Option:
    return QueryParams(sources)


def body(value: Any) -> Option:
    return Body(value)


def with_marshaler(marshaler: Marshaler | None) -> Option:
    return WithMarshaler(marshaler)


def with_unmarshaler(unmarshaler: Unmarshaler | None) -> Option:
    return WithUnmarshaler(unmarshaler)


def json(indent: bool = False) -> Option:
    return WithMarshaler(JSONMarshaler(indent=indent))


def xml(indent: bool = False) -> Option:
    return WithMarshaler(XMLMarshaler(indent=indent))


def form() -> Option:
    return WithMarshaler(FormMarshaler())


def use(*middleware: Middleware) -> Option:
    return Use(middleware)


def with_doer(doer: Doer | None) -> Option:
    return WithDoer(doer)


def client(config: HttpClientConfig | None = None) -> Option:
    return Client(config)


def content_length(length: int) -> Option:
    return ContentLength(length)


def transfer_encoding(*codings: str) -> Option:
    return TransferEncoding(codings)


def close_connection(close: bool = True) -> Option:
    return CloseConnection(close)


def get_body(fn: Callable[[], IO[bytes]] | None) -> Option:
    return GetBody(fn)


def timeout(value: Timeout) -> Option:
    return SetTimeout(value)
