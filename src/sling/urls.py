"""URL reference parsing and resolution."""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from .errors import InvalidURLError
from .values import Values

_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_PATH_END = re.compile(r"[?#]")
# RFC 3986 appendix B
_COMPONENTS = re.compile(r"^(([^:/?#]+):)?(//([^/?#]*))?([^?#]*)(\?([^#]*))?(#(.*))?")


def parse_reference(raw: str) -> str:
    """Validate ``raw`` as an absolute URL or relative reference.

    Returns the reference unchanged.

    Raises:
        InvalidURLError: if ``raw`` is not a valid reference.
    """
    if _CONTROL.search(raw):
        raise InvalidURLError(
            f"not a valid reference: {raw!r}: invalid control character"
        )
    if _BAD_ESCAPE.search(raw):
        raise InvalidURLError(f"not a valid reference: {raw!r}: invalid escape")
    if not _SCHEME.match(raw):
        first_segment = _PATH_END.split(raw, 1)[0].split("/", 1)[0]
        if ":" in first_segment:
            raise InvalidURLError(
                f"not a valid reference: {raw!r}: "
                "first path segment cannot contain a colon"
            )
    try:
        parts = urlsplit(raw)
        parts.port
    except ValueError as exc:
        raise InvalidURLError(f"not a valid reference: {raw!r}: {exc}") from exc
    return raw


def _split(raw: str) -> tuple[str | None, str | None, str, str | None, str | None]:
    """Split into (scheme, authority, path, query, fragment); absent parts are None."""
    match = _COMPONENTS.match(raw)
    assert match is not None
    scheme, authority, path, query, fragment = match.group(2, 4, 5, 7, 9)
    return scheme, authority, path, query, fragment


def _remove_dot_segments(path: str) -> str:
    output: list[str] = []
    while path:
        if path.startswith("../"):
            path = path[3:]
        elif path.startswith("./"):
            path = path[2:]
        elif path.startswith("/./"):
            path = path[2:]
        elif path == "/.":
            path = "/"
        elif path.startswith("/../") or path == "/..":
            path = "/" + path[4:]
            if output:
                output.pop()
        elif path in (".", ".."):
            path = ""
        else:
            end = path.find("/", 1 if path.startswith("/") else 0)
            if end == -1:
                end = len(path)
            output.append(path[:end])
            path = path[end:]
    return "".join(output)


def _merge(base_authority: str | None, base_path: str, ref_path: str) -> str:
    if base_authority is not None and not base_path:
        return "/" + ref_path
    return base_path[: base_path.rfind("/") + 1] + ref_path


def resolve_reference(base: str | None, ref: str) -> str:
    """Resolve ``ref`` against ``base`` per RFC 3986 section 5.2.

    A base ending in ``/`` is extended by a relative path; otherwise the last
    path segment of the base is replaced. Any scheme resolves the same way.
    With no base, ``ref`` is adopted. An empty reference leaves the base
    unchanged.
    """
    if base is None:
        return ref
    b_scheme, b_authority, b_path, b_query, b_fragment = _split(base)
    scheme, authority, path, query, fragment = _split(ref)
    if scheme is not None:
        path = _remove_dot_segments(path)
    else:
        if authority is not None:
            path = _remove_dot_segments(path)
        else:
            if not path:
                path = b_path
                if query is None:
                    query = b_query
                    if fragment is None:
                        fragment = b_fragment
            elif path.startswith("/"):
                path = _remove_dot_segments(path)
            else:
                path = _remove_dot_segments(_merge(b_authority, b_path, path))
            authority = b_authority
        scheme = b_scheme

    resolved = f"{scheme}:" if scheme is not None else ""
    if authority is not None:
        resolved += "//" + authority
    resolved += path
    if query is not None:
        resolved += "?" + query
    if fragment is not None:
        resolved += "#" + fragment
    return resolved


def append_query(url: str, values: Values) -> str:
    """Append encoded ``values`` after any query string already in ``url``."""
    if not values:
        return url
    parts = urlsplit(url)
    encoded = values.encode()
    query = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit(parts._replace(query=query))
