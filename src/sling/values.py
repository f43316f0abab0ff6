"""Multi-valued mappings for headers and query parameters."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping
from urllib.parse import urlencode

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def is_token(value: str) -> bool:
    """Return True if ``value`` is a legal HTTP token (RFC 7230)."""
    return bool(_TOKEN.match(value))


def canonical_header_key(key: str) -> str:
    """Return the canonical form of a header name.

    The first letter and every letter following a hyphen are upper-cased,
    the rest lower-cased: ``accept-encoding`` becomes ``Accept-Encoding``.
    Keys that are not valid tokens are returned unchanged.
    """
    if not is_token(key):
        return key
    return "-".join(
        part[:1].upper() + part[1:].lower() for part in key.split("-")
    )


class _MultiDict(dict[str, list[str]]):
    """``dict[str, list[str]]`` with add/set semantics.

    ``get`` returns the first value (or ``""``), mirroring how a single
    header or parameter is usually read; ``values_for`` returns them all.
    """

    def __init__(self, initial: Mapping[str, Any] | Iterable | None = None):
        super().__init__()
        if initial is None:
            return
        items = initial.items() if isinstance(initial, Mapping) else initial
        for key, values in items:
            if isinstance(values, str):
                self.add(key, values)
                continue
            for value in values:
                self.add(key, value)

    def _key(self, key: str) -> str:
        return key

    def __getitem__(self, key: str) -> list[str]:
        return super().__getitem__(self._key(key))

    def __setitem__(self, key: str, values: list[str]) -> None:
        super().__setitem__(self._key(key), values)

    def __delitem__(self, key: str) -> None:
        super().__delitem__(self._key(key))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return super().__contains__(self._key(key))

    def pop(self, key: str, *default: Any) -> Any:
        return super().pop(self._key(key), *default)

    def setdefault(self, key: str, default: Any = None) -> Any:
        return super().setdefault(self._key(key), default)

    def update(self, *args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        for key, values in dict(*args, **kwargs).items():
            self[key] = values

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to the values already stored under ``key``."""
        super().setdefault(self._key(key), []).append(value)

    def set(self, key: str, value: str) -> None:
        """Replace all values stored under ``key`` with ``value``."""
        self[key] = [value]

    def get(self, key: str, default: str = "") -> str:  # type: ignore[override]
        values = super().get(self._key(key))
        return values[0] if values else default

    def values_for(self, key: str) -> list[str]:
        return list(super().get(self._key(key), []))

    def delete(self, key: str) -> None:
        super().pop(self._key(key), None)

    def extend(self, other: Mapping[str, Iterable[str]]) -> None:
        """Append every value of ``other``; existing values are kept."""
        for key, values in other.items():
            for value in values:
                self.add(key, value)

    def copy(self):  # type: ignore[override]
        return type(self)((key, list(values)) for key, values in self.items())


class Header(_MultiDict):
    """Ordered multi-valued header mapping with canonical keys."""

    def _key(self, key: str) -> str:
        return canonical_header_key(key)

    def to_flat(self) -> dict[str, str]:
        """Collapse to one value per key, joined the way HTTP allows."""
        return {key: ", ".join(values) for key, values in self.items() if values}


class Values(_MultiDict):
    """Ordered multi-valued query parameter mapping."""

    def encode(self) -> str:
        """Encode as ``key=value`` pairs sorted by key.

        Values under one key keep their insertion order.
        """
        pairs = [(key, value) for key in sorted(self) for value in self[key]]
        return urlencode(pairs)
