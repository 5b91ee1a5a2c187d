"""Riak objects with their links, user metadata and secondary indexes."""

from __future__ import annotations

import string
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Union

Binary = Union[bytes, bytearray, memoryview, str]

_PRINTABLE = frozenset(
    (string.ascii_letters + string.digits + string.punctuation + " ").encode("ascii")
)


def _as_binary(value: Optional[Binary], name: str) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{name} must be bytes or str, not {type(value).__name__}")


def _render(value: bytes) -> str:
    if all(byte in _PRINTABLE for byte in value):
        return value.decode("ascii")
    return value.hex()


@dataclass(frozen=True)
class Link:
    """A link-walking link to another object."""

    bucket: Optional[bytes] = None
    key: Optional[bytes] = None
    tag: Optional[bytes] = None

    def __post_init__(self) -> None:
        for name in ("bucket", "key", "tag"):
            object.__setattr__(self, name, _as_binary(getattr(self, name), name))


@dataclass(frozen=True)
class Pair:
    """A key with an optional value, used for metadata and index entries."""

    key: bytes
    value: Optional[bytes] = None

    def __post_init__(self) -> None:
        key = _as_binary(self.key, "key")
        if key is None:
            raise TypeError("key is required")
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "value", _as_binary(self.value, "value"))


@dataclass
class RiakObject:
    """One stored value and its metadata; unset optional fields are None."""

    bucket: Optional[bytes] = None
    key: Optional[bytes] = None
    value: Optional[bytes] = None
    charset: Optional[bytes] = None
    last_mod: Optional[int] = None
    last_mod_usecs: Optional[int] = None
    content_type: Optional[bytes] = None
    encoding: Optional[bytes] = None
    deleted: Optional[bool] = None
    vtag: Optional[bytes] = None
    links: List[Link] = field(default_factory=list)
    usermeta: List[Pair] = field(default_factory=list)
    indexes: List[Pair] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in ("bucket", "key", "value", "charset", "content_type", "encoding", "vtag"):
            setattr(self, name, _as_binary(getattr(self, name), name))
        self.links = list(self.links)
        self.usermeta = list(self.usermeta)
        self.indexes = list(self.indexes)

    def copy(self) -> "RiakObject":
        """Return an independent copy; its lists can be changed freely."""
        return replace(
            self,
            links=list(self.links),
            usermeta=list(self.usermeta),
            indexes=list(self.indexes),
        )


def describe_pairs(pairs: Iterable[Pair]) -> str:
    """Render pairs one field per line, values shown only when present."""
    lines = []
    for pair in pairs:
        lines.append(f"key: {_render(pair.key)}")
        if pair.value is not None:
            lines.append(f"value: {_render(pair.value)}")
    return "".join(line + "\n" for line in lines)