"""Responses for bucket and key listings, map/reduce and server information.

Listing and map/reduce answers arrive as a stream of messages; each response
collects the parts as they come in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from riakclient.objects import Binary


def _to_bytes(value: Optional[Binary], name: str) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{name} must be bytes or str, not {type(value).__name__}")


def _binaries(values: Iterable[Binary], name: str) -> List[bytes]:
    return [_to_bytes(value, name) for value in values]


@dataclass
class ListBucketsResponse:
    """All bucket names received so far."""

    buckets: List[bytes] = field(default_factory=list)
    done: bool = False
    n_responses: int = 0

    def __post_init__(self) -> None:
        self.buckets = _binaries(self.buckets, "bucket")

    def add(self, buckets: Iterable[Binary], done: bool) -> None:
        """Append one streamed message's bucket names."""
        self.buckets.extend(_binaries(buckets, "bucket"))
        self.n_responses += 1
        self.done = bool(done)


@dataclass
class ListKeysResponse:
    """All keys of a bucket received so far."""

    keys: List[bytes] = field(default_factory=list)
    done: bool = False
    n_responses: int = 0

    def __post_init__(self) -> None:
        self.keys = _binaries(self.keys, "key")

    def add(self, keys: Iterable[Binary], done: bool) -> None:
        """Append one streamed message's keys."""
        self.keys.extend(_binaries(keys, "key"))
        self.n_responses += 1
        self.done = bool(done)


@dataclass(frozen=True)
class MapReduceMessage:
    """One streamed map/reduce result; unset fields are None."""

    phase: Optional[int] = None
    response: Optional[bytes] = None
    done: Optional[bool] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "response", _to_bytes(self.response, "response"))


@dataclass
class MapReduceResponse:
    """All map/reduce results received so far."""

    messages: List[MapReduceMessage] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.messages = list(self.messages)

    @property
    def n_responses(self) -> int:
        """Number of messages received."""
        return len(self.messages)

    @property
    def done(self) -> bool:
        """True once a message has marked the stream finished."""
        return any(message.done for message in self.messages)

    def add(self, message: MapReduceMessage) -> None:
        """Append one streamed result."""
        if not isinstance(message, MapReduceMessage):
            raise TypeError("message must be a MapReduceMessage")
        self.messages.append(message)


@dataclass(frozen=True)
class ServerInfoResponse:
    """The server's node name and version; unset fields are None."""

    node: Optional[bytes] = None
    server_version: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "node", _to_bytes(self.node, "node"))
        object.__setattr__(
            self, "server_version", _to_bytes(self.server_version, "server_version")
        )