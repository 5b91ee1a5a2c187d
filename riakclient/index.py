"""Secondary index queries: options, request encoding and streamed responses."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterator, List, Optional, Tuple, Union

from riakclient.messages import (
    MessageCode,
    MessageFormatError,
    PbMessage,
    decode_fields,
    encode_fields,
)
from riakclient.objects import Binary, Pair, describe_pairs

_UINT32_MAX = 0xFFFFFFFF

_PRINTABLE = frozenset(
    (string.ascii_letters + string.digits + string.punctuation + " ").encode("ascii")
)

_UINT32_FIELDS = frozenset({"max_results", "timeout"})
_FLAG_FIELDS = frozenset({"return_terms", "stream", "pagination_sort"})
_BINARY_FIELDS = frozenset(
    {"key", "range_min", "range_max", "continuation", "type", "term_regex"}
)


class QueryType(IntEnum):
    """Kind of index query: exact match or range."""

    EQ = 0
    RANGE = 1


def _uint32(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, not {type(value).__name__}")
    if not 0 <= value <= _UINT32_MAX:
        raise ValueError(f"{name} must fit in an unsigned 32-bit integer: {value}")
    return value


def _binary(name: str, value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{name} must be bytes or str, not {type(value).__name__}")


def _normalize(name: str, value: Any) -> Any:
    if name == "qtype":
        return QueryType(value)
    if value is None:
        return None
    if name in _UINT32_FIELDS:
        return _uint32(name, value)
    if name in _FLAG_FIELDS:
        return bool(value)
    if name in _BINARY_FIELDS:
        return _binary(name, value)
    return value


def _render(value: Optional[bytes]) -> str:
    if value is None:
        return ""
    if all(byte in _PRINTABLE for byte in value):
        return value.decode("ascii")
    return value.hex()


def _flag(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class IndexOptions:
    """Parameters of an index query; a field left as None is not sent.

    Streaming is switched on by default.
    """

    qtype: QueryType = QueryType.EQ
    key: Optional[Binary] = None
    range_min: Optional[Binary] = None
    range_max: Optional[Binary] = None
    return_terms: Optional[bool] = None
    stream: Optional[bool] = True
    max_results: Optional[int] = None
    continuation: Optional[Binary] = None
    timeout: Optional[int] = None
    type: Optional[Binary] = None
    term_regex: Optional[Binary] = None
    pagination_sort: Optional[bool] = None

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, _normalize(name, value))

    def is_range_query(self) -> bool:
        """True when the query asks for a range rather than an exact match."""
        return self.qtype is QueryType.RANGE


@dataclass(frozen=True)
class IndexRequest:
    """An encoded index query with the bucket and index it was made for."""

    bucket: bytes
    index: bytes
    message: PbMessage


def _request_fields(
    bucket: bytes, index: bytes, options: Optional[IndexOptions]
) -> Iterator[Tuple[int, Union[int, bool, bytes]]]:
    yield 1, bucket
    yield 2, index
    yield 3, int(options.qtype if options is not None else QueryType.EQ)
    if options is None:
        return
    optional = (
        (4, options.key),
        (5, options.range_min),
        (6, options.range_max),
        (7, options.return_terms),
        (8, options.stream),
        (9, options.max_results),
        (10, options.continuation),
        (11, options.timeout),
        (12, options.type),
        (13, options.term_regex),
        (14, options.pagination_sort),
    )
    for number, value in optional:
        if value is not None:
            yield number, value


def encode_index_request(
    bucket: Binary, index: Binary, options: Optional[IndexOptions] = None
) -> IndexRequest:
    """Build the request message for a secondary index query."""
    if options is not None and not isinstance(options, IndexOptions):
        raise TypeError("options must be IndexOptions")
    bucket_bytes = _binary("bucket", bucket)
    index_bytes = _binary("index", index)
    body = encode_fields(_request_fields(bucket_bytes, index_bytes, options))
    return IndexRequest(bucket_bytes, index_bytes, PbMessage(MessageCode.INDEX_REQ, body))


@dataclass
class IndexChunk:
    """One streamed part of an index answer."""

    keys: List[bytes] = field(default_factory=list)
    results: List[Pair] = field(default_factory=list)
    continuation: Optional[bytes] = None
    done: Optional[bool] = None

    def __post_init__(self) -> None:
        self.keys = [_binary("key", key) for key in self.keys]
        self.results = list(self.results)
        for pair in self.results:
            if not isinstance(pair, Pair):
                raise TypeError("results must hold Pair values")
        if self.continuation is not None:
            self.continuation = _binary("continuation", self.continuation)
        if self.done is not None:
            self.done = bool(self.done)


def _expect_bytes(number: int, value: Union[int, bytes]) -> bytes:
    if not isinstance(value, bytes):
        raise MessageFormatError(f"field {number} must be length-delimited")
    return value


def _decode_pair(data: bytes) -> Pair:
    key: Optional[bytes] = None
    value: Optional[bytes] = None
    for number, raw in decode_fields(data):
        if number == 1:
            key = _expect_bytes(number, raw)
        elif number == 2:
            value = _expect_bytes(number, raw)
    if key is None:
        raise MessageFormatError("index result has no key")
    return Pair(key, value)


def _decode_chunk(message: PbMessage) -> IndexChunk:
    if message.msgid is not MessageCode.INDEX_RESP:
        raise MessageFormatError(f"expected an index response, got {message.msgid.name}")
    chunk = IndexChunk()
    for number, raw in message.payload():
        if number == 1:
            chunk.keys.append(_expect_bytes(number, raw))
        elif number == 2:
            chunk.results.append(_decode_pair(_expect_bytes(number, raw)))
        elif number == 3:
            chunk.continuation = _expect_bytes(number, raw)
        elif number == 4:
            if not isinstance(raw, int):
                raise MessageFormatError("field 4 must be a varint")
            chunk.done = bool(raw)
    return chunk


@dataclass
class IndexResponse:
    """The keys and results of an index query, gathered from its chunks."""

    keys: List[bytes] = field(default_factory=list)
    results: List[Pair] = field(default_factory=list)
    continuation: Optional[bytes] = None
    done: Optional[bool] = None
    chunks: List[IndexChunk] = field(default_factory=list)

    @property
    def n_keys(self) -> int:
        """Number of keys assembled."""
        return len(self.keys)

    @property
    def n_results(self) -> int:
        """Number of results assembled."""
        return len(self.results)

    @property
    def n_responses(self) -> int:
        """Number of chunks received."""
        return len(self.chunks)

    @property
    def has_continuation(self) -> bool:
        """True when the last chunk carried a continuation."""
        return self.continuation is not None

    @property
    def has_done(self) -> bool:
        """True when the last chunk carried a done flag."""
        return self.done is not None

    def add_chunk(self, chunk: Union[IndexChunk, PbMessage], streaming: bool) -> bool:
        """Take in one chunk and return whether the answer is complete.

        Keys and results are reassembled from every chunk so far when
        streaming or when this chunk finishes the answer; continuation and
        done always come from the latest chunk.
        """
        if isinstance(chunk, PbMessage):
            chunk = _decode_chunk(chunk)
        elif not isinstance(chunk, IndexChunk):
            raise TypeError("chunk must be an IndexChunk or PbMessage")
        self.chunks.append(chunk)
        finished = bool(chunk.done)
        if streaming or finished:
            self.keys = [key for part in self.chunks for key in part.keys]
            self.results = [pair for part in self.chunks for pair in part.results]
        self.continuation = chunk.continuation
        self.done = chunk.done
        return finished

    def describe(self) -> str:
        """Render the response one field per line."""
        lines = [f"n_keys: {self.n_keys}"]
        lines.extend(f"key: {_render(key)}" for key in self.keys)
        lines.append(f"n_results: {self.n_results}")
        text = "".join(line + "\n" for line in lines)
        text += describe_pairs(self.results)
        tail = [
            f"has_continuation: {_flag(self.has_continuation)}",
            f"continuation: {_render(self.continuation)}",
            f"has_done: {_flag(self.has_done)}",
            f"done: {_flag(bool(self.done))}",
        ]
        return text + "".join(line + "\n" for line in tail)