"""Message framing and protocol-buffer field coding for the Riak PB protocol.

A frame on the wire is a 4-byte big-endian length (counting the message
code byte), one message-code byte, then the encoded protocol-buffer body.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Tuple, Union

FieldValue = Union[int, bool, float, bytes, bytearray, memoryview, str]
Field = Tuple[int, Union[int, bytes]]

_WIRE_VARINT = 0
_WIRE_FIXED64 = 1
_WIRE_LENGTH = 2
_WIRE_FIXED32 = 5

_MAX_FIELD_NUMBER = (1 << 29) - 1
_HEADER = struct.Struct(">IB")
_LENGTH = struct.Struct(">I")


class MessageCode(IntEnum):
    """Message identifiers used in the first byte of every frame."""

    ERROR_RESP = 0
    PING_REQ = 1
    PING_RESP = 2
    GET_CLIENT_ID_REQ = 3
    GET_CLIENT_ID_RESP = 4
    SET_CLIENT_ID_REQ = 5
    SET_CLIENT_ID_RESP = 6
    GET_SERVER_INFO_REQ = 7
    GET_SERVER_INFO_RESP = 8
    GET_REQ = 9
    GET_RESP = 10
    PUT_REQ = 11
    PUT_RESP = 12
    DEL_REQ = 13
    DEL_RESP = 14
    LIST_BUCKETS_REQ = 15
    LIST_BUCKETS_RESP = 16
    LIST_KEYS_REQ = 17
    LIST_KEYS_RESP = 18
    GET_BUCKET_REQ = 19
    GET_BUCKET_RESP = 20
    SET_BUCKET_REQ = 21
    SET_BUCKET_RESP = 22
    MAP_RED_REQ = 23
    MAP_RED_RESP = 24
    INDEX_REQ = 25
    INDEX_RESP = 26
    SEARCH_QUERY_REQ = 27
    SEARCH_QUERY_RESP = 28
    RESET_BUCKET_REQ = 29
    RESET_BUCKET_RESP = 30
    GET_BUCKET_TYPE_REQ = 31
    SET_BUCKET_TYPE_REQ = 32
    RESET_BUCKET_TYPE_REQ = 33
    CS_BUCKET_REQ = 40
    CS_BUCKET_RESP = 41
    COUNTER_UPDATE_REQ = 50
    COUNTER_UPDATE_RESP = 51
    COUNTER_GET_REQ = 52
    COUNTER_GET_RESP = 53
    YOKOZUNA_INDEX_GET_REQ = 54
    YOKOZUNA_INDEX_GET_RESP = 55
    YOKOZUNA_INDEX_PUT_REQ = 56
    YOKOZUNA_INDEX_DELETE_REQ = 57
    YOKOZUNA_SCHEMA_GET_REQ = 58
    YOKOZUNA_SCHEMA_GET_RESP = 59
    YOKOZUNA_SCHEMA_PUT_REQ = 60
    DT_FETCH_REQ = 80
    DT_FETCH_RESP = 81
    DT_UPDATE_REQ = 82
    DT_UPDATE_RESP = 83
    AUTH_REQ = 253
    AUTH_RESP = 254
    START_TLS = 255


class MessageFormatError(ValueError):
    """Raised when bytes received from the server cannot be decoded."""


def _encode_varint(value: int) -> bytes:
    if value < 0:
        value += 1 << 64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(data: bytes, pos: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise MessageFormatError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 70:
            raise MessageFormatError("varint is too long")


def _key(number: int, wire: int) -> bytes:
    return _encode_varint((number << 3) | wire)


def encode_fields(fields: Iterable[Tuple[int, FieldValue]]) -> bytes:
    """Encode ``(field_number, value)`` pairs as a protocol-buffer body.

    Integers and booleans become varints, floats 32-bit fixed values and
    strings or bytes length-delimited values.
    """
    out = bytearray()
    for number, value in fields:
        if not 1 <= number <= _MAX_FIELD_NUMBER:
            raise ValueError(f"invalid field number {number}")
        if isinstance(value, (bool, int)):
            out += _key(number, _WIRE_VARINT)
            out += _encode_varint(int(value))
        elif isinstance(value, float):
            out += _key(number, _WIRE_FIXED32)
            out += struct.pack("<f", value)
        elif isinstance(value, (str, bytes, bytearray, memoryview)):
            raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
            out += _key(number, _WIRE_LENGTH)
            out += _encode_varint(len(raw))
            out += raw
        else:
            raise TypeError(f"cannot encode field {number} of type {type(value).__name__}")
    return bytes(out)


def decode_fields(data: bytes) -> List[Field]:
    """Decode a protocol-buffer body into ``(field_number, value)`` pairs.

    Varints decode to ints; all other wire types decode to their raw bytes.
    """
    data = bytes(data)
    fields: List[Field] = []
    pos = 0
    while pos < len(data):
        key, pos = _read_varint(data, pos)
        number, wire = key >> 3, key & 0x07
        if number == 0:
            raise MessageFormatError("field number zero")
        if wire == _WIRE_VARINT:
            value, pos = _read_varint(data, pos)
            fields.append((number, value))
            continue
        if wire == _WIRE_LENGTH:
            size, pos = _read_varint(data, pos)
        elif wire == _WIRE_FIXED32:
            size = 4
        elif wire == _WIRE_FIXED64:
            size = 8
        else:
            raise MessageFormatError(f"unsupported wire type {wire}")
        end = pos + size
        if end > len(data):
            raise MessageFormatError(f"field {number} is truncated")
        fields.append((number, data[pos:end]))
        pos = end
    return fields


@dataclass(frozen=True)
class PbMessage:
    """One framed message: its code and its encoded body."""

    msgid: MessageCode
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "msgid", MessageCode(self.msgid))
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_bytes(cls, buffer: bytes) -> "PbMessage":
        """Parse exactly one complete frame."""
        buffer = bytes(buffer)
        if len(buffer) < _HEADER.size:
            raise MessageFormatError("frame is shorter than its header")
        (length,) = _LENGTH.unpack_from(buffer)
        if length < 1:
            raise MessageFormatError("frame has no message code")
        end = _LENGTH.size + length
        if len(buffer) < end:
            raise MessageFormatError("frame is truncated")
        if len(buffer) > end:
            raise MessageFormatError("trailing bytes after frame")
        code = buffer[_LENGTH.size]
        try:
            msgid = MessageCode(code)
        except ValueError:
            raise MessageFormatError(f"unknown message code {code}") from None
        return cls(msgid, buffer[_HEADER.size:end])

    def to_bytes(self) -> bytes:
        """Serialise the frame, header included."""
        return _HEADER.pack(len(self.data) + 1, self.msgid) + self.data

    def payload(self) -> List[Field]:
        """Decode the body into protocol-buffer fields."""
        return decode_fields(self.data)


@dataclass(frozen=True)
class ErrorResponse:
    """An error reported by the server."""

    errcode: int
    errmsg: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.errmsg, str):
            object.__setattr__(self, "errmsg", self.errmsg.encode("utf-8"))

    def __str__(self) -> str:
        return self.errmsg.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class PingResponse:
    """The server's answer to a ping."""

    success: bool = True