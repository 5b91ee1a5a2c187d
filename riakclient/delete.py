"""Delete requests: options, request encoding and the (empty) response."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple, Union

from riakclient.messages import MessageCode, MessageFormatError, PbMessage, encode_fields
from riakclient.objects import Binary

_UINT32_MAX = 0xFFFFFFFF

_PRINTABLE = frozenset(
    (string.ascii_letters + string.digits + string.punctuation + " ").encode("ascii")
)

_UINT32_FIELDS = frozenset({"w", "dw", "pw", "timeout", "n_val"})
_FLAG_FIELDS = frozenset({"sloppy_quorum"})
_BINARY_FIELDS = frozenset({"vclock"})


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
    if value is None:
        return None
    if name in _UINT32_FIELDS:
        return _uint32(name, value)
    if name in _FLAG_FIELDS:
        return bool(value)
    if name in _BINARY_FIELDS:
        return _binary(name, value)
    return value


def _render(value: bytes) -> str:
    if all(byte in _PRINTABLE for byte in value):
        return value.decode("ascii")
    return value.hex()


@dataclass
class DeleteOptions:
    """Parameters of a delete; a field left as None is not sent."""

    vclock: Optional[Binary] = None
    w: Optional[int] = None
    dw: Optional[int] = None
    pw: Optional[int] = None
    timeout: Optional[int] = None
    sloppy_quorum: Optional[bool] = None
    n_val: Optional[int] = None

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, _normalize(name, value))

    def describe(self) -> str:
        """Render the options that are set, one per line.

        Sloppy quorum is shown only when it is switched on.
        """
        lines = []
        if self.vclock is not None:
            lines.append(f"Vector Clock: {_render(self.vclock)}")
        if self.w is not None:
            lines.append(f"W: {self.w}")
        if self.dw is not None:
            lines.append(f"DW: {self.dw}")
        if self.pw is not None:
            lines.append(f"PW: {self.pw}")
        if self.timeout is not None:
            lines.append(f"Timeout: {self.timeout}")
        if self.sloppy_quorum:
            lines.append("Sloppy Quorum: true")
        if self.n_val is not None:
            lines.append(f"N Values: {self.n_val}")
        return "".join(line + "\n" for line in lines)


@dataclass(frozen=True)
class DeleteRequest:
    """An encoded delete with the bucket and key it was made for."""

    bucket: bytes
    key: bytes
    message: PbMessage


@dataclass(frozen=True)
class DeleteResponse:
    """The server's acknowledgement of a delete; it carries no data."""

    done: bool = True


def _request_fields(
    bucket: bytes, key: bytes, options: Optional[DeleteOptions]
) -> Iterator[Tuple[int, Union[int, bool, bytes]]]:
    yield 1, bucket
    yield 2, key
    if options is None:
        return
    optional = (
        (4, options.vclock),
        (6, options.w),
        (8, options.pw),
        (9, options.dw),
        (10, options.timeout),
        (11, options.sloppy_quorum),
        (12, options.n_val),
    )
    for number, value in optional:
        if value is not None:
            yield number, value


def encode_delete_request(
    bucket: Binary, key: Binary, options: Optional[DeleteOptions] = None
) -> DeleteRequest:
    """Build the request message that deletes one key."""
    if options is not None and not isinstance(options, DeleteOptions):
        raise TypeError("options must be DeleteOptions")
    bucket_bytes = _binary("bucket", bucket)
    key_bytes = _binary("key", key)
    body = encode_fields(_request_fields(bucket_bytes, key_bytes, options))
    return DeleteRequest(bucket_bytes, key_bytes, PbMessage(MessageCode.DEL_REQ, body))


def decode_delete_response(message: PbMessage) -> DeleteResponse:
    """Turn the server's delete acknowledgement into a response; it is always final."""
    if not isinstance(message, PbMessage):
        raise TypeError("message must be a PbMessage")
    if message.msgid is not MessageCode.DEL_RESP:
        raise MessageFormatError(f"expected a delete response, got {message.msgid.name}")
    return DeleteResponse()