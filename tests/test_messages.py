import struct

import pytest

from riakclient.messages import (
    ErrorResponse,
    MessageCode,
    MessageFormatError,
    PbMessage,
    PingResponse,
    decode_fields,
    encode_fields,
)


def test_varint_encoding_matches_protobuf_format():
    assert encode_fields([(1, 150)]) == b"\x08\x96\x01"


def test_round_trip_mixed_fields_preserves_order():
    fields = [(1, b"bucket"), (2, 7), (3, b"key"), (2, 9)]
    assert decode_fields(encode_fields(fields)) == fields


def test_strings_are_utf8_encoded():
    assert decode_fields(encode_fields([(4, "héllo")])) == [(4, "héllo".encode("utf-8"))]


def test_booleans_become_varints():
    assert decode_fields(encode_fields([(5, True), (6, False)])) == [(5, 1), (6, 0)]


def test_float_is_fixed32():
    decoded = decode_fields(encode_fields([(3, 1.5)]))
    assert decoded[0][0] == 3
    assert struct.unpack("<f", decoded[0][1])[0] == 1.5


def test_large_varint_round_trip():
    value = 2**40 + 12345
    assert decode_fields(encode_fields([(15, value)])) == [(15, value)]


def test_empty_body_decodes_to_no_fields():
    assert decode_fields(b"") == []


def test_invalid_field_number_rejected():
    with pytest.raises(ValueError):
        encode_fields([(0, 1)])


def test_unsupported_value_type_rejected():
    with pytest.raises(TypeError):
        encode_fields([(1, [1, 2])])


def test_truncated_varint_raises():
    with pytest.raises(MessageFormatError):
        decode_fields(b"\x08\x96")


def test_truncated_length_field_raises():
    body = encode_fields([(1, b"abcdef")])
    with pytest.raises(MessageFormatError):
        decode_fields(body[:-2])


def test_unknown_wire_type_raises():
    with pytest.raises(MessageFormatError):
        decode_fields(bytes([(1 << 3) | 3]))


def test_ping_request_frame_bytes():
    assert PbMessage(MessageCode.PING_REQ).to_bytes() == b"\x00\x00\x00\x01\x01"


def test_frame_round_trip():
    body = encode_fields([(1, b"bucket"), (2, b"key")])
    message = PbMessage(MessageCode.GET_REQ, body)
    parsed = PbMessage.from_bytes(message.to_bytes())
    assert parsed == message
    assert parsed.msgid is MessageCode.GET_REQ
    assert parsed.payload() == [(1, b"bucket"), (2, b"key")]


def test_frame_length_counts_code_byte():
    message = PbMessage(MessageCode.PUT_REQ, b"abc")
    raw = message.to_bytes()
    assert struct.unpack(">I", raw[:4])[0] == len(message.data) + 1
    assert raw[4] == MessageCode.PUT_REQ


def test_from_bytes_resolves_code():
    message = PbMessage.from_bytes(b"\x00\x00\x00\x01" + bytes([MessageCode.INDEX_REQ]))
    assert message.msgid is MessageCode.INDEX_REQ
    assert message.data == b""


def test_from_bytes_short_header():
    with pytest.raises(MessageFormatError):
        PbMessage.from_bytes(b"\x00\x00")


def test_from_bytes_zero_length():
    with pytest.raises(MessageFormatError):
        PbMessage.from_bytes(b"\x00\x00\x00\x00\x01")


def test_from_bytes_truncated_body():
    raw = PbMessage(MessageCode.GET_REQ, b"abcd").to_bytes()
    with pytest.raises(MessageFormatError):
        PbMessage.from_bytes(raw[:-1])


def test_from_bytes_trailing_bytes():
    raw = PbMessage(MessageCode.GET_REQ, b"abcd").to_bytes()
    with pytest.raises(MessageFormatError):
        PbMessage.from_bytes(raw + b"\x00")


def test_from_bytes_unknown_code():
    with pytest.raises(MessageFormatError):
        PbMessage.from_bytes(b"\x00\x00\x00\x01\x22")


def test_constructor_rejects_unknown_code():
    with pytest.raises(ValueError):
        PbMessage(99)


def test_error_response_string():
    response = ErrorResponse(1, "not found")
    assert response.errmsg == b"not found"
    assert str(response) == "not found"


def test_ping_response_default_success():
    assert PingResponse().success is True
    assert PingResponse(False).success is False