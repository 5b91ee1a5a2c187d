import io

import pytest

from riakclient.command import (
    COMMANDS,
    Args,
    Command,
    UsageError,
    check_arguments,
    parse_args,
    usage,
)


def _parse(argv):
    out = io.StringIO()
    return parse_args(argv, out), out.getvalue()


def test_ping_uses_defaults():
    args, _ = _parse(["--ping"])
    assert args.operation is Command.PING
    assert args.host == "localhost"
    assert args.port == 10017
    assert args.portnum == "10017"
    assert args.iterate == 1
    assert args.timeout == 10
    assert args.threaded is False


def test_get_with_bucket_and_key_echoes_settings():
    args, echoed = _parse(["--get", "--bucket", "b1", "--key", "k1"])
    assert args.operation is Command.GET
    assert (args.bucket, args.key) == ("b1", "k1")
    assert args.has_bucket and args.has_key
    assert "option -b with value `b1'" in echoed
    assert "option -k with value `k1'" in echoed


def test_missing_key_is_reported():
    with pytest.raises(UsageError) as info:
        _parse(["--get", "--bucket", "b1"])
    assert info.value.messages == ["--key parameter required"]


def test_index_query_reports_every_missing_setting():
    with pytest.raises(UsageError) as info:
        _parse(["--2i"])
    assert info.value.messages == [
        "--bucket parameter required",
        "--value parameter required",
        "--index parameter required",
    ]


def test_no_operation_is_an_error():
    with pytest.raises(UsageError):
        _parse(["--bucket", "b1"])


def test_short_options_can_be_combined():
    args, _ = _parse(["--put", "-db", "buck", "-vval"])
    assert args.operation is Command.PUT
    assert args.threaded is True
    assert args.bucket == "buck"
    assert args.value == "val"


def test_long_option_with_inline_value():
    args, _ = _parse(["--list-keys", "--bucket=things", "--timeout=30"])
    assert args.operation is Command.LISTKEYS
    assert args.bucket == "things"
    assert args.timeout == 30


def test_unique_prefix_selects_option():
    args, _ = _parse(["--server"])
    assert args.operation is Command.GETSERVERINFO


def test_ambiguous_prefix_is_rejected():
    with pytest.raises(UsageError) as info:
        _parse(["--li"])
    assert any("ambiguous" in message for message in info.value.messages)


def test_unknown_option_cancels_operation():
    with pytest.raises(UsageError) as info:
        _parse(["--ping", "--bogus"])
    assert any("bogus" in message for message in info.value.messages)


def test_operation_after_unknown_option_still_counts():
    args, _ = _parse(["--bogus", "--ping"])
    assert args.operation is Command.PING


def test_missing_option_argument_is_rejected():
    with pytest.raises(UsageError):
        _parse(["--ping", "--bucket"])


def test_flag_option_rejects_inline_value():
    with pytest.raises(UsageError):
        _parse(["--ping=1"])


def test_numbers_parse_leading_digits_only():
    args, _ = _parse(["--ping", "-i", "12abc", "-p", "oops"])
    assert args.iterate == 12
    assert args.port == 0
    assert args.portnum == "oops"


def test_port_text_is_clipped_but_number_is_kept():
    args, _ = _parse(["--ping", "-p", "123456789"])
    assert args.port == 123456789
    assert args.portnum == "12345"


def test_double_dash_ends_options():
    with pytest.raises(UsageError):
        _parse(["--", "--ping"])


def test_plain_arguments_are_ignored():
    args, _ = _parse(["extra", "--ping"])
    assert args.operation is Command.PING


def test_host_option():
    args, echoed = _parse(["--ping", "-h", "db.example.com"])
    assert args.host == "db.example.com"
    assert "option -h with value `db.example.com'" in echoed


def test_check_arguments_returns_spec():
    assert check_arguments(Args(operation=Command.PING)).name == "ping"
    with pytest.raises(UsageError) as info:
        check_arguments(Args(operation=Command.DEL, has_bucket=True))
    assert info.value.messages == ["--key parameter required"]


def test_usage_lists_every_option():
    buffer = io.StringIO()
    usage("prog", buffer)
    lines = buffer.getvalue().splitlines()
    assert lines[0] == "prog Usage:"
    assert len(lines) == len(COMMANDS) + 1
    ping = next(line for line in lines if line.startswith("  --ping "))
    assert ping.endswith("Look for signs of life")
    assert ping.index("Look") == 24
    assert "  --bucket <name>" in lines