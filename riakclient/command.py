"""Command-line parsing for the Riak example clients."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Sequence, TextIO, Union


class Command(IntEnum):
    """Operations the client can be asked to perform."""

    PING = 0
    GETCLIENTID = 1
    SETCLIENTID = 2
    GETSERVERINFO = 3
    GET = 4
    PUT = 5
    DEL = 6
    LISTBUCKETS = 7
    LISTKEYS = 8
    GETBUCKET = 9
    SETBUCKET = 10
    MAPRED = 11
    INDEX = 12
    SEARCHQUERY = 13
    RESETBUCKET = 14
    GETBUCKETTYPE = 15
    SETBUCKETTYPE = 16
    RESETBUCKETTYPE = 17
    CSBUCKET = 18
    COUNTERUPDATE = 19
    COUNTERGET = 20
    YOKOZUNAINDEXGET = 21
    YOKOZUNAINDEXPUT = 22
    YOKOZUNAINDEXDELETE = 23
    YOKOZUNASCHEMAGET = 24
    YOKOZUNASCHEMAPUT = 25
    DTFETCH = 26
    DTUPDATE = 27
    AUTH = 28


@dataclass(frozen=True)
class CommandSpec:
    """One command-line option.

    An option whose ``argument`` is None selects an operation; otherwise it is
    a setting, taking a value when ``argument`` is non-empty.
    """

    name: str
    description: str
    argument: Optional[str]
    val: Union[Command, str]
    needs_bucket: bool = False
    needs_key: bool = False
    needs_value: bool = False
    needs_index: bool = False

    @property
    def is_operation(self) -> bool:
        """True when the option selects an operation."""
        return self.argument is None

    @property
    def takes_argument(self) -> bool:
        """True when the option needs a value."""
        return bool(self.argument)


COMMANDS = (
    CommandSpec("2i", "Secondary index query", None, Command.INDEX, True, False, True, True),
    CommandSpec("delete", "Delete a key", None, Command.DEL, True, True, False, False),
    CommandSpec("get-bucket", "Fetch bucket properties", None, Command.GETBUCKET, True),
    CommandSpec("get-clientid", "Fetch client identifier", None, Command.GETCLIENTID),
    CommandSpec("get", "Fetch a key value", None, Command.GET, True, True),
    CommandSpec("list-buckets", "List all buckets on a server", None, Command.LISTBUCKETS),
    CommandSpec("list-keys", "List all keys in a bucket", None, Command.LISTKEYS, True),
    CommandSpec("map-reduce", "Execute map/reduce", None, Command.MAPRED),
    CommandSpec("ping", "Look for signs of life", None, Command.PING),
    CommandSpec("put", "Store a value in a key", None, Command.PUT, True, False, True),
    CommandSpec("reset-bucket", "Reset bucket properties", None, Command.RESETBUCKET, True),
    CommandSpec("search", "Use Riak Search", None, Command.SEARCHQUERY, True, False, True),
    CommandSpec("server-info", "Return server settings", None, Command.GETSERVERINFO),
    CommandSpec("set-bucket", "Store bucket properties", None, Command.SETBUCKET, True),
    CommandSpec(
        "set-clientid", "Store client identifier", None, Command.SETCLIENTID, False, False, True
    ),
    CommandSpec("bucket", "", "name", "b"),
    CommandSpec("thread", "Multi-threaded messaging", "", "d"),
    CommandSpec("host", "", "name", "h"),
    CommandSpec("index", "", "name", "x"),
    CommandSpec("iterate", "", "times", "i"),
    CommandSpec("key", "", "name", "k"),
    CommandSpec("port", "", "number", "p"),
    CommandSpec("timeout", "", "secs", "t"),
    CommandSpec("value", "", "val", "v"),
)

_SHORT: Dict[str, CommandSpec] = {
    spec.val: spec for spec in COMMANDS if not spec.is_operation
}

# Longest text each setting keeps, as in the fixed-size fields it fills.
_LIMITS = {"bucket": 1023, "host": 255, "portnum": 5, "key": 1023, "value": 1023, "index": 1023}

_TEXT_OPTIONS = {"b": "bucket", "h": "host", "k": "key", "v": "value", "x": "index"}
_HAS_FLAG = {"b": "has_bucket", "k": "has_key", "v": "has_value", "x": "has_index"}


class UsageError(ValueError):
    """Raised when the command line does not describe a valid operation."""

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "no valid operation given")


@dataclass
class Args:
    """Parsed command-line settings."""

    operation: Optional[Command] = None
    threaded: bool = False
    iterate: int = 1
    port: int = 10017
    timeout: int = 10
    has_bucket: bool = False
    has_key: bool = False
    has_value: bool = False
    has_index: bool = False
    bucket: str = ""
    host: str = "localhost"
    portnum: str = "10017"
    key: str = ""
    value: str = ""
    index: str = ""


class _OptionError(Exception):
    pass


def usage(progname: str, file: Optional[TextIO] = None) -> None:
    """Write the list of options to ``file`` (standard error by default)."""
    if file is None:
        file = sys.stderr
    file.write(f"{progname} Usage:\n")
    for spec in COMMANDS:
        if spec.takes_argument:
            file.write(f"  --{spec.name} <{spec.argument}>{spec.description}\n")
        else:
            file.write(f"  --{spec.name:<20}{spec.description}\n")


def check_arguments(args: Args) -> CommandSpec:
    """Check that the operation has every setting it needs and return its spec."""
    spec = next(
        (s for s in COMMANDS if s.is_operation and s.val == args.operation), None
    )
    if spec is None:
        raise UsageError(["an operation is required"])
    problems = []
    for needed, present, option in (
        (spec.needs_bucket, args.has_bucket, "bucket"),
        (spec.needs_key, args.has_key, "key"),
        (spec.needs_value, args.has_value, "value"),
        (spec.needs_index, args.has_index, "index"),
    ):
        if needed and not present:
            problems.append(f"--{option} parameter required")
    if problems:
        raise UsageError(problems)
    return spec


def _atol(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _clip(text: str, name: str) -> str:
    return text[: _LIMITS[name]]


def _find_long(name: str) -> CommandSpec:
    for spec in COMMANDS:
        if spec.name == name:
            return spec
    matches = [spec for spec in COMMANDS if spec.name.startswith(name)]
    if not matches:
        raise _OptionError(f"unrecognized option '--{name}'")
    if len(matches) > 1:
        raise _OptionError(f"option '--{name}' is ambiguous")
    return matches[0]


def _apply(args: Args, option: str, value: Optional[str], out: TextIO) -> None:
    if option == "d":
        args.threaded = True
        return
    out.write(f"option -{option} with value `{value}'\n")
    if option in _TEXT_OPTIONS:
        field_name = _TEXT_OPTIONS[option]
        setattr(args, field_name, _clip(value, field_name))
        if option in _HAS_FLAG:
            setattr(args, _HAS_FLAG[option], True)
    elif option == "i":
        args.iterate = _atol(value)
    elif option == "p":
        args.portnum = _clip(value, "portnum")
        args.port = _atol(value)
    elif option == "t":
        args.timeout = _atol(value)


def _options(argv: Sequence[str]) -> Iterator[tuple]:
    """Yield ``(spec, value)`` or ``(None, error)`` for each option found."""
    tokens = iter(argv)
    for token in tokens:
        if token == "--":
            return
        if token.startswith("--"):
            name, sep, inline = token[2:].partition("=")
            try:
                spec = _find_long(name)
            except _OptionError as exc:
                yield None, str(exc)
                continue
            if spec.takes_argument:
                value = inline if sep else next(tokens, None)
                if value is None:
                    yield None, f"option '--{spec.name}' requires an argument"
                    continue
                yield spec, value
            elif sep:
                yield None, f"option '--{spec.name}' doesn't allow an argument"
            else:
                yield spec, None
        elif token.startswith("-") and len(token) > 1:
            rest = token[1:]
            while rest:
                char, rest = rest[0], rest[1:]
                spec = _SHORT.get(char)
                if spec is None:
                    yield None, f"invalid option -- '{char}'"
                    continue
                if not spec.takes_argument:
                    yield spec, None
                    continue
                value = rest if rest else next(tokens, None)
                rest = ""
                if value is None:
                    yield None, f"option requires an argument -- '{char}'"
                else:
                    yield spec, value
        # anything else is a plain argument and is ignored


def parse_args(argv: Optional[Sequence[str]] = None, out: Optional[TextIO] = None) -> Args:
    """Parse command-line arguments (without the program name).

    Settings are echoed to ``out`` (standard output by default). An invalid
    option cancels any operation chosen before it. Raises UsageError when no
    valid operation is left or a required setting is missing.
    """
    if argv is None:
        argv = sys.argv[1:]
    if out is None:
        out = sys.stdout
    args = Args()
    operation: Optional[Command] = None
    errors: List[str] = []
    for spec, value in _options(argv):
        if spec is None:
            sys.stderr.write(f"{value}\n")
            errors.append(value)
            operation = None
        elif spec.is_operation:
            operation = spec.val
        else:
            _apply(args, spec.val, value, out)
    args.operation = operation
    try:
        check_arguments(args)
    except UsageError as exc:
        raise UsageError(errors + exc.messages) from None
    return args