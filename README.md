# riakclient

Building blocks for a client of the Riak key/value store's protocol-buffer
interface: framing of wire messages, a small protocol-buffer field codec,
request encoders and streaming response collectors for several operations,
command-line argument parsing and a timestamping file log.

It uses only the standard library.

## Modules

| Module                | Contents |
|-----------------------|----------|
| `riakclient.messages` | `MessageCode` (numeric message identifiers), `PbMessage` with `from_bytes`, `to_bytes` and `payload`, the field codec `encode_fields` / `decode_fields`, `ErrorResponse`, `PingResponse`, `MessageFormatError` |
| `riakclient.objects`  | `RiakObject` (with `copy`), `Link`, `Pair`, `describe_pairs` |
| `riakclient.listing`  | `ListBucketsResponse`, `ListKeysResponse`, `MapReduceMessage`, `MapReduceResponse`, `ServerInfoResponse` |
| `riakclient.index`    | Secondary-index queries: `QueryType`, `IndexOptions`, `IndexRequest`, `encode_index_request`, `IndexChunk`, `IndexResponse` |
| `riakclient.delete`   | `DeleteOptions`, `DeleteRequest`, `DeleteResponse`, `encode_delete_request`, `decode_delete_response` |
| `riakclient.command`  | `Command`, `CommandSpec`, `Args`, `UsageError`, `parse_args`, `check_arguments`, `usage` |
| `riakclient.log`      | `FileLog` (a context manager) and `format_log_line` |

## Wire frames

A frame is a 4-byte big-endian length (counting the code byte), one
message-code byte, then the protocol-buffer body. `PbMessage.from_bytes`
parses exactly one complete frame and raises `MessageFormatError` on a
short, truncated or over-long buffer or an unknown code.

```python
from riakclient.messages import MessageCode, PbMessage, encode_fields

frame = PbMessage(MessageCode.PING_REQ).to_bytes()     # b"\x00\x00\x00\x01\x01"
assert PbMessage.from_bytes(frame).msgid is MessageCode.PING_REQ

body = encode_fields([(1, b"users"), (2, 3)])
assert PbMessage(MessageCode.GET_REQ, body).payload() == [(1, b"users"), (2, 3)]
```

## Deleting a key

Option fields left as `None` are not sent. Integer options must fit in an
unsigned 32-bit integer.

```python
from riakclient.delete import DeleteOptions, encode_delete_request

options = DeleteOptions(w=1, dw=1)
request = encode_delete_request("users", "alice", options)
wire = request.message.to_bytes()
print(options.describe())      # "W: 1\nDW: 1\n"
```

`decode_delete_response` accepts a `DEL_RESP` message and returns a
`DeleteResponse`; any other message code raises `MessageFormatError`.

## Secondary-index queries

`IndexOptions` streams by default. `IndexResponse.add_chunk` takes an
`IndexChunk` or an `INDEX_RESP` `PbMessage` and returns whether the answer
is complete. Keys and results are rebuilt from all chunks when streaming
or when a chunk marks the answer done; the continuation and done flag come
from the latest chunk.

```python
from riakclient.index import IndexOptions, IndexResponse, encode_index_request

request = encode_index_request("users", "colour_bin", IndexOptions(key="blue"))

response = IndexResponse()
# for each frame received:
#     finished = response.add_chunk(PbMessage.from_bytes(frame), streaming=True)
print(response.describe())
```

Bucket and key listings and map/reduce results are gathered the same way
with `ListBucketsResponse.add`, `ListKeysResponse.add` and
`MapReduceResponse.add`.

## Command-line arguments

`parse_args` takes the arguments without the program name. One operation
option (`--get`, `--put`, `--delete`, `--2i`, `--list-keys`, `--ping`, ...)
is chosen, and settings such as `--bucket`, `--key`, `--value`, `--index`,
`--host`, `--port`, `--iterate`, `--timeout` and `--thread` (or their short
forms `-b`, `-k`, `-v`, `-x`, `-h`, `-p`, `-i`, `-t`, `-d`) fill in an
`Args`. Each setting with a value is echoed to `out` (standard output by
default). Defaults are host `localhost`, port `10017`, one iteration and a
10-second timeout. A missing operation, an invalid option or a missing
required setting raises `UsageError`, whose `messages` lists the problems.

```python
import sys
from riakclient.command import UsageError, parse_args, usage

try:
    args = parse_args(["--get", "--bucket", "users", "--key", "alice"])
except UsageError:
    usage("riak-client", sys.stderr)
```

## Logging

`FileLog` opens `riak.log` (truncating it) by default; each line carries
date, time, zone, level name and message. Critical lines are also written
to standard error.

```python
import logging
from riakclient.log import FileLog

with FileLog("client.log") as log:
    log.log(logging.INFO, "connected")
```

## What the package does not do

- It opens no network connections: requests are encoded into frames and
  received frames are decoded, but sending and receiving is left to the
  caller.
- It has no program to run; `parse_args` and `usage` only handle the
  command line for a program built on top of it.
- Request encoders exist only for deletes and secondary-index queries.
  There are no option or response models for get, put or search, no
  bucket-property or commit-hook models, and no client-id or
  bucket-property requests.

## Testing

The tests use pytest, installed with the `test` extra:

```
pip install -e .[test]
pytest
```