"""Wire framing, delete and index requests, streaming responses, argument parsing and logging for a Riak client."""

__version__ = "0.1.0"

__all__ = [
    "command",
    "delete",
    "index",
    "listing",
    "log",
    "messages",
    "objects",
]