"""Query orchestration, message parsing and configuration."""

from claude_code_stream.core.parser import encode_message, message_to_dict, parse_message
from claude_code_stream.core.query import QueryStream, StreamState, query

__all__ = [
    "QueryStream",
    "StreamState",
    "encode_message",
    "message_to_dict",
    "parse_message",
    "query",
]
