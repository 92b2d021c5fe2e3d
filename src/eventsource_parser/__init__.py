from __future__ import annotations

from eventsource_parser._errors import EventSourceAPIError, EventSourceError, StreamConsumedError
from eventsource_parser._sse import (
    DiscardedRecord,
    RecordOutcome,
    SetRetryInterval,
    StreamEvent,
    StreamItem,
    iter_sse_items_from_text,
    parse_record,
)
from eventsource_parser.parser import ChunkParser
from eventsource_parser.source import EventSource, StreamRequestParams

__all__ = [
    "ChunkParser",
    "DiscardedRecord",
    "EventSource",
    "EventSourceAPIError",
    "EventSourceError",
    "RecordOutcome",
    "SetRetryInterval",
    "StreamConsumedError",
    "StreamEvent",
    "StreamItem",
    "StreamRequestParams",
    "iter_sse_items_from_text",
    "parse_record",
]

__version__ = "0.1.0"
