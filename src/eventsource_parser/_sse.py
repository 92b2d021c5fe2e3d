"""
Parser for the Server-Sent Events (SSE) wire format.
Turns text chunks into records, records into fields and fields into stream items.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Union

# Break between individual lines of a record
LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Break between records: two or more line breaks in a row. A "\r" directly
# followed by "\n" is one CRLF break, never two.
RECORD_BREAK = re.compile(r"(?:\r\n|\r(?!\n)|\n){2,}")

# Separator between a field name and its value
FIELD_SEPARATOR = re.compile(r": *")

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+(?:_\d+)*)")

DEFAULT_EVENT_TYPE = "message"

FieldKind = Literal["data", "event", "id", "retry", "ignore"]

_KNOWN_FIELDS: frozenset[str] = frozenset({"data", "event", "id", "retry"})


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """
    A single Server-Sent Event.

    `type` is the value of the last `event:` line, or "message" if there was none.
    `data` joins every `data:` line of the record with newlines.
    `id` is the value of the last `id:` line, or None.
    """

    type: str
    data: str
    id: str | None = None

    def is_valid(self) -> bool:
        """Type and data must both be present and non-empty."""
        return bool(self.type) and bool(self.data)


@dataclass(frozen=True, slots=True)
class SetRetryInterval:
    """Server-advised reconnection delay, in milliseconds."""

    milliseconds: int


@dataclass(frozen=True, slots=True)
class DiscardedRecord:
    """A record that produced nothing to emit."""

    reason: str


@dataclass(frozen=True, slots=True)
class SSEField:
    kind: FieldKind
    name: str
    value: str


StreamItem = Union[StreamEvent, SetRetryInterval]
RecordOutcome = Union[StreamEvent, SetRetryInterval, DiscardedRecord]


def split_records(chunk: str) -> list[str]:
    """
    Split a chunk of text into raw records on blank lines.

    Args:
        chunk: Text received from the stream. May be empty.

    Returns:
        Raw record strings in textual order. Empty strings may appear
        (e.g. after a trailing blank line) and parse to nothing.
    """
    return RECORD_BREAK.split(chunk)


def classify_line(line: str) -> SSEField:
    """
    Classify one line of a record.

    The line is split on the first separator only, so values that contain
    colons (URLs, JSON) stay intact.
    """
    parts = FIELD_SEPARATOR.split(line, maxsplit=1)
    if len(parts) != 2:
        return SSEField(kind="ignore", name=line, value="")

    name, value = parts
    # Comment lines start with a bare colon and have an empty name.
    if name not in _KNOWN_FIELDS:
        return SSEField(kind="ignore", name=name, value=value)
    return SSEField(kind=name, name=name, value=value)  # type: ignore[arg-type]


def parse_fields(raw_record: str) -> list[SSEField]:
    """Split a raw record into lines and classify every non-empty one."""
    return [classify_line(line) for line in LINE_BREAK.split(raw_record) if line]


def coerce_retry(value: str) -> int:
    """
    Read the leading base-10 integer of `value`.

    "2500" -> 2500, "2500ms" -> 2500, "abc" -> 0. Never raises.
    """
    match = _LEADING_INTEGER.match(value)
    if match is None:
        return 0
    return int(match.group(1))


def accumulate_fields(fields: Iterable[SSEField]) -> StreamEvent | SetRetryInterval:
    """
    Fold the fields of one record into a stream event candidate.

    If any `retry` field is present the record is a retry directive and
    every other field of the record is discarded.
    """
    event_type = DEFAULT_EVENT_TYPE
    data_lines: list[str] = []
    event_id: str | None = None
    retry: int | None = None

    for field in fields:
        if field.kind == "data":
            data_lines.append(field.value)
        elif field.kind == "event":
            event_type = field.value
        elif field.kind == "id":
            event_id = field.value
        elif field.kind == "retry":
            retry = coerce_retry(field.value)

    if retry is not None:
        return SetRetryInterval(milliseconds=retry)

    # An empty first line must not produce a leading newline.
    data = ""
    for line in data_lines:
        if data:
            data += "\n"
        data += line

    return StreamEvent(type=event_type, data=data, id=event_id)


def filter_event(candidate: StreamEvent | SetRetryInterval) -> RecordOutcome:
    """Drop events without a type or without data. Retry directives always pass."""
    if isinstance(candidate, SetRetryInterval):
        return candidate
    if not candidate.type:
        return DiscardedRecord(reason="missing type")
    if not candidate.data:
        return DiscardedRecord(reason="missing data")
    return candidate


def parse_record(raw_record: str) -> RecordOutcome:
    """
    Parse a single raw record.

    Args:
        raw_record: Newline delimited record text, without its blank-line terminator.

    Returns:
        A StreamEvent, a SetRetryInterval, or a DiscardedRecord when there is
        nothing to emit.
    """
    fields = parse_fields(raw_record)
    if not fields:
        return DiscardedRecord(reason="empty")
    return filter_event(accumulate_fields(fields))


def iter_record_items(raw_records: Iterable[str]) -> Iterator[StreamItem]:
    """
    Parse raw records in order and yield the ones with something to emit.

    Discarded records are logged at DEBUG, except empty ones.
    """
    for raw_record in raw_records:
        outcome = parse_record(raw_record)
        if isinstance(outcome, DiscardedRecord):
            if outcome.reason != "empty":
                logging.debug("SSE record discarded (%s): %r", outcome.reason, raw_record)
            continue
        if isinstance(outcome, SetRetryInterval):
            logging.debug("SSE retry interval set to %s ms", outcome.milliseconds)
        yield outcome


def iter_sse_items_from_text(text: str) -> Iterator[StreamItem]:
    """
    Parse every record in a text block.

    Args:
        text: The raw string containing one or multiple SSE records.

    Yields:
        StreamEvent and SetRetryInterval items in textual order.
    """
    return iter_record_items(split_records(text))
