"""
Lazy iteration of SSE stream items over a source of text chunks.
The source can be a plain (async) iterable of chunks or an httpx streaming response.
"""

from __future__ import annotations

import codecs
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, Union

import httpx

from eventsource_parser._errors import StreamConsumedError
from eventsource_parser._sse import (
    RECORD_BREAK,
    RecordOutcome,
    StreamItem,
    iter_record_items,
    parse_record,
    split_records,
)

Chunk = Union[str, bytes]
ChunkSource = Union[httpx.Response, Iterable[Chunk], AsyncIterable[Chunk]]


class _ChunkDecoder:
    """Turns str/bytes chunks into text. Multi-byte characters may straddle bytes chunks."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def decode(self, chunk: Chunk) -> str:
        if isinstance(chunk, bytes):
            return self._decoder.decode(chunk)
        return chunk

    def flush(self) -> str:
        return self._decoder.decode(b"", final=True)


class ChunkParser:
    """
    Parses a stream of SSE chunks into StreamEvent and SetRetryInterval items.

    Each chunk holds one or more records delimited by blank lines. By default
    every chunk is parsed on its own, so a record split across two chunks is
    read as two incomplete records. Pass `carry_partial_records=True` to keep
    the text after the last blank line of a chunk and prepend it to the next one.

    Iteration is lazy and single-pass, like the live stream it reads.

    Example:
        >>> parser = ChunkParser(["event: abc\\ndata: def\\nid: 1\\n\\n"])
        >>> parser.to_list()
        [StreamEvent(type='abc', data='def', id='1')]
    """

    def __init__(self, source: ChunkSource, *, carry_partial_records: bool = False) -> None:
        self._source = source
        self._carry_partial_records = carry_partial_records
        self._consumed = False

    @property
    def carry_partial_records(self) -> bool:
        return self._carry_partial_records

    @staticmethod
    def parse_record(raw_record: str) -> RecordOutcome:
        """Parse an individual record. See `eventsource_parser._sse.parse_record`."""
        return parse_record(raw_record)

    def _mark_consumed(self) -> None:
        if self._consumed:
            raise StreamConsumedError("ChunkParser source has already been consumed")
        self._consumed = True

    def _sync_chunks(self) -> Iterator[Chunk]:
        if isinstance(self._source, httpx.Response):
            return self._source.iter_text()
        return iter(self._source)  # type: ignore[arg-type]

    def _async_chunks(self) -> AsyncIterator[Chunk]:
        if isinstance(self._source, httpx.Response):
            return self._source.aiter_text()
        if hasattr(self._source, "__aiter__"):
            return self._source.__aiter__()  # type: ignore[union-attr]
        return _aiter_from_sync(self._source)  # type: ignore[arg-type]

    def _split(self, text: str) -> tuple[list[str], str]:
        """
        Split `text` into complete records and an unterminated tail.

        Without carry-over the tail is always empty and every piece of the
        chunk is treated as a record.
        """
        if not self._carry_partial_records:
            return split_records(text), ""

        last_break = None
        for last_break in RECORD_BREAK.finditer(text):
            pass
        if last_break is None:
            return [], text
        return split_records(text[: last_break.start()]), text[last_break.end():]

    def __iter__(self) -> Iterator[StreamItem]:
        self._mark_consumed()
        return self._iterate()

    def _iterate(self) -> Iterator[StreamItem]:
        decoder = _ChunkDecoder()
        tail = ""

        for chunk in self._sync_chunks():
            records, tail = self._split(tail + decoder.decode(chunk))
            yield from iter_record_items(records)

        yield from iter_record_items(split_records(tail + decoder.flush()))

    def __aiter__(self) -> AsyncIterator[StreamItem]:
        self._mark_consumed()
        return self._aiterate()

    async def _aiterate(self) -> AsyncIterator[StreamItem]:
        decoder = _ChunkDecoder()
        tail = ""

        async for chunk in self._async_chunks():
            records, tail = self._split(tail + decoder.decode(chunk))
            for item in iter_record_items(records):
                yield item

        for item in iter_record_items(split_records(tail + decoder.flush())):
            yield item

    def to_list(self) -> list[StreamItem]:
        """
        Drain the stream into a list, rather than iterating it lazily.

        Returns:
            StreamEvent and SetRetryInterval items in emission order.
        """
        return list(self)

    async def ato_list(self) -> list[StreamItem]:
        """Async version of to_list()."""
        return [item async for item in self]


async def _aiter_from_sync(chunks: Iterable[Any]) -> AsyncIterator[Any]:
    for chunk in chunks:
        yield chunk
