"""
This module provides EventSource, a small facade that opens an SSE endpoint over
HTTP and yields the parsed stream items.
Reconnection and retry scheduling are left to the caller: SetRetryInterval items
are yielded as they arrive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict

from eventsource_parser._auth import AuthConfig
from eventsource_parser._client import EventSourceHttpClient, HttpConfig
from eventsource_parser._sse import StreamItem
from eventsource_parser.parser import ChunkParser

StreamMethod = Literal["GET", "POST"]


class StreamRequestParams(BaseModel):
    """
    Parameters of the HTTP request that opens the stream.
    Query parameters and a JSON body are optional; unknown keys are rejected.
    """
    model_config = ConfigDict(extra="forbid")
    method: StreamMethod = "GET"
    params: Optional[dict[str, Any]] = None
    json_body: Optional[dict[str, Any]] = None


@dataclass(slots=True)
class EventSource:
    """
    Main interface for reading Server-Sent Events from an HTTP endpoint.
    Provides synchronous and asynchronous iteration over StreamEvent and SetRetryInterval items.

    Example:
        >>> source = EventSource(base_url="https://example.com")
        >>> for item in source.events("/stream"):
        ...     if isinstance(item, StreamEvent):
        ...         print(item.type, item.data)
    """
    base_url: str
    api_key: str | None = None
    timeout_s: float = 120.0
    carry_partial_records: bool = False

    _http: EventSourceHttpClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        auth = AuthConfig.from_env_or_value(self.api_key)
        self._http = EventSourceHttpClient(
            config=HttpConfig(base_url=self.base_url, timeout_s=self.timeout_s),
            api_key=auth.api_key,
        )

    @staticmethod
    def _request_kwargs(params: StreamRequestParams | None) -> tuple[str, dict[str, Any]]:
        p = params or StreamRequestParams()
        return p.method, {"params": p.params, "json": p.json_body}

    def events(self, path: str, params: StreamRequestParams | None = None) -> Iterator[StreamItem]:
        """
        Open the stream at `path` and yield its items as they are parsed.

        Args:
            path: Path appended to base_url.
            params: Optional request method, query parameters and JSON body.

        Yields:
            StreamEvent and SetRetryInterval items in stream order.

        Raises:
            EventSourceAPIError: If the server answers with a non-2xx status.
        """
        method, kwargs = self._request_kwargs(params)
        with self._http.stream(method, path, **kwargs) as r:
            self._http.raise_for_status(r)
            yield from ChunkParser(r, carry_partial_records=self.carry_partial_records)

    async def aevents(
        self, path: str, params: StreamRequestParams | None = None
    ) -> AsyncIterator[StreamItem]:
        """Async version of events()."""
        method, kwargs = self._request_kwargs(params)
        async with self._http.astream(method, path, **kwargs) as r:
            await self._http.araise_for_status(r)
            async for item in ChunkParser(r, carry_partial_records=self.carry_partial_records):
                yield item

    def collect(self, path: str, params: StreamRequestParams | None = None) -> list[StreamItem]:
        """Read the whole stream into a list. Only useful for streams that end."""
        return list(self.events(path, params))

    async def acollect(
        self, path: str, params: StreamRequestParams | None = None
    ) -> list[StreamItem]:
        return [item async for item in self.aevents(path, params)]

    def close(self) -> None:
        self._http.close()

    async def aclose(self) -> None:
        await self._http.aclose()
