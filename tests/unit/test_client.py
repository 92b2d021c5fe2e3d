from unittest.mock import AsyncMock, MagicMock
import logging

import httpx
import pytest

from eventsource_parser._client import ENV_HTTP_DEBUG, EventSourceHttpClient, HttpConfig
from eventsource_parser._errors import EventSourceAPIError


def test_httpconfig_initialization():
    cfg = HttpConfig(base_url="https://example.com", timeout_s=10.0)

    assert cfg.base_url == "https://example.com"
    assert cfg.timeout_s == 10.0


def test_httpconfig_default_timeout():
    assert HttpConfig(base_url="https://example.com").timeout_s == 120.0


def make_client(api_key: str | None = "secret-key"):
    cfg = HttpConfig(base_url="https://example.com", timeout_s=5.0)
    return EventSourceHttpClient(config=cfg, api_key=api_key)


def test_headers_with_api_key():
    client = make_client()

    headers = client._headers()

    assert headers["Authorization"] == "Bearer secret-key"
    assert headers["Accept"] == "text/event-stream"
    assert headers["Cache-Control"] == "no-cache"


def test_headers_without_api_key():
    client = make_client(api_key=None)

    headers = client._headers()

    assert "Authorization" not in headers
    assert headers["Accept"] == "text/event-stream"


def test_stream_returns_stream_context_manager():
    client = make_client()
    mock_client = MagicMock()
    mock_stream = MagicMock()
    mock_client.stream.return_value = mock_stream
    client._client = mock_client

    cm = client.stream("GET", "/events", params={"channel": "news"})

    assert cm is mock_stream
    mock_client.stream.assert_called_once()
    args, kwargs = mock_client.stream.call_args
    assert args[0] == "GET"
    assert args[1] == "https://example.com/events"
    assert kwargs["params"] == {"channel": "news"}
    assert kwargs["json"] is None
    assert kwargs["headers"]["Accept"] == "text/event-stream"
    assert kwargs["headers"]["Authorization"] == "Bearer secret-key"


def test_astream_returns_async_stream_context_manager():
    client = make_client()
    mock_ac = AsyncMock()
    mock_stream = MagicMock()
    # httpx.AsyncClient.stream es un método síncrono que devuelve un context manager.
    mock_ac.stream = MagicMock(return_value=mock_stream)
    client._aclient = mock_ac

    payload = {"a": 1}
    cm = client.astream("POST", "/subscribe", json=payload)

    assert cm is mock_stream
    args, kwargs = mock_ac.stream.call_args
    assert args[0] == "POST"
    assert args[1] == "https://example.com/subscribe"
    assert kwargs["json"] == payload
    assert kwargs["headers"]["Accept"] == "text/event-stream"


def test_stream_against_mock_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["accept"] == "text/event-stream"
        return httpx.Response(
            200,
            content=b"data: hi\n\n",
            headers={"content-type": "text/event-stream"},
        )

    client = make_client()
    client._client = httpx.Client(transport=httpx.MockTransport(handler))

    with client.stream("GET", "/events") as r:
        client.raise_for_status(r)
        body = "".join(r.iter_text())

    assert body == "data: hi\n\n"


@pytest.mark.asyncio
async def test_araise_for_status_reads_streaming_error_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={"message": "Stream not found"},
        )

    client = make_client()
    client._aclient = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(EventSourceAPIError) as exc:
        async with client.astream("GET", "/missing") as r:
            await client.araise_for_status(r)

    assert exc.value.status_code == 404
    assert exc.value.message == "Stream not found"
    await client.aclose()


@pytest.mark.asyncio
async def test_araise_for_status_success():
    resp = httpx.Response(200, content=b"")

    await EventSourceHttpClient.araise_for_status(resp)


def test_close_closes_underlying_client():
    client = make_client()
    mock_client = MagicMock()
    client._client = mock_client

    client.close()

    mock_client.close.assert_called_once()


@pytest.mark.asyncio
async def test_aclose_closes_underlying_async_client():
    client = make_client()
    mock_ac = AsyncMock()
    client._aclient = mock_ac

    await client.aclose()

    mock_ac.aclose.assert_awaited_once()


def test_log_request_and_redact_headers_debug_on(monkeypatch, caplog):
    # Activa el modo debug de HTTP para que se ejecuten los hooks de logging.
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()

    request_hook = client._client.event_hooks["request"][0]

    request = httpx.Request(
        "POST",
        "https://example.com/subscribe",
        headers={"Authorization": "Bearer secret-token", "X-Other": "1"},
        content=b'{"channel": "news"}',
    )

    with caplog.at_level(logging.WARNING):
        request_hook(request)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "***REDACTED***" in messages
    assert "secret-token" not in messages
    assert "news" in messages


def test_log_request_binary_body_fallback(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()
    request_hook = client._client.event_hooks["request"][0]

    class BadContent:
        def __len__(self):
            return 3

        def decode(self, *args, **kwargs):
            # Fuerza la rama de excepción al decodificar el body.
            raise ValueError("cannot decode")

    class DummyRequest:
        method = "POST"
        url = "https://example.com/binary"
        headers = {"Authorization": "Bearer top-secret"}
        content = BadContent()

    with caplog.at_level(logging.WARNING):
        request_hook(DummyRequest())

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "binary" in messages


def test_log_response_event_stream_not_read(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()
    response_hook = client._client.event_hooks["response"][0]

    req = httpx.Request("GET", "https://example.com/events")
    resp = httpx.Response(
        200,
        request=req,
        text="",
        headers={"content-type": "text/event-stream"},
    )

    with caplog.at_level(logging.WARNING):
        response_hook(resp)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "HTTPX RESPONSE" in messages
    assert "event-stream; not auto-logged" in messages


def test_hooks_silent_when_debug_off(monkeypatch, caplog):
    monkeypatch.delenv(ENV_HTTP_DEBUG, raising=False)
    client = make_client()
    request_hook = client._client.event_hooks["request"][0]

    with caplog.at_level(logging.WARNING):
        request_hook(httpx.Request("GET", "https://example.com/events"))

    assert caplog.records == []


@pytest.mark.asyncio
async def test_async_hooks_debug_on(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "yes")
    client = make_client()

    async_request_hook = client._aclient.event_hooks["request"][0]
    async_response_hook = client._aclient.event_hooks["response"][0]

    req = httpx.Request("GET", "https://example.com/async")
    resp = httpx.Response(200, request=req, text="", headers={"content-type": "text/event-stream"})

    with caplog.at_level(logging.WARNING):
        await async_request_hook(req)
        await async_response_hook(resp)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "HTTPX REQUEST GET" in messages
    assert "HTTPX RESPONSE" in messages


def test_log_response_sync_logs_non_stream_body(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()
    response_hook = client._client.event_hooks["response"][0]

    req = httpx.Request("GET", "https://example.com/events")
    # Un error JSON no es event-stream: el body debe aparecer en el log.
    resp = httpx.Response(
        401,
        request=req,
        json={"error": {"code": "UNAUTHORIZED", "message": "Token expired"}},
    )

    with caplog.at_level(logging.WARNING):
        response_hook(resp)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "-> 401" in messages
    assert "HTTPX RESPONSE body=" in messages
    assert "Token expired" in messages


@pytest.mark.asyncio
async def test_log_response_async_logs_non_stream_body(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()
    async_response_hook = client._aclient.event_hooks["response"][0]

    req = httpx.Request("GET", "https://example.com/async")
    resp = httpx.Response(404, request=req, text="stream not found")

    with caplog.at_level(logging.WARNING):
        await async_response_hook(resp)

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "HTTPX RESPONSE body=stream not found" in messages


def test_log_response_unreadable_body(monkeypatch, caplog):
    monkeypatch.setenv(ENV_HTTP_DEBUG, "1")
    client = make_client()
    response_hook = client._client.event_hooks["response"][0]

    class BrokenResponse:
        request = httpx.Request("GET", "https://example.com/broken")
        status_code = 500
        headers = {"content-type": "application/json"}

        def read(self):
            raise httpx.ReadError("connection reset")

    with caplog.at_level(logging.WARNING):
        response_hook(BrokenResponse())

    messages = " ".join(rec.getMessage() for rec in caplog.records)
    assert "unreadable" in messages
