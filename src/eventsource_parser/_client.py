from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from eventsource_parser._errors import EventSourceAPIError

ENV_HTTP_DEBUG = "EVENTSOURCE_HTTP_DEBUG"


@dataclass(frozen=True, slots=True)
class HttpConfig:
    base_url: str
    timeout_s: float = 120.0


def _parse_error_response(
    status_code: int,
    body_text: str | None,
    content_type: str,
) -> EventSourceAPIError:
    """
    Parsea una respuesta de error del servidor.

    Si el body no es JSON o no matchea el formato esperado,
    retorna EventSourceAPIError con campos estructurados en None.
    """
    message = body_text.strip() if body_text and body_text.strip() else "HTTP error"
    error_code: str | None = None
    request_id: str | None = None
    details: dict[str, Any] | None = None

    # Solo parsear JSON si Content-Type lo indica
    if "application/json" not in content_type.lower():
        return EventSourceAPIError(status_code=status_code, message=message, body=body_text)

    try:
        data = json.loads(body_text) if body_text else {}
    except (json.JSONDecodeError, ValueError):
        return EventSourceAPIError(status_code=status_code, message=message, body=body_text)

    if not isinstance(data, dict):
        return EventSourceAPIError(
            status_code=status_code,
            message=str(data) if data else message,
            body=body_text,
        )

    # Envelope: { "error": {...} } o simplemente { "message": ... }
    error_obj = data.get("error")

    if isinstance(error_obj, dict):
        code = error_obj.get("code")
        if isinstance(code, str) and code.strip():
            error_code = code.strip()

        msg = error_obj.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()

        req_id = error_obj.get("requestId")
        if isinstance(req_id, str) and req_id.strip():
            request_id = req_id.strip()

        det = error_obj.get("details")
        if isinstance(det, dict):
            details = det
    else:
        msg = data.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()

    return EventSourceAPIError(
        status_code=status_code,
        message=message,
        body=body_text,
        error_code=error_code,
        request_id=request_id,
        details=details,
    )


class EventSourceHttpClient:
    """
    Wrapper HTTPX ligero para abrir streams SSE:
    - Streaming via httpx.Client.stream / AsyncClient.stream
    - Bearer token opcional
    - Debug logging opcional
    """

    def __init__(self, *, config: HttpConfig, api_key: str | None = None) -> None:
        self._config = config
        self._api_key = api_key
        self._debug_http = os.getenv(ENV_HTTP_DEBUG, "").lower() in {"1", "true", "yes", "on"}

        def _redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
            out = dict(headers)
            for k in ("authorization", "Authorization"):
                if k in out:
                    out[k] = "Bearer ***REDACTED***"
            return out

        def _log_request(request: httpx.Request) -> None:
            if not self._debug_http:
                return
            logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
            logging.warning("HTTPX REQUEST headers=%s", _redact_headers(dict(request.headers)))
            if request.content:
                try:
                    logging.warning("HTTPX REQUEST body=%s", request.content.decode("utf-8", "ignore"))
                except Exception:
                    logging.warning("HTTPX REQUEST body=(binary) len=%s", len(request.content))

        def _log_response_sync(response: httpx.Response) -> None:
            if not self._debug_http:
                return
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))

            # El body de un event-stream es el propio stream; no se lee aquí.
            ctype = response.headers.get("content-type", "")
            if "text/event-stream" in ctype:
                logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")
                return

            try:
                response.read()
                logging.warning("HTTPX RESPONSE body=%s", response.text)
            except Exception as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)

        async def _log_request_async(request: httpx.Request) -> None:
            _log_request(request)

        async def _log_response_async(response: httpx.Response) -> None:
            if not self._debug_http:
                return
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))
            ctype = response.headers.get("content-type", "")
            if "text/event-stream" in ctype:
                logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")
                return
            try:
                await response.aread()
                logging.warning("HTTPX RESPONSE body=%s", response.text)
            except Exception as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)

        EventHooksDict = dict[str, list[Callable[..., Any]]]

        hooks_sync: EventHooksDict = {"request": [_log_request], "response": [_log_response_sync]}
        hooks_async: EventHooksDict = {"request": [_log_request_async], "response": [_log_response_async]}

        self._client = httpx.Client(timeout=httpx.Timeout(config.timeout_s), event_hooks=hooks_sync)
        self._aclient = httpx.AsyncClient(timeout=httpx.Timeout(config.timeout_s), event_hooks=hooks_async)

    def close(self) -> None:
        self._client.close()

    async def aclose(self) -> None:
        await self._aclient.aclose()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @staticmethod
    def raise_for_status(resp: httpx.Response) -> None:
        """Verifica status y levanta EventSourceAPIError estructurado."""
        if 200 <= resp.status_code < 300:
            return

        # En un response streaming hay que leer el body antes de usar .text
        body_text: str | None = None
        try:
            if isinstance(resp, httpx.Response):
                resp.read()
            body_text = resp.text
        except Exception:
            body_text = None

        content_type = resp.headers.get("content-type", "") if hasattr(resp, "headers") else ""

        raise _parse_error_response(
            status_code=resp.status_code,
            body_text=body_text,
            content_type=content_type,
        )

    @staticmethod
    async def araise_for_status(resp: httpx.Response) -> None:
        """Versión async de raise_for_status() para responses de AsyncClient.stream."""
        if 200 <= resp.status_code < 300:
            return
        try:
            await resp.aread()
        except (httpx.HTTPError, httpx.StreamError):
            pass
        EventSourceHttpClient.raise_for_status(resp)

    def stream(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Retorna un httpx stream context manager.

        Uso:
            with client.stream("GET", "/events") as r:
                client.raise_for_status(r)
                for item in ChunkParser(r):
                    ...
        """
        url = f"{self._config.base_url}{path}"
        return self._client.stream(method, url, headers=self._headers(), params=params, json=json)

    def astream(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Retorna un httpx stream context manager asíncrono.

        Uso:
            async with client.astream("GET", "/events") as r:
                await client.araise_for_status(r)
                async for item in ChunkParser(r):
                    ...
        """
        url = f"{self._config.base_url}{path}"
        return self._aclient.stream(method, url, headers=self._headers(), params=params, json=json)
