from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class EventSourceError(RuntimeError):
    """Error base de la librería."""


class StreamConsumedError(EventSourceError):
    """Se intentó iterar dos veces el mismo stream de chunks."""


@dataclass(slots=True)
class EventSourceAPIError(EventSourceError):
    """
    Error HTTP al abrir un stream SSE.

    Cuando el servidor retorna un error JSON con formato:
    {
        "error": {
            "code": "BAD_REQUEST" | "UNAUTHORIZED" | ...,
            "message": "...",
            "requestId": "req_...",
            "details": {...}
        }
    }

    los campos estructurados se parsean automáticamente para facilitar debugging.
    """
    status_code: int
    message: str
    body: str | None = None

    error_code: str | None = None
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        parts = [f"EventSourceAPIError(status_code={self.status_code}"]
        if self.error_code:
            parts.append(f", code={self.error_code!r}")
        parts.append(f", message={self.message!r}")
        if self.request_id:
            parts.append(f", request_id={self.request_id!r}")
        if self.body:
            parts.append(f", body={len(self.body)} chars")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convierte el error a dict para logging estructurado."""
        return {
            "status_code": self.status_code,
            "message": self.message,
            "error_code": self.error_code,
            "request_id": self.request_id,
            "details": self.details,
            "body": self.body,
        }

    @property
    def is_client_error(self) -> bool:
        """True si es un error 4xx (problema del cliente)."""
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """True si es un error 5xx (problema del servidor)."""
        return 500 <= self.status_code < 600

    @property
    def is_auth_error(self) -> bool:
        """True si es un error de autenticación (401) o autorización (403)."""
        return self.status_code in (401, 403)
