from __future__ import annotations

from time import perf_counter
from typing import Any, Callable

import structlog

from simple_rest.observability.metrics import MetricsAggregator


class StatusCapturingSend:
    """Wraps an ASGI ``send`` to remember the status code of the response.

    Starts at 200 and is overwritten by the first ``http.response.start``
    message. Every message is forwarded untouched.
    """

    def __init__(self, send: Callable[..., Any]) -> None:
        self._send = send
        self._captured = False
        self.status_code: int = 200

    async def __call__(self, message: dict[str, Any]) -> None:
        if message.get("type") == "http.response.start" and not self._captured:
            self.status_code = int(message.get("status", self.status_code))
            self._captured = True
        await self._send(message)


def _header(scope: dict[str, Any], name: bytes) -> str:
    for key, value in scope.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def _client_address(scope: dict[str, Any]) -> str:
    client = scope.get("client")
    if not client:
        return "-"
    host, port = client
    return f"{host}:{port}"


class AccessLogMiddleware:
    """Times each request, writes one access log line and feeds the metrics."""

    def __init__(self, app: Callable[..., Any], metrics: MetricsAggregator) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        start = perf_counter()
        capture = StatusCapturingSend(send)

        try:
            await self.app(scope, receive, capture)
        finally:
            elapsed = perf_counter() - start

            structlog.get_logger("access").info(
                "http_request",
                client=_client_address(scope),
                method=scope.get("method"),
                path=path,
                protocol=f"HTTP/{scope.get('http_version', '1.1')}",
                status_code=capture.status_code,
                user_agent=_header(scope, b"user-agent"),
                duration=round(elapsed, 6),
            )

            # Keyed on the raw path, whatever the handler decided about it.
            self.metrics.record(path, capture.status_code, elapsed)
