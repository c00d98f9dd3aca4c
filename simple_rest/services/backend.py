from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import httpx
import structlog
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

BACKEND_TIMEOUT_SECONDS = 10.0

# Framing headers are re-derived by each hop; Host comes from the backend URL.
_SKIP_REQUEST_HEADERS = {b"host", b"transfer-encoding"}
_SKIP_RESPONSE_HEADERS = {b"transfer-encoding"}

_transport: httpx.AsyncBaseTransport | None = None


def set_backend_transport(transport: httpx.AsyncBaseTransport | None) -> None:
    """Route outbound calls through ``transport`` (tests use ``httpx.MockTransport``)."""

    global _transport
    _transport = transport


def _new_client() -> httpx.AsyncClient:
    # One client per forwarded request: no pooling between requests.
    return httpx.AsyncClient(
        timeout=httpx.Timeout(BACKEND_TIMEOUT_SECONDS),
        follow_redirects=True,
        transport=_transport,
    )


def _has_body(request: Request) -> bool:
    length = request.headers.get("content-length")
    if length is not None:
        return length.strip() not in {"", "0"}
    return "transfer-encoding" in request.headers


async def _relay_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
    # Transports may hand back a response whose body is already in memory.
    if upstream.is_stream_consumed:
        yield upstream.content
        return

    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    except httpx.HTTPError as exc:
        # Status and headers are already on the wire; all we can do is stop.
        structlog.get_logger("proxy").error("backend_body_copy_failed", error=str(exc))


async def _close(upstream: httpx.Response, client: httpx.AsyncClient) -> None:
    await upstream.aclose()
    await client.aclose()


async def forward_to_backend(request: Request, backend_url: str) -> Response:
    """Send ``request`` to the backend and stream its answer back verbatim.

    - 500 if the outbound request cannot be built.
    - 503 if the backend cannot be reached or does not answer within
      ``BACKEND_TIMEOUT_SECONDS``.
    - Otherwise the backend's status, headers and raw body.
    """

    client = _new_client()
    headers = [(key, value) for key, value in request.headers.raw if key.lower() not in _SKIP_REQUEST_HEADERS]

    try:
        outbound = client.build_request(
            request.method,
            backend_url,
            headers=headers,
            content=request.stream() if _has_body(request) else None,
        )
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        await client.aclose()
        return PlainTextResponse(f"Error creating request: {exc}\n", status_code=500)

    try:
        upstream = await asyncio.wait_for(client.send(outbound, stream=True), timeout=BACKEND_TIMEOUT_SECONDS)
    except (httpx.RequestError, asyncio.TimeoutError) as exc:
        await client.aclose()
        message = str(exc) or exc.__class__.__name__
        return PlainTextResponse(f"Error forwarding to backend: {message}\n", status_code=503)

    response = StreamingResponse(
        _relay_body(upstream),
        status_code=upstream.status_code,
        background=BackgroundTask(_close, upstream, client),
    )
    response.raw_headers = [
        (key.lower(), value) for key, value in upstream.headers.raw if key.lower() not in _SKIP_RESPONSE_HEADERS
    ]
    return response
