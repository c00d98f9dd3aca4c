from __future__ import annotations

from typing import Any

from structlog.testing import capture_logs

from simple_rest.observability.metrics import MetricsAggregator
from simple_rest.observability.middleware import AccessLogMiddleware, StatusCapturingSend


def _scope(path: str) -> dict[str, Any]:
    return {
        "type": "http",
        "method": "GET",
        "path": path,
        "http_version": "1.1",
        "client": ("10.0.0.5", 51234),
        "headers": [(b"user-agent", b"probe/1.0")],
    }


async def _receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


def _responding_app(status: int):
    async def app(scope, receive, send) -> None:
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b"ok"})

    return app


async def test_status_capture_defaults_to_ok() -> None:
    sent: list[dict] = []

    async def sink(message: dict) -> None:
        sent.append(message)

    capture = StatusCapturingSend(sink)
    await capture({"type": "http.response.body", "body": b"x"})

    assert capture.status_code == 200
    assert sent == [{"type": "http.response.body", "body": b"x"}]


async def test_status_capture_keeps_first_start_message() -> None:
    sent: list[dict] = []

    async def sink(message: dict) -> None:
        sent.append(message)

    capture = StatusCapturingSend(sink)
    await capture({"type": "http.response.start", "status": 418, "headers": []})
    await capture({"type": "http.response.start", "status": 500, "headers": []})

    assert capture.status_code == 418
    assert [m["status"] for m in sent] == [418, 500]


async def test_access_log_records_raw_path_and_status() -> None:
    metrics = MetricsAggregator("1.0.0")
    middleware = AccessLogMiddleware(_responding_app(404), metrics=metrics)
    sent: list[dict] = []

    async def send(message: dict) -> None:
        sent.append(message)

    with capture_logs() as logs:
        await middleware(_scope("/version/"), _receive, send)

    assert sent[0]["status"] == 404
    assert metrics.total_requests == {"/version/": 1}
    assert metrics.status_codes == {"/version/": {404: 1}}
    assert len(metrics.request_durations["/version/"]) == 1

    access = [entry for entry in logs if entry["event"] == "http_request"]
    assert len(access) == 1
    line = access[0]
    assert line["client"] == "10.0.0.5:51234"
    assert line["method"] == "GET"
    assert line["path"] == "/version/"
    assert line["protocol"] == "HTTP/1.1"
    assert line["status_code"] == 404
    assert line["user_agent"] == "probe/1.0"
    assert isinstance(line["duration"], float)
    assert line["duration"] >= 0


async def test_non_http_scopes_pass_through() -> None:
    metrics = MetricsAggregator("1.0.0")
    seen: list[str] = []

    async def app(scope, receive, send) -> None:
        seen.append(scope["type"])

    middleware = AccessLogMiddleware(app, metrics=metrics)
    await middleware({"type": "lifespan"}, _receive, None)

    assert seen == ["lifespan"]
    assert metrics.total_requests == {}
