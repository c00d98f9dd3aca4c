from __future__ import annotations

import socket
import sys
import time

import structlog
import uvicorn
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from simple_rest.api.errors import not_found_exception_handler
from simple_rest.api.health import router as health_router
from simple_rest.api.metrics import router as metrics_router
from simple_rest.api.proxy import router as proxy_router
from simple_rest.api.version import router as version_router
from simple_rest.config import Settings, get_settings
from simple_rest.observability.logging import configure_logging
from simple_rest.observability.metrics import MetricsAggregator
from simple_rest.observability.middleware import AccessLogMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    metrics = MetricsAggregator(settings.version, max_samples=settings.metrics_max_samples)

    app = FastAPI(
        title="Simple REST Proxy",
        version=settings.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.started_at = time.monotonic()

    app.include_router(proxy_router)
    app.include_router(version_router)
    app.include_router(health_router)
    app.include_router(metrics_router)

    app.add_exception_handler(StarletteHTTPException, not_found_exception_handler)
    app.add_middleware(AccessLogMiddleware, metrics=metrics)
    return app


app = create_app()


def _bind(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = structlog.get_logger("simple_rest")

    logger.info("Starting server", version=settings.version, backend=settings.backend_url)
    logger.info("Server starting", port=settings.port)

    try:
        sock = _bind(settings.host, settings.port)
    except OSError as exc:
        logger.critical("Server failed to start", error=str(exc), port=settings.port)
        sys.exit(1)

    config = uvicorn.Config(create_app(settings), log_config=None, access_log=False)
    uvicorn.Server(config).run(sockets=[sock])


if __name__ == "__main__":
    main()
