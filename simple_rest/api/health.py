from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from simple_rest.api.deps import get_app_settings
from simple_rest.api.errors import not_found_response
from simple_rest.models.schemas import LivenessResponse, ReadinessResponse
from simple_rest.services.durations import format_duration

router = APIRouter(tags=["health"])


async def liveness(request: Request) -> Response:
    if request.url.path != "/health/live":
        return not_found_response(request.url.path)

    uptime = time.monotonic() - request.app.state.started_at
    return JSONResponse(LivenessResponse(uptime=format_duration(uptime)).model_dump())


async def readiness(request: Request) -> Response:
    if request.url.path != "/health/ready":
        return not_found_response(request.url.path)

    backend = get_app_settings(request).backend_url
    return JSONResponse(ReadinessResponse(backend=backend).model_dump(), status_code=200)


router.add_route("/health/live", liveness, include_in_schema=False)
router.add_route("/health/ready", readiness, include_in_schema=False)
