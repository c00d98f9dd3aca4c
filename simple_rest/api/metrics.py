from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from simple_rest.api.deps import get_metrics
from simple_rest.api.errors import not_found_response

router = APIRouter(tags=["metrics"])


async def metrics(request: Request) -> Response:
    if request.url.path != "/metrics":
        return not_found_response(request.url.path)
    return PlainTextResponse(get_metrics(request).render())


router.add_route("/metrics", metrics, include_in_schema=False)
