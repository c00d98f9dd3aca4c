from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from simple_rest.api.deps import get_app_settings
from simple_rest.api.errors import not_found_response

router = APIRouter(tags=["version"])


async def version(request: Request) -> Response:
    if request.url.path != "/version":
        return not_found_response(request.url.path)
    return PlainTextResponse(f"Version: {get_app_settings(request).version}\n")


# Plain routes without a method list answer every HTTP method.
router.add_route("/version", version, include_in_schema=False)
