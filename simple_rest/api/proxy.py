from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response

from simple_rest.api.deps import get_app_settings
from simple_rest.api.errors import not_found_response
from simple_rest.services.backend import forward_to_backend

router = APIRouter(tags=["proxy"])


async def proxy_root(request: Request) -> Response:
    if request.url.path != "/":
        return not_found_response(request.url.path)
    return await forward_to_backend(request, get_app_settings(request).backend_url)


router.add_route("/", proxy_root, include_in_schema=False)
