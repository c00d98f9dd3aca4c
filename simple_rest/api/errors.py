from __future__ import annotations

from fastapi import Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from simple_rest.models.schemas import NotFoundResponse


def not_found_response(path: str) -> JSONResponse:
    return JSONResponse(NotFoundResponse(path=path).model_dump(), status_code=404)


async def not_found_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        return not_found_response(request.url.path)
    return await http_exception_handler(request, exc)
