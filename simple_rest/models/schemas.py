from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LivenessResponse(BaseModel):
    status: Literal["UP"] = "UP"
    uptime: str


class ReadinessResponse(BaseModel):
    status: Literal["UP"] = "UP"
    backend: str


class NotFoundResponse(BaseModel):
    status: str = "Not Found"
    message: str = "The requested URI does not exist"
    path: str
