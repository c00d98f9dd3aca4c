from __future__ import annotations

from starlette.requests import Request

from simple_rest.config import Settings
from simple_rest.observability.metrics import MetricsAggregator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_metrics(request: Request) -> MetricsAggregator:
    return request.app.state.metrics
