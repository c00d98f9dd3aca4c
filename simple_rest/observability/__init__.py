"""Observability helpers: structlog JSON logging, the access-log middleware,
and the in-memory metrics aggregator behind ``/metrics``.
"""
