"""Shared utilities used across the storefront services."""

from .config import ServiceConfig, load_service_config
from .messaging import EventPublisher
from .cache import create_redis_cache
from .health import create_health_router
from .cors import configure_cors, get_cors_origins
from .logging import RequestContextLogMiddleware, configure_logging

__all__ = [
    "ServiceConfig",
    "load_service_config",
    "EventPublisher",
    "create_redis_cache",
    "create_health_router",
    "configure_cors",
    "get_cors_origins",
    "RequestContextLogMiddleware",
    "configure_logging",
]
