"""
Shared FastAPI dependencies.

The coordinator is built once at startup and parked on ``app.state``;
routes reach it through this function so tests can swap it with
``app.dependency_overrides``.
"""

from fastapi import Request

from exceptions import ConfigurationError
from aggregator.coordinator import SearchCoordinator


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ConfigurationError(f"Service not initialized: {name}")
    return value


def get_coordinator(request: Request) -> SearchCoordinator:
    return _state(request, "coordinator")
