"""Exceptions raised by the planner and its routing adapter."""
from __future__ import annotations

from typing import Optional


class PlannerError(Exception):
    """Base class for failures that abort a planning request."""


class RouteOracleError(PlannerError):
    """The directions provider failed or answered with a non-OK status."""

    def __init__(self, status: str, message: Optional[str] = None):
        self.status = status
        self.message = message
        detail = f"Directions error: {status}"
        if message:
            detail = f"{detail} ({message})"
        super().__init__(detail)


class EmptyRouteSetError(RouteOracleError):
    """The provider reported success but returned no route alternatives."""

    def __init__(self, message: Optional[str] = None):
        super().__init__("ZERO_ROUTES", message)


class ConfigurationError(PlannerError):
    """Required runtime configuration (such as the provider API key) is missing."""
