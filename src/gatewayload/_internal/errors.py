"""Custom exception hierarchy for gatewayload."""

from __future__ import annotations


class GatewayLoadError(Exception):
    """Base exception for all gatewayload errors.

    All custom exceptions raised by the package inherit from this class,
    so callers can catch any gatewayload-specific error with a single
    except clause.
    """


class ScenarioError(GatewayLoadError):
    """Raised when a scenario definition is invalid.

    Examples:
        - A class decorated with @scenario has no @task methods.
        - A @task method is not a coroutine function.
        - A scenario file cannot be loaded or parsed.
    """


class ConfigError(GatewayLoadError):
    """Raised when configuration is invalid or missing.

    Examples:
        - An environment variable has an invalid value.
        - A duration string cannot be parsed.
    """


class EngineError(GatewayLoadError):
    """Raised when a test session or runner fails to execute."""
