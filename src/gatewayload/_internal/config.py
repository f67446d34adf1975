"""Configuration loading for gatewayload."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from gatewayload._internal.errors import ConfigError

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_VUS = 2
DEFAULT_DURATION = 15.0
DEFAULT_TIMEOUT = 30.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass(frozen=True)
class GatewayLoadConfig:
    """Run configuration, read once at start.

    Attributes:
        base_url: Gateway base URL the scenario paths are appended to.
        vus: Number of concurrent virtual users.
        duration_seconds: Total run duration in seconds.
        request_timeout: Per-request timeout in seconds.
    """

    base_url: str = DEFAULT_BASE_URL
    vus: int = DEFAULT_VUS
    duration_seconds: float = DEFAULT_DURATION
    request_timeout: float = DEFAULT_TIMEOUT


def parse_duration(value: str | float) -> float:
    """Convert a duration to seconds.

    Accepts plain numbers (seconds) and unit strings such as ``"15s"``,
    ``"5m"``, ``"1h"``, ``"250ms"`` or compound ``"1m30s"``.

    Args:
        value: Duration as a number of seconds or a unit string.

    Returns:
        Duration in seconds.

    Raises:
        ConfigError: If the value cannot be parsed or is not positive.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip().lower()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                msg = f"Invalid duration: {value!r} (expected e.g. 30, 15s, 5m, 1m30s)"
                raise ConfigError(msg) from None

    if seconds <= 0:
        msg = f"Duration must be positive, got: {value!r}"
        raise ConfigError(msg)
    return seconds


def load_config() -> GatewayLoadConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        GATEWAYLOAD_BASE_URL: Gateway base URL (default: http://localhost:8080).
        GATEWAYLOAD_VUS: Virtual user count (default: 2).
        GATEWAYLOAD_DURATION: Run duration, e.g. ``15s`` (default: 15s).
        GATEWAYLOAD_TIMEOUT: Request timeout in seconds (default: 30.0).

    Returns:
        Populated GatewayLoadConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    vus_str = os.environ.get("GATEWAYLOAD_VUS", str(DEFAULT_VUS))
    timeout_str = os.environ.get("GATEWAYLOAD_TIMEOUT", str(DEFAULT_TIMEOUT))
    duration_str = os.environ.get("GATEWAYLOAD_DURATION", str(DEFAULT_DURATION))

    try:
        vus = int(vus_str)
    except ValueError:
        msg = f"GATEWAYLOAD_VUS must be an integer, got: {vus_str!r}"
        raise ConfigError(msg) from None

    if vus < 1:
        msg = f"GATEWAYLOAD_VUS must be >= 1, got: {vus}"
        raise ConfigError(msg)

    try:
        timeout = float(timeout_str)
    except ValueError:
        msg = f"GATEWAYLOAD_TIMEOUT must be a number, got: {timeout_str!r}"
        raise ConfigError(msg) from None

    if timeout <= 0:
        msg = f"GATEWAYLOAD_TIMEOUT must be positive, got: {timeout}"
        raise ConfigError(msg)

    base_url = os.environ.get("GATEWAYLOAD_BASE_URL", DEFAULT_BASE_URL).strip()
    if not base_url.startswith(("http://", "https://")):
        msg = f"GATEWAYLOAD_BASE_URL must be an http(s) URL, got: {base_url!r}"
        raise ConfigError(msg)

    return GatewayLoadConfig(
        base_url=base_url,
        vus=vus,
        duration_seconds=parse_duration(duration_str),
        request_timeout=timeout,
    )
