"""Tests for configuration loading and duration parsing."""

from __future__ import annotations

import pytest

from gatewayload._internal.config import GatewayLoadConfig, load_config, parse_duration
from gatewayload._internal.errors import ConfigError

_ENV_VARS = (
    "GATEWAYLOAD_BASE_URL",
    "GATEWAYLOAD_VUS",
    "GATEWAYLOAD_DURATION",
    "GATEWAYLOAD_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestGatewayLoadConfig:
    """Tests for the GatewayLoadConfig dataclass."""

    def test_defaults(self):
        """Defaults match the light load test: 2 VUs for 15 seconds."""
        config = GatewayLoadConfig()
        assert config.base_url == "http://localhost:8080"
        assert config.vus == 2
        assert config.duration_seconds == 15.0
        assert config.request_timeout == 30.0

    def test_frozen(self):
        """GatewayLoadConfig is immutable."""
        config = GatewayLoadConfig()
        with pytest.raises(AttributeError):
            config.vus = 10  # type: ignore[misc]


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_defaults_from_env(self):
        assert load_config() == GatewayLoadConfig()

    def test_base_url_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_BASE_URL", "http://gateway.internal:9000")
        assert load_config().base_url == "http://gateway.internal:9000"

    def test_vus_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_VUS", "10")
        assert load_config().vus == 10

    def test_duration_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_DURATION", "5m")
        assert load_config().duration_seconds == 300.0

    def test_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_TIMEOUT", "10.5")
        assert load_config().request_timeout == 10.5

    def test_invalid_vus_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_VUS", "many")
        with pytest.raises(ConfigError, match="must be an integer"):
            load_config()

    def test_zero_vus_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_VUS", "0")
        with pytest.raises(ConfigError, match="must be >= 1"):
            load_config()

    def test_invalid_timeout_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_TIMEOUT", "abc")
        with pytest.raises(ConfigError, match="must be a number"):
            load_config()

    def test_negative_timeout_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_TIMEOUT", "-5.0")
        with pytest.raises(ConfigError, match="must be positive"):
            load_config()

    def test_invalid_duration_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_DURATION", "forever")
        with pytest.raises(ConfigError, match="Invalid duration"):
            load_config()

    def test_non_http_base_url_raises_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GATEWAYLOAD_BASE_URL", "localhost:8080")
        with pytest.raises(ConfigError, match="http"):
            load_config()


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("15s", 15.0),
            ("5m", 300.0),
            ("1h", 3600.0),
            ("1m30s", 90.0),
            ("250ms", 0.25),
            ("30", 30.0),
            (" 2.5 ", 2.5),
            (12, 12.0),
            (0.5, 0.5),
        ],
    )
    def test_valid(self, value: str | float, expected: float):
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "s", "5x", "5s garbage", "m5"])
    def test_invalid(self, value: str):
        with pytest.raises(ConfigError, match="Invalid duration"):
            parse_duration(value)

    @pytest.mark.parametrize("value", ["0", "0s", -1, "-3"])
    def test_non_positive(self, value: str | float):
        with pytest.raises(ConfigError):
            parse_duration(value)
