"""Shared test fixtures for the gatewayload test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

from gatewayload.dsl.scenario import registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def _clear_registry():
    """Clear the global scenario registry around each test."""
    registry.clear()
    yield
    registry.clear()


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Mock API gateway
# =============================================================================


GATEWAY_ROUTES = (
    "/api/service-a/hello",
    "/api/service-a/slow",
    "/api/service-b/hello",
    "/api/service-a/chain",
)


@dataclass
class SeenRequest:
    """A request received by the mock gateway."""

    path: str
    headers: dict[str, str]
    timestamp: float = field(default_factory=time.monotonic)


@dataclass
class MockGateway:
    """Handle on a running mock gateway.

    Attributes:
        url: Base URL of the server.
        requests: Every request received, in arrival order.
        fail_paths: Paths that answer 503 instead of 200.
    """

    url: str
    requests: list[SeenRequest] = field(default_factory=list)
    fail_paths: set[str] = field(default_factory=set)


def _create_gateway_app(gateway: MockGateway) -> web.Application:
    """Build the mock gateway app: both services' routes behind one host."""

    async def _service_handler(request: web.Request) -> web.Response:
        gateway.requests.append(SeenRequest(path=request.path, headers=dict(request.headers)))
        if request.path.endswith("/slow"):
            await asyncio.sleep(0.05)
        if request.path in gateway.fail_paths:
            return web.json_response({"error": "unavailable"}, status=503)
        return web.json_response(
            {
                "path": request.path,
                "host": request.headers.get("Host"),
                "canary": request.headers.get("X-Canary") == "true",
            }
        )

    app = web.Application()
    for route in GATEWAY_ROUTES:
        app.router.add_get(route, _service_handler)
    return app


@pytest.fixture
async def gateway() -> AsyncIterator[MockGateway]:
    """In-loop mock gateway for async tests."""
    port = _get_free_port()
    mock = MockGateway(url=f"http://127.0.0.1:{port}")
    runner = web.AppRunner(_create_gateway_app(mock))
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield mock
    await runner.cleanup()


@pytest.fixture
def sync_gateway() -> Iterator[MockGateway]:
    """Mock gateway running in a background thread.

    For tests whose code under test runs its own event loop (runner, CLI).
    """
    port = _get_free_port()
    mock = MockGateway(url=f"http://127.0.0.1:{port}")
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_gateway_app(mock))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield mock

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def fast_scenario_file(tmp_path: Path) -> Path:
    """Scenario file hitting two gateway routes with a short pause."""
    code = """\
from __future__ import annotations

from gatewayload import HttpClient, scenario, task


@scenario(
    name="Fast Gateway Scenario",
    default_headers={"Host": "api.demo.local"},
    pause=0.05,
)
class FastGatewayScenario:

    @task(name="service-a hello")
    async def hello(self, client: HttpClient):
        return await client.get("/api/service-a/hello", name="service-a hello")

    @task(name="service-b hello")
    async def other(self, client: HttpClient):
        return await client.get("/api/service-b/hello", name="service-b hello")
"""
    path = tmp_path / "fast_scenario.py"
    path.write_text(code)
    return path
