"""Light load test for the demo API gateway.

Each virtual user calls both backend services through the gateway, checks
for HTTP 200 on every call, then pauses five seconds. Run it with:

    gatewayload run --vus 2 --duration 15s --base-url http://localhost:8080
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gatewayload.dsl.decorators import scenario, task

if TYPE_CHECKING:
    import aiohttp

    from gatewayload.dsl.http_client import HttpClient

# Virtual host the gateway routes on.
API_HOST = "api.demo.local"

CANARY_HEADERS = {"X-Canary": "true"}


@scenario(
    name="Gateway Light Load",
    default_headers={"Host": API_HOST},
    pause=5.0,
)
class GatewayLightLoad:
    """Five gateway calls per iteration, the last one routed to the canary."""

    @task(name="service-a hello", check="service-a hello status is 200")
    async def service_a_hello(self, client: HttpClient) -> aiohttp.ClientResponse:
        return await client.get("/api/service-a/hello", name="service-a hello")

    @task(name="service-a slow", check="service-a slow status is 200")
    async def service_a_slow(self, client: HttpClient) -> aiohttp.ClientResponse:
        return await client.get("/api/service-a/slow", name="service-a slow")

    @task(name="service-b hello", check="service-b hello status is 200")
    async def service_b_hello(self, client: HttpClient) -> aiohttp.ClientResponse:
        return await client.get("/api/service-b/hello", name="service-b hello")

    @task(name="service-a chain", check="service-a chain status is 200")
    async def service_a_chain(self, client: HttpClient) -> aiohttp.ClientResponse:
        return await client.get("/api/service-a/chain", name="service-a chain")

    @task(name="service-a canary", check="service-a canary status is 200")
    async def service_a_canary(self, client: HttpClient) -> aiohttp.ClientResponse:
        """Same route as hello, steered to the canary deployment."""
        return await client.get(
            "/api/service-a/hello",
            name="service-a canary",
            headers=CANARY_HEADERS,
        )
