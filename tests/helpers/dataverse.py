"""In-process stand-in for a Dataverse Web API endpoint."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx

from recordmover.adapters.http_resilience import ResilientClient

if TYPE_CHECKING:
    from recordmover.config.http_resilience import ResilienceConfig

ENVIRONMENT_URL = "https://portal.crm.dynamics.com"
API_URL = f"{ENVIRONMENT_URL}/api/data/v9.2/"


class FakeDataverse:
    """Answers requests from a queue of canned responses and keeps what it received."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def respond(self, *responses: httpx.Response) -> None:
        self.responses.extend(responses)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(204)

    def client_factory(self, resilience: ResilienceConfig) -> ResilientClient:
        async def async_handler(request: httpx.Request) -> httpx.Response:
            return self.handle(request)

        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    def body(self, index: int = -1) -> dict[str, object]:
        return json.loads(self.requests[index].content)


def error_response(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "message": message}})
