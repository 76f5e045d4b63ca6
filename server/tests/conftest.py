"""Shared test fixtures for the server test suite.

Provides settings, a scripted stand-in for the platform API served through
``httpx.MockTransport``, and invocation contexts wired to it, so tool
tests run without network access.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from core.context import ClientInfo, InvocationContext, TransportKind
from shared.config import Settings
from shared.zerops_client import API_PREFIX, ZeropsClient

API_URL = "https://api.test"

# 22-character IDs, the shape the platform hands out
PROJECT_ID = "prjAAAAAAAAAAAAAAAAAAA"
SERVICE_ID = "svcBBBBBBBBBBBBBBBBBBB"


# ---------------------------------------------------------------------------
# Mock platform API
# ---------------------------------------------------------------------------


class MockApi:
    """Route table for the platform API.

    Register responses with ``add(method, path, body)`` where ``path`` is
    relative to the public REST prefix. Unregistered routes answer 404 with
    a platform-style error body. Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (status, body)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"{API_PREFIX}{path}"
        ]

    def json_of(self, method: str, path: str, index: int = -1) -> Any:
        return json.loads(self.calls(method, path)[index].content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"error": {"code": "notFound", "message": f"no route {path}"}})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


@pytest.fixture
def api():
    return MockApi()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        zerops_api_key="",
        zerops_api_url=API_URL,
        default_project_id="",
        knowledge_api_url="https://kb.test",
        guides_base_url="https://guides.test",
    )


@pytest.fixture
def zerops_client(api):
    return ZeropsClient("test-key", base_url=API_URL, transport=httpx.MockTransport(api.handler))


@pytest.fixture
def ctx(zerops_client):
    """Context for a stdio caller holding a credential."""
    return InvocationContext(transport=TransportKind.STDIO, client=zerops_client)


@pytest.fixture
def anon_ctx():
    """Context without a credential."""
    return InvocationContext(transport=TransportKind.STDIO, client=None)


@pytest.fixture
def http_ctx(zerops_client):
    return InvocationContext(
        transport=TransportKind.HTTP,
        client=zerops_client,
        client_info=ClientInfo(name="claude-code", version="1.2.3"),
        protocol_version="2025-06-18",
    )


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_process(process_id: str = "proc1", action: str = "stack.start", status: str = "PENDING", **extra) -> dict:
    return {"id": process_id, "actionName": action, "status": status, **extra}


def make_service(
    service_id: str = SERVICE_ID,
    name: str = "app",
    type_version: str = "nodejs@22",
    status: str = "ACTIVE",
    **extra,
) -> dict:
    return {
        "id": service_id,
        "projectId": PROJECT_ID,
        "name": name,
        "status": status,
        "mode": "NON_HA",
        "serviceStackTypeInfo": {
            "serviceStackTypeName": type_version.split("@")[0],
            "serviceStackTypeVersionName": type_version,
        },
        **extra,
    }


def make_user(*clients: tuple[str, str]) -> dict:
    return {
        "id": "user1",
        "email": "dev@example.com",
        "fullName": "Dev Example",
        "clientUserList": [
            {"clientId": client_id, "roleCode": "OWNER", "client": {"id": client_id, "accountName": name}}
            for client_id, name in clients
        ],
    }


def text_of(result) -> str:
    """Joined text of a ContentBlocks result."""
    return "\n".join(block.text for block in result.blocks)
