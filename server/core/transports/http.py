"""HTTP transport - FastAPI app serving JSON-RPC on ``POST /mcp``.

Stateless: every request authenticates with its own bearer token and gets
its own session and invocation context.
"""

from __future__ import annotations

from urllib.parse import urlparse

import structlog
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from core.context import TransportKind
from core.dispatcher import Dispatcher, Session
from core.registry import ToolRegistry
from shared.auth import require_bearer_token
from shared.config import SERVER_VERSION, Settings
from shared.schemas.common import HealthResponse
from shared.schemas.jsonrpc import encode_message

logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Accept, MCP-Protocol-Version, Mcp-Session-Id",
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}

LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


def origin_allowed(origin: str | None, bind_host: str) -> bool:
    """Browsers may only reach a loopback-bound server from a loopback origin."""
    if not origin or bind_host not in LOOPBACK_HOSTS:
        return True
    return urlparse(origin).hostname in LOOPBACK_HOSTS


def wants_event_stream(accept: str | None) -> bool:
    return "text/event-stream" in (accept or "").lower()


def create_app(registry: ToolRegistry, settings: Settings) -> FastAPI:
    """Build the HTTP app around a populated registry."""
    app = FastAPI(title="Zerops MCP", version=SERVER_VERSION)
    dispatcher = Dispatcher(registry, settings)
    app.state.dispatcher = dispatcher

    @app.middleware("http")
    async def cors_and_security(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        elif request.url.path != "/health" and not origin_allowed(request.headers.get("origin"), settings.mcp_host):
            logger.warning("http_request_rejected", reason="origin_not_allowed", origin=request.headers.get("origin"))
            response = JSONResponse({"detail": "Origin not allowed"}, status_code=403)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        response.headers.update(SECURITY_HEADERS)
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse()

    @app.post("/mcp")
    async def mcp(request: Request, token: str = Depends(require_bearer_token)) -> Response:
        body = await request.body()
        session = Session(transport=TransportKind.HTTP, api_key=token)
        response = await dispatcher.handle_payload(body, session)
        if response is None:
            return Response(status_code=202)

        payload = encode_message(response)
        if wants_event_stream(request.headers.get("accept")):
            return Response(
                content=f"data: {payload}\n\n",
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache"},
            )
        return Response(content=payload, media_type="application/json")

    return app
