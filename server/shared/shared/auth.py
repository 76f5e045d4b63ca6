"""Bearer-token authentication for the HTTP transport.

Every ``POST /mcp`` request must carry ``Authorization: Bearer <token>``.
The token is the caller's own platform API key; it is handed to the
request's invocation context and never stored anywhere else.

Usage in the FastAPI app::

    from shared.auth import require_bearer_token

    @app.post("/mcp")
    async def mcp(request: Request, token: str = Depends(require_bearer_token)):
        ...
"""

from __future__ import annotations

import structlog
from fastapi import HTTPException, Request

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Return the token from an ``Authorization`` header value.

    Returns None when the header is absent, uses another scheme,
    or carries an empty token.
    """
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX):].strip()
    return token or None


async def require_bearer_token(request: Request) -> str:
    """FastAPI dependency that resolves the caller's bearer token.

    Raises 401 if the header is missing or malformed.
    """
    token = extract_bearer_token(request.headers.get("authorization"))
    if token is None:
        logger.warning(
            "http_request_rejected",
            reason="missing_bearer_token",
            path=request.url.path,
            remote=request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=401,
            detail="Missing or malformed Authorization header, expected 'Bearer <api-key>'",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token
