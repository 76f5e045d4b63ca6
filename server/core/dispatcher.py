"""JSON-RPC method routing and tool-result shaping shared by both transports."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from core.context import ClientInfo, InvocationContext, TransportKind, build_context
from core.instructions import get_instructions
from core.registry import ToolNotFoundError, ToolRegistry
from core.results import ContentBlocks, DomainError, HandlerResult, RawValue
from shared.config import SERVER_NAME, SERVER_VERSION, SUPPORTED_PROTOCOL_VERSIONS, Settings
from shared.schemas.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcRequest,
    JsonRpcResponse,
)

logger = structlog.get_logger()


class RpcError(Exception):
    """Protocol-level failure, answered with a JSON-RPC ``error`` member."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class Session:
    """Connection state a transport keeps between messages.

    The pipe transport keeps one for the whole process; the HTTP transport
    creates a new one for every request.
    """

    transport: TransportKind
    api_key: str | None = None
    client_info: ClientInfo | None = None
    protocol_version: str | None = None


def shape_tool_result(result: HandlerResult) -> dict[str, Any]:
    """Convert a handler result into the ``tools/call`` result payload."""
    if isinstance(result, ContentBlocks):
        return {"content": [block.to_wire() for block in result.blocks]}
    if isinstance(result, RawValue):
        rendered = json.dumps(result.value, indent=2, ensure_ascii=False, default=str)
        return {"content": [{"type": "text", "text": rendered}]}
    if isinstance(result, DomainError):
        return {"content": [{"type": "text", "text": f"Error: {result.message}"}], "isError": True}
    raise TypeError(f"unsupported handler result: {type(result).__name__}")


def _salvage_id(data: Any) -> Any:
    """Best-effort request id from an envelope that failed validation."""
    if isinstance(data, dict):
        request_id = data.get("id")
        if isinstance(request_id, (int, str)) and not isinstance(request_id, bool):
            return request_id
    return None


class Dispatcher:
    """Routes decoded JSON-RPC messages to the registry."""

    def __init__(self, registry: ToolRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    async def handle_payload(self, payload: str | bytes, session: Session) -> JsonRpcResponse | None:
        """Decode one message and dispatch it. Returns None for notifications."""
        try:
            data = json.loads(payload)
        except ValueError as e:
            logger.warning("jsonrpc_parse_error", transport=session.transport.value, error=str(e))
            return JsonRpcResponse.failure(None, PARSE_ERROR, f"Parse error: {e}")
        return await self.handle_message(data, session)

    async def handle_message(self, data: Any, session: Session) -> JsonRpcResponse | None:
        if isinstance(data, list):
            return JsonRpcResponse.failure(None, INVALID_REQUEST, "Batch requests are not supported")
        try:
            request = JsonRpcRequest.model_validate(data)
        except ValidationError:
            return JsonRpcResponse.failure(_salvage_id(data), INVALID_REQUEST, "Invalid request")
        return await self.handle(request, session)

    async def handle(self, request: JsonRpcRequest, session: Session) -> JsonRpcResponse | None:
        try:
            result = await self._route(request, session)
        except RpcError as e:
            response = JsonRpcResponse.failure(request.id, e.code, e.message)
        except Exception as e:
            logger.exception("jsonrpc_dispatch_failed", method=request.method, error=str(e))
            response = JsonRpcResponse.failure(request.id, INTERNAL_ERROR, "Internal error")
        else:
            response = JsonRpcResponse.success(request.id, result)
        if request.is_notification:
            return None
        return response

    def context_for(self, session: Session) -> InvocationContext:
        """A fresh invocation context for one tool call."""
        return build_context(
            session.transport,
            session.api_key,
            self.settings,
            client_info=session.client_info,
            protocol_version=session.protocol_version,
        )

    async def _route(self, request: JsonRpcRequest, session: Session) -> Any:
        method = self._methods.get(request.method)
        if method is None:
            if request.is_notification:
                logger.debug("notification_received", method=request.method)
                return {}
            raise RpcError(METHOD_NOT_FOUND, f"Method not found: {request.method}")
        params = request.params if isinstance(request.params, dict) else {}
        return await method(params, session)

    async def _initialize(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else SUPPORTED_PROTOCOL_VERSIONS[0]
        session.client_info = ClientInfo.from_params(params)
        session.protocol_version = version
        logger.info(
            "session_initialized",
            transport=session.transport.value,
            protocol_version=version,
            client_name=session.client_info.name if session.client_info else None,
            client_version=session.client_info.version if session.client_info else None,
        )
        result: dict[str, Any] = {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }
        if session.transport is TransportKind.STDIO:
            result["instructions"] = get_instructions(session.client_info)
        return result

    async def _ping(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        return {"tools": [tool.descriptor() for tool in self.registry.list()]}

    async def _tools_call(self, params: dict[str, Any], session: Session) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise RpcError(INVALID_PARAMS, "tools/call requires params.name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RpcError(INVALID_PARAMS, "params.arguments must be an object")

        try:
            result = await self.registry.invoke(self.context_for(session), name, arguments)
        except ToolNotFoundError as e:
            raise RpcError(METHOD_NOT_FOUND, str(e))
        return shape_tool_result(result)
