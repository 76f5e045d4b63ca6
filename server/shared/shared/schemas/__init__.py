"""Pydantic schemas for the MCP server."""

from shared.schemas.common import HealthResponse
from shared.schemas.jsonrpc import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

__all__ = [
    "HealthResponse",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ModuleManifest",
    "ToolDefinition",
    "ToolParameter",
]
