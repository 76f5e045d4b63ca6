"""JSON-RPC 2.0 envelope schemas shared by both transports."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr, model_validator

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = StrictInt | StrictStr | None


class JsonRpcRequest(BaseModel):
    """An inbound request or notification."""

    jsonrpc: Literal["2.0"]
    id: RequestId = None
    method: StrictStr
    params: dict[str, Any] | list[Any] | None = Field(default=None)

    @property
    def is_notification(self) -> bool:
        # "id": null is a (badly formed) request, a missing id is a notification
        return "id" not in self.model_fields_set


class JsonRpcError(BaseModel):
    """Error member of a response."""

    code: int
    message: str
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


class JsonRpcResponse(BaseModel):
    """A response carrying exactly one of ``result`` or ``error``."""

    id: RequestId = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _exactly_one_member(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            raise ValueError("a response carries exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: RequestId, code: int, message: str) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.to_wire()
        else:
            payload["result"] = self.result
        return payload


def encode_message(response: JsonRpcResponse) -> str:
    """Serialize a response to the exact text both transports put on the wire."""
    return json.dumps(response.to_wire(), ensure_ascii=False, separators=(",", ":"))
