"""Tests for JSON-RPC routing and tool-result shaping."""

from __future__ import annotations

import json

import pytest

from core.context import ClientInfo, TransportKind
from core.dispatcher import Dispatcher, Session, shape_tool_result
from core.registry import ToolRegistry
from core.results import error, raw, text
from shared.config import SERVER_NAME, SUPPORTED_PROTOCOL_VERSIONS
from shared.errors import ToolError
from shared.schemas.jsonrpc import encode_message
from shared.schemas.tools import ToolDefinition


async def _echo(ctx, args):
    return text(args["msg"])


async def _needs_field(ctx, args):
    raise ToolError("missing required field project_id")


async def _whoami(ctx, args):
    return raw({
        "transport": ctx.transport.value,
        "has_client": ctx.client is not None,
        "client": ctx.client_info.name if ctx.client_info else None,
    })


@pytest.fixture
def registry():
    registry = ToolRegistry()
    registry.register(ToolDefinition(name="echo", description="Echo msg").bind(_echo))
    registry.register(ToolDefinition(name="needs_field", description="Always fails").bind(_needs_field))
    registry.register(ToolDefinition(name="whoami", description="Reports its context").bind(_whoami))
    return registry


@pytest.fixture
def dispatcher(registry, settings):
    return Dispatcher(registry, settings)


def _session(api_key: str | None = "key") -> Session:
    return Session(transport=TransportKind.STDIO, api_key=api_key)


async def _call(dispatcher, message: dict, session: Session | None = None) -> dict | None:
    response = await dispatcher.handle_payload(json.dumps(message), session or _session())
    return None if response is None else json.loads(encode_message(response))


class TestShapeToolResult:

    def test_content_blocks(self):
        assert shape_tool_result(text("a", "b")) == {
            "content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]
        }

    def test_raw_value_rendered_as_json_text(self):
        shaped = shape_tool_result(raw({"count": 2, "name": "é"}))
        block = shaped["content"][0]
        assert block["type"] == "text"
        assert json.loads(block["text"]) == {"count": 2, "name": "é"}
        assert "isError" not in shaped

    def test_domain_error(self):
        assert shape_tool_result(error("bad input")) == {
            "content": [{"type": "text", "text": "Error: bad input"}],
            "isError": True,
        }


class TestScenarios:

    @pytest.mark.asyncio
    async def test_echo_over_pipe_session(self, dispatcher):
        response = await dispatcher.handle_payload(
            '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"echo","arguments":{"msg":"hi"}}}',
            _session(),
        )
        assert encode_message(response) == (
            '{"jsonrpc":"2.0","id":1,"result":{"content":[{"type":"text","text":"hi"}]}}'
        )

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher):
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": {"name": "nope", "arguments": {}},
        })
        assert body == {"jsonrpc": "2.0", "id": 7, "error": {"code": -32601, "message": "tool not found: nope"}}

    @pytest.mark.asyncio
    async def test_tools_list_matches_registered_names(self, dispatcher, registry):
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        names = [tool["name"] for tool in body["result"]["tools"]]
        assert set(names) == {t.name for t in registry.list()}
        assert names == sorted(names)
        assert all("inputSchema" in tool for tool in body["result"]["tools"])

    @pytest.mark.asyncio
    async def test_domain_error_is_a_result(self, dispatcher):
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "needs_field"},
        })
        assert "error" not in body
        assert body["result"]["isError"] is True
        assert body["result"]["content"][0]["text"] == "Error: missing required field project_id"


class TestProtocolErrors:

    @pytest.mark.asyncio
    async def test_parse_error(self, dispatcher):
        response = await dispatcher.handle_payload(b"{not json", _session())
        body = json.loads(encode_message(response))
        assert body["id"] is None
        assert body["error"]["code"] == -32700

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [
        {"id": 1, "method": "ping"},
        {"jsonrpc": "1.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "id": 1, "method": 5},
        {"jsonrpc": "2.0", "id": 1.5, "method": "ping"},
        "just a string",
    ])
    async def test_invalid_request(self, dispatcher, message):
        body = await _call(dispatcher, message)
        assert body["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_invalid_request_keeps_salvageable_id(self, dispatcher):
        body = await _call(dispatcher, {"jsonrpc": "1.0", "id": "abc", "method": "ping"})
        assert body["id"] == "abc"

    @pytest.mark.asyncio
    async def test_batch_rejected(self, dispatcher):
        body = await _call(dispatcher, [{"jsonrpc": "2.0", "id": 1, "method": "ping"}])
        assert body["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_unknown_method(self, dispatcher):
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": 4, "method": "resources/list"})
        assert body["error"] == {"code": -32601, "message": "Method not found: resources/list"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [
        {},
        {"name": ""},
        {"name": 42},
        {"name": "echo", "arguments": ["hi"]},
    ])
    async def test_invalid_tools_call_params(self, dispatcher, params):
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": params})
        assert body["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_exactly_one_of_result_or_error(self, dispatcher):
        messages = [
            {"jsonrpc": "2.0", "id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "id": 2, "method": "nope"},
            {"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "needs_field"}},
            {"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {"name": "missing"}},
            {"jsonrpc": "2.0", "id": 5, "method": "tools/list"},
        ]
        for message in messages:
            body = await _call(dispatcher, message)
            assert ("result" in body) != ("error" in body)
            assert body["id"] == message["id"]


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_initialize_negotiates_supported_version(self, dispatcher):
        session = _session()
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 1, "method": "initialize",
            "params": {"protocolVersion": "2024-11-05", "clientInfo": {"name": "claude-desktop", "version": "0.9"}},
        }, session)
        result = body["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"]["name"] == SERVER_NAME
        assert result["capabilities"] == {"tools": {"listChanged": False}}
        assert "instructions" in result
        assert session.client_info == ClientInfo(name="claude-desktop", version="0.9")

    @pytest.mark.asyncio
    async def test_initialize_falls_back_to_latest_version(self, dispatcher):
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "1999-01-01"},
        })
        assert body["result"]["protocolVersion"] == SUPPORTED_PROTOCOL_VERSIONS[0]

    @pytest.mark.asyncio
    async def test_initialize_over_http_has_no_instructions(self, dispatcher):
        session = Session(transport=TransportKind.HTTP, api_key="key")
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}, session)
        assert "instructions" not in body["result"]

    @pytest.mark.asyncio
    async def test_ping(self, dispatcher):
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": "p", "method": "ping"})
        assert body == {"jsonrpc": "2.0", "id": "p", "result": {}}

    @pytest.mark.asyncio
    async def test_notifications_get_no_response(self, dispatcher):
        assert await _call(dispatcher, {"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert await _call(dispatcher, {"jsonrpc": "2.0", "method": "tools/list"}) is None

    @pytest.mark.asyncio
    async def test_null_id_is_answered(self, dispatcher):
        body = await _call(dispatcher, {"jsonrpc": "2.0", "id": None, "method": "ping"})
        assert body == {"jsonrpc": "2.0", "id": None, "result": {}}


class TestContext:

    @pytest.mark.asyncio
    async def test_session_identity_flows_into_context(self, dispatcher):
        session = _session()
        await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 1, "method": "initialize",
            "params": {"clientInfo": {"name": "cursor", "version": "1"}},
        }, session)
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "whoami"},
        }, session)
        seen = json.loads(body["result"]["content"][0]["text"])
        assert seen == {"transport": "stdio", "has_client": True, "client": "cursor"}

    @pytest.mark.asyncio
    async def test_missing_credential_yields_no_client(self, dispatcher):
        body = await _call(dispatcher, {
            "jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "whoami"},
        }, _session(api_key=None))
        seen = json.loads(body["result"]["content"][0]["text"])
        assert seen["has_client"] is False

    def test_context_is_fresh_per_call(self, dispatcher):
        session = _session()
        first = dispatcher.context_for(session)
        second = dispatcher.context_for(session)
        assert first is not second
        assert first.client is not second.client
        assert first.client.api_key == "key"
