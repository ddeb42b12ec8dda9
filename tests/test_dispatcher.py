import json

import pytest

from conftest import tool_call
from raworc_mcp.core.dispatcher import Dispatcher
from raworc_mcp.core.errors import ErrorCode
from raworc_mcp.core.mcp_types import MCP_PROTOCOL_VERSION, SERVER_NAME
from raworc_mcp.tools.catalog import registry
from raworc_mcp.tools.registry import Param, ParamType, ToolRegistry, text_result


@pytest.mark.asyncio
async def test_initialize_reports_protocol_and_tool_capability(dispatcher, backend):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 0, "method": "initialize", "params": {}})

    result = response["result"]
    assert response["id"] == 0
    assert result["protocolVersion"] == MCP_PROTOCOL_VERSION
    assert "tools" in result["capabilities"]
    assert result["serverInfo"]["name"] == SERVER_NAME
    assert backend.requests == []


@pytest.mark.asyncio
async def test_tools_list_is_local_and_stable(dispatcher, backend):
    first = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    second = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

    assert first["result"] == second["result"]
    assert backend.requests == []
    tools = {t["name"]: t for t in first["result"]["tools"]}
    assert len(tools) == len(registry)
    assert tools["send_message"]["inputSchema"]["required"] == ["session_id", "content"]
    assert "handler" not in tools["send_message"]


@pytest.mark.asyncio
async def test_health_check_scenario(dispatcher, backend):
    backend.on("GET", "health", text="OK - all systems nominal")

    response = await dispatcher.dispatch(tool_call("health_check", {}))

    assert response == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {"content": [{"type": "text", "text": "OK - all systems nominal"}]},
    }
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_valid_call_makes_exactly_one_backend_call(dispatcher, backend):
    backend.on("POST", "spaces/default/sessions/s-1/messages", json={"id": "m-1", "content": "hi"})

    response = await dispatcher.dispatch(tool_call("send_message", {"session_id": "s-1", "content": "hi"}, "abc"))

    assert response["id"] == "abc"
    assert "error" not in response
    assert json.loads(response["result"]["content"][0]["text"])["id"] == "m-1"
    assert backend.calls == [("POST", "spaces/default/sessions/s-1/messages")]


@pytest.mark.asyncio
async def test_missing_required_argument_is_invalid_params(dispatcher, backend):
    response = await dispatcher.dispatch(tool_call("send_message", {"content": "hi"}, 7))

    assert response["id"] == 7
    assert "result" not in response
    assert response["error"]["code"] == ErrorCode.INVALID_PARAMS
    assert response["error"]["message"] == "missing required parameter: session_id"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_wrong_type_is_invalid_params(dispatcher, backend):
    response = await dispatcher.dispatch(tool_call("get_messages", {"session_id": "s-1", "limit": "ten"}))

    assert response["error"]["code"] == ErrorCode.INVALID_PARAMS
    assert response["error"]["data"] == {"parameter": "limit", "expected": "integer"}
    assert backend.requests == []


@pytest.mark.asyncio
async def test_unknown_tool_is_not_found_without_backend_call(dispatcher, backend):
    response = await dispatcher.dispatch(tool_call("Health_Check", {}))

    assert response["error"]["code"] == ErrorCode.METHOD_NOT_FOUND
    assert "Health_Check" in response["error"]["message"]
    assert backend.requests == []


@pytest.mark.asyncio
async def test_unknown_method(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})

    assert response["id"] == 3
    assert response["error"]["code"] == ErrorCode.METHOD_NOT_FOUND


@pytest.mark.asyncio
async def test_backend_401_is_a_tool_failure(dispatcher, backend):
    backend.on("GET", "spaces", status=401, json={"error": {"message": "token expired"}})

    response = await dispatcher.dispatch(tool_call("list_spaces", {}))

    assert "error" not in response
    result = response["result"]
    assert result["isError"] is True
    payload = json.loads(result["content"][0]["text"])
    assert payload["error"]["status"] == 401
    assert payload["error"]["code"] == ErrorCode.BACKEND_UNAUTHORIZED
    assert payload["error"]["message"] == "token expired"


@pytest.mark.asyncio
async def test_success_result_has_no_error_flag(dispatcher, backend):
    backend.on("GET", "version", json={"version": "0.4.0", "api": "v0"})

    response = await dispatcher.dispatch(tool_call("get_version"))

    assert "isError" not in response["result"]


@pytest.mark.asyncio
async def test_notifications_get_no_response(dispatcher, backend):
    assert await dispatcher.dispatch({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert await dispatcher.dispatch({"jsonrpc": "2.0", "method": "unknown/thing"}) is None

    backend.on("GET", "health", text="OK")
    notification = tool_call("health_check", {})
    del notification["id"]
    assert await dispatcher.dispatch(notification) is None


@pytest.mark.asyncio
async def test_notification_method_sent_with_id_is_not_found(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 5, "method": "notifications/initialized"})

    assert response["id"] == 5
    assert "result" not in response
    assert response["error"]["code"] == ErrorCode.METHOD_NOT_FOUND


@pytest.mark.asyncio
async def test_ping(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 9, "method": "ping"})
    assert response == {"jsonrpc": "2.0", "id": 9, "result": {}}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        {"id": 1, "method": "ping"},
        {"jsonrpc": "1.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": "x"},
    ],
)
async def test_invalid_request_keeps_id(dispatcher, message):
    response = await dispatcher.dispatch(message)

    assert response["id"] == 1
    assert response["error"]["code"] == ErrorCode.INVALID_REQUEST


@pytest.mark.asyncio
async def test_non_object_message_is_invalid_request(dispatcher):
    response = await dispatcher.dispatch([1, 2, 3])

    assert response["id"] is None
    assert response["error"]["code"] == ErrorCode.INVALID_REQUEST


@pytest.mark.asyncio
async def test_tools_call_without_name(dispatcher):
    response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {}})

    assert response["error"]["code"] == ErrorCode.INVALID_PARAMS
    assert response["error"]["message"] == "missing required parameter: name"


@pytest.mark.asyncio
async def test_tools_call_with_non_object_arguments(dispatcher):
    response = await dispatcher.dispatch(tool_call("health_check", ["x"]))

    assert response["error"]["code"] == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_unexpected_handler_failure_is_sanitized_internal_error(client):
    local = ToolRegistry()

    @local.register(name="explode", description="Always fails")
    async def explode(client):
        raise KeyError("secret internal detail")

    dispatcher = Dispatcher(local.freeze(), client)
    response = await dispatcher.dispatch(tool_call("explode", {}))

    assert response["error"] == {"code": ErrorCode.INTERNAL_ERROR, "message": "Internal error"}


@pytest.mark.asyncio
async def test_handler_receives_validated_defaults(client):
    local = ToolRegistry()
    seen = {}

    @local.register(
        name="echo",
        description="Echo arguments",
        params=[Param(name="count", type=ParamType.INTEGER, description="n", default=3)],
    )
    async def echo(client, **kwargs):
        seen.update(kwargs)
        return text_result("done")

    dispatcher = Dispatcher(local.freeze(), client)
    response = await dispatcher.dispatch(tool_call("echo", {"extra": True}))

    assert response["result"]["content"][0]["text"] == "done"
    assert seen == {"count": 3}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,arguments",
    [
        ("terminate_session", {"session_id": ""}),
        ("delete_space", {"name": ""}),
        ("delete_secret", {"space": "lab", "key": ""}),
        ("delete_agent", {"space": "", "agent_name": "coder"}),
        ("delete_role", {"id": ""}),
        ("get_build", {"space": "lab", "build_id": ""}),
    ],
)
async def test_empty_path_argument_never_reaches_backend(dispatcher, backend, name, arguments):
    response = await dispatcher.dispatch(tool_call(name, arguments))

    assert response["error"]["code"] == ErrorCode.INVALID_PARAMS
    assert "non-empty string" in response["error"]["message"]
    assert backend.requests == []
