import io
import json
import logging

import pytest

from toolserver.log_sink import ClientLogHandler
from toolserver.stdio import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    PROTOCOL_VERSION,
    StdioChannel,
)


def _lines(*messages):
    return io.StringIO("".join(json.dumps(m) + "\n" for m in messages))


def _read(stdout):
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_initialize_reports_server_info(server):
    channel = StdioChannel(server)
    response = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}
    )
    assert response["id"] == 1
    assert response["result"]["protocolVersion"] == PROTOCOL_VERSION
    assert response["result"]["serverInfo"] == {"name": "Weather Tool Server", "version": "1.0.2"}
    assert set(response["result"]["capabilities"]) == {"tools", "logging"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_initialize_echoes_client_protocol_version(server):
    channel = StdioChannel(server)
    response = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}}
    )
    assert response["result"]["protocolVersion"] == "2025-03-26"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tools_list(server):
    channel = StdioChannel(server)
    response = await channel.handle_message({"jsonrpc": "2.0", "id": "a", "method": "tools/list"})
    assert [t["name"] for t in response["result"]["tools"]] == ["weatherTool"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tools_call_returns_envelope(server):
    channel = StdioChannel(server)
    response = await channel.handle_message(
        {
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {"name": "weatherTool", "arguments": {"location": "Paris"}},
        }
    )
    assert response == {
        "jsonrpc": "2.0",
        "id": 2,
        "result": {
            "content": [{"type": "text", "text": '{"temperature":18,"condition":"clear"}'}],
            "isError": False,
        },
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tools_call_without_arguments_fails_validation(server):
    channel = StdioChannel(server)
    response = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "weatherTool"}}
    )
    assert response["result"]["isError"] is True
    assert response["result"]["content"][0]["text"] == "Invalid arguments: location: Required"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tools_call_requires_a_name(server):
    channel = StdioChannel(server)
    response = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {}}
    )
    assert response["error"]["code"] == INVALID_PARAMS


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_method_and_bad_messages(server):
    channel = StdioChannel(server)

    response = await channel.handle_message({"jsonrpc": "2.0", "id": 5, "method": "resources/list"})
    assert response["error"]["code"] == METHOD_NOT_FOUND

    response = await channel.handle_message([1, 2])
    assert response["error"]["code"] == INVALID_REQUEST
    assert response["id"] is None

    response = await channel.handle_line("{not json")
    assert response["error"]["code"] == PARSE_ERROR


@pytest.mark.unit
@pytest.mark.asyncio
async def test_notifications_get_no_reply(server):
    channel = StdioChannel(server)
    assert await channel.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert await channel.handle_message({"jsonrpc": "2.0", "method": "ping"}) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_level_validates_level(server):
    handler = ClientLogHandler()
    channel = StdioChannel(server, log_handler=handler)

    ok = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 6, "method": "logging/setLevel", "params": {"level": "error"}}
    )
    assert ok["result"] == {}
    assert handler.level == logging.ERROR

    bad = await channel.handle_message(
        {"jsonrpc": "2.0", "id": 7, "method": "logging/setLevel", "params": {"level": "loud"}}
    )
    assert bad["error"]["code"] == INVALID_PARAMS


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_answers_every_request_once(server):
    stdin = _lines(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call",
         "params": {"name": "weatherTool", "arguments": {"location": "Paris"}}},
        {"jsonrpc": "2.0", "id": 3, "method": "tools/call",
         "params": {"name": "doesNotExist", "arguments": {}}},
    )
    stdout = io.StringIO()

    await StdioChannel(server, stdin=stdin, stdout=stdout).run()

    responses = {m["id"]: m for m in _read(stdout)}
    assert sorted(responses) == [1, 2, 3]
    assert responses[2]["result"]["isError"] is False
    assert responses[3]["result"]["content"][0]["text"] == "Unknown tool: doesNotExist"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_forwards_logs_to_client(server, logger):
    handler = ClientLogHandler()
    logger.addHandler(handler)
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    try:
        stdin = _lines(
            {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
             "params": {"name": "doesNotExist", "arguments": {}}},
        )
        stdout = io.StringIO()
        await StdioChannel(server, log_handler=handler, stdin=stdin, stdout=stdout).run()
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)

    notifications = [m for m in _read(stdout) if m.get("method") == "notifications/message"]
    warnings = [n["params"] for n in notifications if n["params"]["level"] == "warning"]
    assert any(w["data"]["message"] == "Unknown tool requested: doesNotExist" for w in warnings)
    assert any(m.get("id") == 1 for m in _read(stdout))
