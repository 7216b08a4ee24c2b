"""JSON-RPC 2.0 channel over stdin/stdout.

One JSON message per line in each direction. stdout carries protocol
messages only; logs go to stderr and, once the client is connected,
to the client as `notifications/message`.

    {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
    {"jsonrpc": "2.0", "id": 2, "method": "tools/call",
     "params": {"name": "weatherTool", "arguments": {"location": "Paris"}}}
"""

import asyncio
import json
import sys
from typing import Any, Dict, Optional, Set, TextIO

from toolserver.log_sink import ClientLogHandler
from toolserver.server import ToolServer


PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class StdioChannel:
    def __init__(
        self,
        server: ToolServer,
        *,
        log_handler: Optional[ClientLogHandler] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ):
        self.server = server
        self.log_handler = log_handler
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._in_flight: Set[asyncio.Task] = set()

        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "logging/setLevel": self._set_level,
        }

    # --------------------------------------------------
    # LOOP
    # --------------------------------------------------

    async def run(self) -> None:
        if self.log_handler is not None:
            self.log_handler.attach(self.send)
        self.server.logger.info(f"Started {self.server.name}")
        try:
            while True:
                line = await asyncio.to_thread(self.stdin.readline)
                if not line:
                    break
                if not line.strip():
                    continue
                task = asyncio.create_task(self._serve(line))
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)

            if self._in_flight:
                await asyncio.gather(*self._in_flight)
        finally:
            if self.log_handler is not None:
                self.log_handler.detach()

    async def _serve(self, line: str) -> None:
        response = await self.handle_line(line)
        if response is not None:
            self.send(response)

    def send(self, payload: Dict[str, Any]) -> None:
        self.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        self.stdout.flush()

    # --------------------------------------------------
    # MESSAGES
    # --------------------------------------------------

    async def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            return _error(None, PARSE_ERROR, f"Parse error: {exc.msg}")
        return await self.handle_message(message)

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            rid = message.get("id") if isinstance(message, dict) else None
            return _error(rid, INVALID_REQUEST, "Invalid request")

        is_notification = "id" not in message
        rid = message.get("id")
        method = message["method"]

        handler = self._methods.get(method)
        if handler is None:
            if is_notification:
                return None
            return _error(rid, METHOD_NOT_FOUND, f"Method not found: {method}")

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return None if is_notification else _error(rid, INVALID_PARAMS, "params must be an object")

        try:
            result = await handler(params, rid)
        except JsonRpcError as exc:
            return None if is_notification else _error(rid, exc.code, exc.message)

        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": rid, "result": result}

    # --------------------------------------------------
    # METHODS
    # --------------------------------------------------

    async def _initialize(self, params: Dict[str, Any], rid: Any) -> Dict[str, Any]:
        version = params.get("protocolVersion")
        return {
            "protocolVersion": version if isinstance(version, str) else PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "logging": {}},
            "serverInfo": {"name": self.server.name, "version": self.server.version},
        }

    async def _ping(self, params: Dict[str, Any], rid: Any) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any], rid: Any) -> Dict[str, Any]:
        return {"tools": self.server.list_tools()}

    async def _call_tool(self, params: Dict[str, Any], rid: Any) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise JsonRpcError(INVALID_PARAMS, "params.name must be a string")
        envelope = await self.server.call_tool(name, params.get("arguments"), request_id=rid)
        return envelope.to_dict()

    async def _set_level(self, params: Dict[str, Any], rid: Any) -> Dict[str, Any]:
        if self.log_handler is None:
            return {}
        try:
            self.log_handler.set_client_level(str(params.get("level")))
        except ValueError as exc:
            raise JsonRpcError(INVALID_PARAMS, str(exc)) from None
        return {}


def _error(rid: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rid, "error": {"code": code, "message": message}}


async def run_stdio(server: ToolServer, log_handler: Optional[ClientLogHandler] = None) -> None:
    await StdioChannel(server, log_handler=log_handler).run()
