import logging
from typing import Any, Dict, List, Optional

from core.dispatcher import Dispatcher
from core.formatting import ResponseEnvelope, format_outcome
from core.outcomes import ToolRequest
from core.registry import ToolRegistry
from toolserver.config import Settings
from toolserver.tools import build_registry


class ToolServer:
    """
    Tool server independent of any transport.
    Channels (stdio, HTTP) hand it one call at a time
    and ship the envelope back.
    """

    def __init__(
        self,
        *,
        registry: ToolRegistry,
        logger: logging.Logger,
        name: str,
        version: str,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.logger = logger
        self.name = name
        self.version = version
        self.dispatcher = Dispatcher(registry, logger=logger, timeout=timeout)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.schema() for tool in self.registry.list_tools()]

    async def call_tool(
        self,
        name: str,
        arguments: Any = None,
        request_id: Any = None,
    ) -> ResponseEnvelope:
        outcome = await self.dispatcher.dispatch(
            ToolRequest(tool_name=name, raw_arguments=arguments, request_id=request_id)
        )
        return format_outcome(outcome)


def build_server(settings: Settings, *, logger: logging.Logger) -> ToolServer:
    return ToolServer(
        registry=build_registry(weather_http_timeout=settings.weather_http_timeout),
        logger=logger,
        name=settings.server_name,
        version=settings.server_version,
        timeout=settings.tool_timeout,
    )
