from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request

from api.schemas import ToolCallResponse, ToolList
from toolserver.server import ToolServer

router = APIRouter(prefix="/mcp", tags=["mcp"])


def get_server(request: Request) -> ToolServer:
    return request.app.state.server


@router.get("/tools", response_model=ToolList)
def list_tools(server: ToolServer = Depends(get_server)):
    return {"tools": server.list_tools()}


@router.post(
    "/call/{tool_name}",
    response_model=ToolCallResponse,
    response_model_by_alias=True,
)
async def call_tool(
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    server: ToolServer = Depends(get_server),
):
    envelope = await server.call_tool(tool_name, arguments)
    return envelope.to_dict()
