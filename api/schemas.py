from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class ToolInfo(BaseModel):
    name: str
    description: str
    inputSchema: Dict[str, Any]


class ToolList(BaseModel):
    tools: List[ToolInfo]


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolCallResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: bool = Field(default=False, alias="isError")


class ServiceStatus(BaseModel):
    ok: bool
    service: str
    version: str
