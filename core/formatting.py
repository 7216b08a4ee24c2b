import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from core.outcomes import (
    DispatchOutcome,
    HandlerFailed,
    Success,
    UnknownTool,
    ValidationFailed,
)


@dataclass(frozen=True)
class TextContent:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ResponseEnvelope:
    content: List[TextContent] = field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [
                {"type": block.type, "text": block.text}
                for block in self.content
            ],
            "isError": self.is_error,
        }


def serialize_result(value: Any) -> str:
    """
    Compact, key-order preserving JSON text of a handler result.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def format_outcome(outcome: DispatchOutcome) -> ResponseEnvelope:
    if isinstance(outcome, Success):
        return _envelope(serialize_result(outcome.value), is_error=False)

    if isinstance(outcome, UnknownTool):
        return _envelope(f"Unknown tool: {outcome.name}")

    if isinstance(outcome, ValidationFailed):
        details = ", ".join(
            f"{error.dotted_path}: {error.message}" for error in outcome.errors
        )
        return _envelope(f"Invalid arguments: {details}")

    if isinstance(outcome, HandlerFailed):
        return _envelope(f"Error: {outcome.description}")

    raise TypeError(f"Unsupported outcome: {outcome!r}")


def _envelope(text: str, *, is_error: bool = True) -> ResponseEnvelope:
    return ResponseEnvelope(content=[TextContent(text=text)], is_error=is_error)
