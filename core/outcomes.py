from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union

from pydantic import BaseModel


# --------------------------------------------------
# VALIDATION
# --------------------------------------------------

@dataclass(frozen=True)
class FieldError:
    path: Tuple[Union[str, int], ...]
    message: str

    @property
    def dotted_path(self) -> str:
        return ".".join(str(segment) for segment in self.path)


@dataclass(frozen=True)
class Valid:
    arguments: BaseModel


@dataclass(frozen=True)
class Invalid:
    errors: Tuple[FieldError, ...]


ValidationResult = Union[Valid, Invalid]


# --------------------------------------------------
# DISPATCH
# --------------------------------------------------

class OutcomeKind(Enum):
    SUCCESS = "success"
    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION_FAILED = "validation_failed"
    HANDLER_FAILED = "handler_failed"


@dataclass(frozen=True)
class ToolRequest:
    tool_name: str
    raw_arguments: Any = None
    request_id: Any = None


@dataclass(frozen=True)
class ToolContext:
    """
    Execution context handed to every tool handler.
    Intentionally empty for now; new fields get type-checked at call sites.
    """


@dataclass(frozen=True)
class Success:
    value: Any
    kind = OutcomeKind.SUCCESS


@dataclass(frozen=True)
class UnknownTool:
    name: str
    kind = OutcomeKind.UNKNOWN_TOOL


@dataclass(frozen=True)
class ValidationFailed:
    errors: Tuple[FieldError, ...]
    kind = OutcomeKind.VALIDATION_FAILED


@dataclass(frozen=True)
class HandlerFailed:
    description: str
    kind = OutcomeKind.HANDLER_FAILED


DispatchOutcome = Union[Success, UnknownTool, ValidationFailed, HandlerFailed]
