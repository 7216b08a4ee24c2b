from typing import Any, List, Tuple, Type, Union

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from core.outcomes import FieldError, Invalid, Valid, ValidationResult


# pydantic error type -> caller-facing message override
MESSAGES = {
    "missing": "Required",
}


def validate(schema: Type[BaseModel], raw_arguments: Any) -> ValidationResult:
    """
    Check raw call arguments against a tool's input model.

    Arguments are checked the way they travel, as JSON: strict about
    numbers and booleans, but enums, dates and UUIDs are read from
    their string forms.

    Every violation is collected in one pass, ordered by field declaration.
    Fields the model does not declare are ignored (open object schema).
    """
    if raw_arguments is None:
        raw_arguments = {}

    try:
        payload = to_json(raw_arguments)
    except PydanticSerializationError as exc:
        return Invalid(errors=(FieldError(path=(), message=f"Arguments are not JSON-compatible: {exc}"),))

    try:
        arguments = schema.model_validate_json(payload, strict=True)
    except ValidationError as exc:
        return Invalid(
            errors=tuple(
                FieldError(
                    path=field_path(error["loc"], raw_arguments, missing=error["type"] == "missing"),
                    message=MESSAGES.get(error["type"], error["msg"]),
                )
                for error in exc.errors(include_url=False)
            )
        )

    return Valid(arguments=arguments)


def field_path(
    loc: Tuple[Union[str, int], ...],
    raw_arguments: Any,
    *,
    missing: bool = False,
) -> Tuple[Union[str, int], ...]:
    """
    Keep only the loc segments that address the caller's input.

    pydantic inserts union member tags (`int`, `str`, model names) into
    `loc`; those never appear in the input and are dropped. A missing
    field is the one segment allowed to be absent, and only at the end.
    """
    path: List[Union[str, int]] = []
    current = raw_arguments
    for i, segment in enumerate(loc):
        if isinstance(current, dict) and segment in current:
            path.append(segment)
            current = current[segment]
        elif (
            isinstance(current, (list, tuple))
            and isinstance(segment, int)
            and 0 <= segment < len(current)
        ):
            path.append(segment)
            current = current[segment]
        elif missing and i == len(loc) - 1:
            path.append(segment)
    return tuple(path)
