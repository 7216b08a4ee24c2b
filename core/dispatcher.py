import asyncio
import inspect
import logging
from typing import Any, Optional, Set

from pydantic_core import PydanticSerializationError, to_jsonable_python

from core.instrumentation import CallToken, Instrumentation
from core.outcomes import (
    DispatchOutcome,
    HandlerFailed,
    Invalid,
    Success,
    ToolContext,
    ToolRequest,
    UnknownTool,
    ValidationFailed,
)
from core.registry import ToolDescriptor, ToolRegistry
from core.validation import validate


TIMEOUT_DESCRIPTION = "timeout"


class DeadlineExceeded(Exception):
    pass


class Dispatcher:
    """
    Routes one tool call to its handler and classifies the result.

    Stateless between calls: the registry is read-only and every
    dispatch owns its request, validation result and outcome, so a
    host may run many dispatches concurrently on one instance.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        logger: logging.Logger,
        instrumentation: Optional[Instrumentation] = None,
        timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.logger = logger
        self.instrumentation = instrumentation or Instrumentation(logger)
        self.timeout = timeout
        self._abandoned: Set[asyncio.Task] = set()

    async def dispatch(self, request: ToolRequest) -> DispatchOutcome:
        token = self._start(request)
        outcome = await self._classify(request)
        self._end(token, outcome)
        return outcome

    async def _classify(self, request: ToolRequest) -> DispatchOutcome:
        tool = self.registry.lookup(request.tool_name)
        if tool is None:
            return UnknownTool(name=request.tool_name)

        result = validate(tool.input_schema, request.raw_arguments)
        if isinstance(result, Invalid):
            return ValidationFailed(errors=result.errors)

        return await self._invoke(tool, result.arguments)

    async def _invoke(self, tool: ToolDescriptor, arguments: Any) -> DispatchOutcome:
        try:
            value = await self._run_handler(tool, arguments)
            return Success(value=to_jsonable_python(value))
        except DeadlineExceeded:
            return HandlerFailed(description=TIMEOUT_DESCRIPTION)
        except PydanticSerializationError as exc:
            return HandlerFailed(description=f"Result is not serializable: {exc}")
        except Exception as exc:  # noqa: BLE001
            return HandlerFailed(description=describe_error(exc))

    async def _run_handler(self, tool: ToolDescriptor, arguments: Any) -> Any:
        if self.timeout is None:
            return await self._call(tool, arguments)

        # on expiry the handler keeps running; only its result is dropped
        task = asyncio.ensure_future(self._call(tool, arguments))
        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if task in done:
            return task.result()

        self._abandoned.add(task)
        task.add_done_callback(self._forget)
        raise DeadlineExceeded()

    async def _call(self, tool: ToolDescriptor, arguments: Any) -> Any:
        if inspect.iscoroutinefunction(tool.handler):
            return await tool.handler(arguments, ToolContext())

        # blocking handlers run in a worker thread so the loop stays free
        result = await asyncio.to_thread(tool.handler, arguments, ToolContext())
        if inspect.isawaitable(result):
            return await result
        return result

    def _forget(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.debug(
                "Abandoned tool call failed after timeout",
                exc_info=task.exception(),
            )

    # --------------------------------------------------
    # INSTRUMENTATION (isolated from the outcome)
    # --------------------------------------------------

    def _start(self, request: ToolRequest) -> Optional[CallToken]:
        try:
            return self.instrumentation.on_start(request.tool_name, request.request_id)
        except Exception:  # noqa: BLE001
            return None

    def _end(self, token: Optional[CallToken], outcome: DispatchOutcome) -> None:
        if token is None:
            return
        try:
            self.instrumentation.on_end(token, outcome)
        except Exception:  # noqa: BLE001
            pass


def describe_error(exc: BaseException) -> str:
    message = str(exc)
    return message if message else repr(exc)
