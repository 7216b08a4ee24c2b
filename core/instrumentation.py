import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from core.outcomes import (
    DispatchOutcome,
    HandlerFailed,
    OutcomeKind,
    UnknownTool,
    ValidationFailed,
)


@dataclass(frozen=True)
class CallToken:
    tool_name: str
    request_id: Any
    started_at: float


@dataclass(frozen=True)
class CallRecord:
    tool_name: str
    request_id: Any
    kind: OutcomeKind
    duration_ms: float


# failures before the handler runs are the caller's fault
PRE_HANDLER_KINDS = {OutcomeKind.UNKNOWN_TOOL, OutcomeKind.VALIDATION_FAILED}


class Instrumentation:
    """
    Observes every tool call: one timing record and one
    outcome record per call, whatever the outcome.

    Purely observational. A failing log sink is swallowed here
    and never reaches the dispatch result.
    """

    def __init__(
        self,
        logger: logging.Logger,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.logger = logger
        self.clock = clock

    def on_start(self, tool_name: str, request_id: Any = None) -> CallToken:
        return CallToken(
            tool_name=tool_name,
            request_id=request_id,
            started_at=self.clock(),
        )

    def on_end(self, token: CallToken, outcome: DispatchOutcome) -> CallRecord:
        duration_ms = max(0.0, (self.clock() - token.started_at) * 1000.0)
        record = CallRecord(
            tool_name=token.tool_name,
            request_id=token.request_id,
            kind=outcome.kind,
            duration_ms=duration_ms,
        )
        self._emit_outcome(token, outcome, duration_ms)
        self._emit_timing(record)
        return record

    # --------------------------------------------------
    # LOG RECORDS
    # --------------------------------------------------

    def _emit_outcome(
        self,
        token: CallToken,
        outcome: DispatchOutcome,
        duration_ms: float,
    ) -> None:
        attributes: Dict[str, Any] = {
            "tool": token.tool_name,
            "duration": f"{duration_ms:.0f}ms",
        }

        if isinstance(outcome, UnknownTool):
            self._log(logging.WARNING, f"Unknown tool requested: {outcome.name}", attributes)
        elif isinstance(outcome, ValidationFailed):
            attributes["errors"] = [
                {"path": list(error.path), "message": error.message}
                for error in outcome.errors
            ]
            self._log(logging.WARNING, "Invalid tool arguments", attributes)
        elif isinstance(outcome, HandlerFailed):
            attributes["error"] = outcome.description
            self._log(logging.ERROR, f"Tool execution failed: {token.tool_name}", attributes)
        else:
            self._log(logging.DEBUG, "Tool execution completed", attributes)

    def _emit_timing(self, record: CallRecord) -> None:
        level = logging.WARNING if record.kind in PRE_HANDLER_KINDS else logging.DEBUG
        self._log(
            level,
            f"Tool call finished in {record.duration_ms:.1f}ms",
            {
                "tool": record.tool_name,
                "request_id": record.request_id,
                "outcome": record.kind.value,
                "duration_ms": round(record.duration_ms, 3),
            },
        )

    def _log(self, level: int, message: str, attributes: Dict[str, Any]) -> None:
        try:
            self.logger.log(level, message, extra={"attributes": attributes})
        except Exception:  # noqa: BLE001
            pass
