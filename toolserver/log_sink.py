import logging
import sys
from typing import Any, Callable, Dict, Optional


LOGGER_NAME = "toolserver"

# client-facing level names (syslog style) -> stdlib levels
CLIENT_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO + 5,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL + 5,
    "emergency": logging.CRITICAL + 10,
}


def client_level_name(levelno: int) -> str:
    name = "debug"
    for candidate, threshold in CLIENT_LEVELS.items():
        if levelno >= threshold:
            name = candidate
    return name


def setup_logging(level: str = "info") -> logging.Logger:
    """
    Route all records to stderr.
    stdout stays reserved for protocol messages.
    """
    numeric = getattr(logging, level.strip().upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    logging.basicConfig(level=numeric, handlers=[handler], force=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric)
    return logger


class ClientLogHandler(logging.Handler):
    """
    Forwards log records to the connected client
    as `notifications/message` payloads.

    Until a sender is attached, records are dropped.
    """

    def __init__(self, level: int = logging.DEBUG):
        super().__init__(level)
        self._send: Optional[Callable[[Dict[str, Any]], None]] = None

    def attach(self, send: Callable[[Dict[str, Any]], None]) -> None:
        self._send = send

    def detach(self) -> None:
        self._send = None

    def set_client_level(self, name: str) -> None:
        if name not in CLIENT_LEVELS:
            raise ValueError(f"Unknown log level: {name}")
        self.setLevel(CLIENT_LEVELS[name])

    def emit(self, record: logging.LogRecord) -> None:
        if self._send is None:
            return
        try:
            self._send(
                {
                    "jsonrpc": "2.0",
                    "method": "notifications/message",
                    "params": {
                        "level": client_level_name(record.levelno),
                        "logger": record.name,
                        "data": self._data(record),
                    },
                }
            )
        except Exception:  # noqa: BLE001
            self.handleError(record)

    def _data(self, record: logging.LogRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": record.getMessage()}
        attributes = getattr(record, "attributes", None)
        if isinstance(attributes, dict):
            data.update(attributes)
        if record.exc_info and record.exc_info[1] is not None:
            data["error"] = str(record.exc_info[1])
        return data
