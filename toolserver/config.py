import os
from dataclasses import dataclass
from typing import Optional


def env(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def _float(key: str, default: Optional[str]) -> Optional[float]:
    raw = env(key, default)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    server_name: str = "Weather Tool Server"
    server_version: str = "1.0.2"
    log_level: str = "info"

    # seconds; None keeps a hung handler waiting forever
    tool_timeout: Optional[float] = None

    http_host: str = "127.0.0.1"
    http_port: int = 8000

    weather_http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        port = _float("HTTP_PORT", str(defaults.http_port))
        return cls(
            server_name=env("SERVER_NAME", defaults.server_name),
            server_version=env("SERVER_VERSION", defaults.server_version),
            log_level=env("LOG_LEVEL", defaults.log_level).lower(),
            tool_timeout=_float("TOOL_TIMEOUT_SECONDS", None),
            http_host=env("HTTP_HOST", defaults.http_host),
            http_port=int(port),
            weather_http_timeout=_float(
                "WEATHER_HTTP_TIMEOUT", str(defaults.weather_http_timeout)
            ),
        )
