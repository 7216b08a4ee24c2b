import argparse
import asyncio
import dataclasses
import sys
from typing import List, Optional

from toolserver.config import Settings
from toolserver.log_sink import CLIENT_LEVELS, ClientLogHandler, setup_logging
from toolserver.server import build_server
from toolserver.stdio import run_stdio


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weather-tool-server",
        description="Serve schema-validated tools over stdio (JSON-RPC) or HTTP.",
    )
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio")
    parser.add_argument("--host", default=None, help="HTTP bind host (http transport).")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (http transport).")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    overrides = {
        "log_level": args.log_level,
        "http_host": args.host,
        "http_port": args.port,
    }
    settings = dataclasses.replace(
        settings, **{k: v for k, v in overrides.items() if v is not None}
    )

    logger = setup_logging(settings.log_level)
    server = build_server(settings, logger=logger)

    if args.transport == "http":
        import uvicorn

        from api.main import create_app

        uvicorn.run(create_app(server), host=settings.http_host, port=settings.http_port)
        return 0

    client_handler = ClientLogHandler()
    if settings.log_level in CLIENT_LEVELS:
        client_handler.set_client_level(settings.log_level)
    logger.addHandler(client_handler)

    try:
        asyncio.run(run_stdio(server, client_handler))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        logger.error("Failed to start server", exc_info=exc)
        return 1
    finally:
        logger.removeHandler(client_handler)
    return 0


if __name__ == "__main__":
    sys.exit(main())
