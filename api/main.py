from typing import Optional

from fastapi import FastAPI

from api.mcp import router as mcp_router
from api.schemas import ServiceStatus
from toolserver.config import Settings
from toolserver.log_sink import setup_logging
from toolserver.server import ToolServer, build_server


def create_app(server: Optional[ToolServer] = None) -> FastAPI:
    if server is None:
        settings = Settings.from_env()
        server = build_server(settings, logger=setup_logging(settings.log_level))

    app = FastAPI(title=server.name, version=server.version)
    app.state.server = server
    app.include_router(mcp_router)

    @app.get("/", response_model=ServiceStatus)
    def root():
        return ServiceStatus(ok=True, service=server.name, version=server.version)

    return app
