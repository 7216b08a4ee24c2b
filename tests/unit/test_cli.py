from unittest.mock import patch

import pytest

from toolserver.cli import build_parser, main


@pytest.mark.unit
def test_parser_defaults_to_stdio():
    args = build_parser().parse_args([])
    assert args.transport == "stdio"
    assert args.port is None


@pytest.mark.unit
def test_http_transport_runs_uvicorn(monkeypatch):
    monkeypatch.delenv("HTTP_PORT", raising=False)
    with patch("uvicorn.run") as run:
        assert main(["--transport", "http", "--port", "9100"]) == 0

    app = run.call_args.args[0]
    assert app.state.server.registry.lookup("weatherTool") is not None
    assert run.call_args.kwargs["port"] == 9100


@pytest.mark.unit
def test_stdio_start_failure_exits_with_status_1():
    with patch("toolserver.cli.run_stdio", side_effect=OSError("stdin closed")):
        assert main(["--transport", "stdio"]) == 1
