import logging

import pytest

from core.registry import ToolDescriptor, ToolRegistry
from toolserver.server import ToolServer
from toolserver.tools import WeatherInput


FORECAST = {"temperature": 18, "condition": "clear"}


async def fake_weather(arguments, context):
    return dict(FORECAST)


@pytest.fixture
def logger():
    return logging.getLogger("tests.toolserver")


@pytest.fixture
def weather_registry():
    return ToolRegistry(
        [
            ToolDescriptor(
                name="weatherTool",
                description="Get current weather for a location",
                input_schema=WeatherInput,
                handler=fake_weather,
            )
        ]
    )


@pytest.fixture
def server(weather_registry, logger):
    return ToolServer(
        registry=weather_registry,
        logger=logger,
        name="Weather Tool Server",
        version="1.0.2",
    )
