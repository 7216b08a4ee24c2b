import asyncio
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from core.outcomes import ToolContext
from core.registry import ToolDescriptor, ToolRegistry


GEOCODING_API = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_API = "https://api.open-meteo.com/v1/forecast"

CURRENT_FIELDS = ",".join(
    [
        "temperature_2m",
        "apparent_temperature",
        "relative_humidity_2m",
        "wind_speed_10m",
        "wind_gusts_10m",
        "weather_code",
    ]
)

# WMO weather interpretation codes
CONDITIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int) -> str:
    return CONDITIONS.get(code, "Unknown")


# -------- WEATHER --------

class WeatherInput(BaseModel):
    location: str = Field(description="City name")


class WeatherClient:
    """
    Blocking Open-Meteo client.
    Tool handlers run it in a worker thread.
    """

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def current(self, location: str) -> Dict[str, Any]:
        place = self._geocode(location)

        r = self.session.get(
            FORECAST_API,
            params={
                "latitude": place["latitude"],
                "longitude": place["longitude"],
                "current": CURRENT_FIELDS,
            },
            timeout=self.timeout,
        )
        r.raise_for_status()
        current = r.json()["current"]

        return {
            "temperature": current["temperature_2m"],
            "feelsLike": current["apparent_temperature"],
            "humidity": current["relative_humidity_2m"],
            "windSpeed": current["wind_speed_10m"],
            "windGust": current["wind_gusts_10m"],
            "conditions": describe_weather_code(current["weather_code"]),
            "location": place["name"],
        }

    def _geocode(self, location: str) -> Dict[str, Any]:
        r = self.session.get(
            GEOCODING_API,
            params={"name": location, "count": 1},
            timeout=self.timeout,
        )
        r.raise_for_status()
        results = r.json().get("results") or []
        if not results:
            raise ValueError(f"Location '{location}' not found")
        return results[0]


class WeatherTool:
    name = "weatherTool"
    description = "Get current weather for a location"

    def __init__(self, client: WeatherClient):
        self.client = client

    async def execute(self, arguments: WeatherInput, context: ToolContext) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.current, arguments.location)

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=WeatherInput,
            handler=self.execute,
        )


# -------- REGISTRY --------

def build_registry(*, weather_http_timeout: float = 30.0) -> ToolRegistry:
    tools: List[ToolDescriptor] = [
        WeatherTool(WeatherClient(timeout=weather_http_timeout)).descriptor(),
    ]
    return ToolRegistry(tools)
