"""
OpenWeatherMap Async Client Library

This module provides an async client for the OpenWeatherMap current weather API.
Supports querying by city name or by coordinates and returns typed outcomes
instead of raising.

Example usage:
    from lib.openweathermap import ByCityName, OpenWeatherMapClient

    client = OpenWeatherMapClient(apiKey="your_api_key", units="metric")

    outcome = await client.fetch(ByCityName("Moscow"))
    if outcome.isSuccess:
        print(f"Temperature: {outcome.snapshot.temperature}°C")
    else:
        print(f"Failed with {outcome.error.kind}")
"""

from .client import OpenWeatherMapClient
from .models import (
    ByCityName,
    ByCoordinates,
    FetchError,
    FetchErrorKind,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    LocationQuery,
    WeatherSnapshot,
)

__all__ = [
    "ByCityName",
    "ByCoordinates",
    "LocationQuery",
    "WeatherSnapshot",
    "FetchErrorKind",
    "FetchError",
    "FetchSuccess",
    "FetchFailure",
    "FetchOutcome",
    "OpenWeatherMapClient",
]
