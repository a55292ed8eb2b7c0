"""
OpenWeatherMap Async Client

This module provides the OpenWeatherMapClient class which fetches current
weather for a location query and turns the provider response into a typed
FetchOutcome. No exception leaves fetch(), dood!
"""

import json
import logging
import math
from typing import Any, Dict, Optional, Tuple, Union

import httpx

from .models import (
    ByCityName,
    ByCoordinates,
    FetchErrorKind,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    LocationQuery,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)


class MalformedFieldError(ValueError):
    """Required response field is absent or has wrong shape"""


class OpenWeatherMapClient:
    """
    Async client for OpenWeatherMap current weather API

    Creates a new HTTP session for each request, there is no caching here:
    every fetch() goes to the provider.

    Example usage:
        client = OpenWeatherMapClient(apiKey="your_key", units="imperial")

        outcome = await client.fetch(ByCityName("Paris"))
        if outcome.isSuccess:
            print(f"Temperature: {outcome.snapshot.temperature}")
        else:
            print(f"Failed: {outcome.error.kind}")
    """

    WEATHER_API = "https://api.openweathermap.org/data/2.5/weather"
    SUCCESS_CODE = "200"

    def __init__(
        self,
        apiKey: str,
        units: str = "imperial",
        requestTimeout: int = 10,
        language: Optional[str] = None,
    ):
        """
        Initialize OpenWeatherMap client

        Args:
            apiKey: OpenWeatherMap API key
            units: Unit system ("standard", "metric" or "imperial"), fixed for client lifetime
            requestTimeout: HTTP request timeout (seconds)
            language: Optional language for weather descriptions
        """
        self.apiKey = apiKey
        self.units = units
        self.requestTimeout = requestTimeout
        self.language = language

    def buildParams(self, query: LocationQuery) -> Dict[str, Any]:
        """
        Build query parameters for given location query

        Args:
            query: ByCityName or ByCoordinates query

        Returns:
            Dict of query parameters, including api key and units
        """
        params: Dict[str, Any] = {}
        if isinstance(query, ByCityName):
            params["q"] = query.name.strip()
        else:
            params["lat"] = query.latitude
            params["lon"] = query.longitude

        params["appid"] = self.apiKey
        params["units"] = self.units
        if self.language:
            params["lang"] = self.language
        return params

    async def fetch(self, query: LocationQuery) -> FetchOutcome:
        """
        Fetch current weather for location query

        Uses: https://api.openweathermap.org/data/2.5/weather

        Args:
            query: Location to fetch weather for

        Returns:
            FetchSuccess with WeatherSnapshot, or FetchFailure with one of:
            - INVALID_QUERY: blank city name or coordinates out of range (no request is made)
            - NETWORK_ERROR: request could not be completed
            - PROVIDER_ERROR: provider reported non-success status code
            - MALFORMED_RESPONSE: response is not JSON or lacks required fields
        """
        if not query.isValid():
            logger.warning(f"Refusing to fetch weather for invalid query: {query}")
            return FetchFailure.of(FetchErrorKind.INVALID_QUERY, message=f"Invalid query: {query!r}")

        response = await self._makeRequest(self.buildParams(query))
        if isinstance(response, FetchFailure):
            return response

        statusCode, body = response
        outcome = self._parseResponse(statusCode, body)
        if outcome.isSuccess:
            logger.debug(f"Got weather for {query}: {outcome}")
        return outcome

    def _parseResponse(self, statusCode: int, body: str) -> FetchOutcome:
        """
        Validate provider response and build WeatherSnapshot from it

        Args:
            statusCode: HTTP status code
            body: Response body text

        Returns:
            FetchOutcome for this response
        """
        try:
            data = json.loads(body)
        except ValueError as e:
            if statusCode != 200:
                logger.warning(f"Provider returned HTTP {statusCode} with unparseable body")
                return FetchFailure.of(FetchErrorKind.PROVIDER_ERROR, code=str(statusCode))
            logger.error(f"Failed to parse JSON response: {e}")
            return FetchFailure.of(FetchErrorKind.MALFORMED_RESPONSE, message=f"Invalid JSON: {e}")

        if not isinstance(data, dict):
            if statusCode != 200:
                return FetchFailure.of(FetchErrorKind.PROVIDER_ERROR, code=str(statusCode))
            logger.error(f"Unexpected JSON response type: {type(data).__name__}")
            return FetchFailure.of(FetchErrorKind.MALFORMED_RESPONSE, message="Response is not JSON object")

        code = _normalizeCode(data.get("cod"))
        if code is None:
            if statusCode != 200:
                logger.warning(f"Provider returned HTTP {statusCode} without status code field")
                return FetchFailure.of(FetchErrorKind.PROVIDER_ERROR, code=str(statusCode))
            logger.error("Response has no status code field")
            return FetchFailure.of(FetchErrorKind.MALFORMED_RESPONSE, message="Missing 'cod' field")

        if code != self.SUCCESS_CODE:
            message = str(data.get("message", ""))
            logger.warning(f"Provider returned error code {code}: {message}")
            return FetchFailure.of(FetchErrorKind.PROVIDER_ERROR, code=code, message=message)

        if statusCode != 200:
            logger.warning(f"Provider returned HTTP {statusCode} with success status code field")
            return FetchFailure.of(FetchErrorKind.PROVIDER_ERROR, code=str(statusCode))

        try:
            snapshot = self._buildSnapshot(data)
        except MalformedFieldError as e:
            logger.error(f"Malformed weather response: {e}")
            return FetchFailure.of(FetchErrorKind.MALFORMED_RESPONSE, message=str(e))

        return FetchSuccess(snapshot)

    def _buildSnapshot(self, data: Dict[str, Any]) -> WeatherSnapshot:
        """
        Extract and type-check every WeatherSnapshot field

        Raises:
            MalformedFieldError: if any required field is absent or of wrong type
        """
        sysData = _requireDict(data, "sys")
        mainData = _requireDict(data, "main")

        weatherList = data.get("weather")
        if not isinstance(weatherList, list) or not weatherList:
            raise MalformedFieldError("'weather' must be non-empty list")
        weatherInfo = weatherList[0]
        if not isinstance(weatherInfo, dict):
            raise MalformedFieldError("'weather[0]' must be object")

        return WeatherSnapshot(
            city=_requireStr(data, "name", "name"),
            country=_requireStr(sysData, "country", "sys.country"),
            description=_requireStr(weatherInfo, "description", "weather[0].description"),
            humidity=_requireInt(mainData, "humidity", "main.humidity"),
            pressure=_requireInt(mainData, "pressure", "main.pressure"),
            icon=_requireStr(weatherInfo, "icon", "weather[0].icon"),
            temperature=float(_requireNumber(mainData, "temp", "main.temp")),
            observedAt=_requireInt(data, "dt", "dt"),
        )

    async def _makeRequest(self, params: Dict[str, Any]) -> Union[Tuple[int, str], FetchFailure]:
        """
        Make HTTP request to OpenWeatherMap API

        Creates a new session for each request.

        Args:
            params: Query parameters (with api key)

        Returns:
            Tuple of (HTTP status code, response text) or FetchFailure with NETWORK_ERROR
        """
        try:
            logger.debug(f"Making request to {self.WEATHER_API} with q/lat/lon: {_safeParams(params)}")

            # Create new session for each request
            async with httpx.AsyncClient(timeout=self.requestTimeout) as session:
                response = await session.get(self.WEATHER_API, params=params)
                body = response.text
                logger.debug(f"API request finished: {response.status_code}")
                return response.status_code, body

        except httpx.TimeoutException as e:
            logger.error("Request timeout")
            return FetchFailure.of(FetchErrorKind.NETWORK_ERROR, message=f"Timeout: {e}")
        except httpx.HTTPError as e:
            logger.error(f"Network error: {e}")
            return FetchFailure.of(FetchErrorKind.NETWORK_ERROR, message=str(e))
        except (UnicodeDecodeError, LookupError) as e:
            logger.error(f"Failed to decode response body: {e}")
            return FetchFailure.of(FetchErrorKind.NETWORK_ERROR, message=f"Undecodable body: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during API request: {e}")
            return FetchFailure.of(FetchErrorKind.NETWORK_ERROR, message=f"Unexpected error: {e}")


def _safeParams(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if k != "appid"}


def _normalizeCode(value: Any) -> Optional[str]:
    """Provider sends cod either as int (200) or as string ("404")"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _requireDict(container: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        raise MalformedFieldError(f"'{key}' must be object, got {type(value).__name__}")
    return value


def _requireStr(container: Dict[str, Any], key: str, path: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise MalformedFieldError(f"'{path}' must be string, got {type(value).__name__}")
    return value


def _requireNumber(container: Dict[str, Any], key: str, path: str) -> Union[int, float]:
    value = container.get(key)
    if isinstance(value, bool) or value is None:
        raise MalformedFieldError(f"'{path}' must be number, got {type(value).__name__}")

    number: Union[int, float]
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            try:
                number = float(value.strip())
            except ValueError:
                raise MalformedFieldError(f"'{path}' is not numeric: {value!r}")
    else:
        raise MalformedFieldError(f"'{path}' must be number, got {type(value).__name__}")

    if isinstance(number, float) and not math.isfinite(number):
        raise MalformedFieldError(f"'{path}' is not finite: {value!r}")
    return number


def _requireInt(container: Dict[str, Any], key: str, path: str) -> int:
    number = _requireNumber(container, key, path)
    if isinstance(number, int):
        return number
    return int(round(number))
