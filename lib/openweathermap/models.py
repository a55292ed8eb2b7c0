"""
Data models for OpenWeatherMap API client

This module defines location queries, the weather snapshot built from a
current-weather response and the typed fetch outcome, dood!
All models are immutable once constructed.
"""

import datetime
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, TypeAlias, Union

ICON_URL_TEMPLATE = "https://openweathermap.org/img/wn/{icon}@2x.png"


# Location queries


@dataclass(frozen=True)
class ByCoordinates:
    """Query weather by WGS84 coordinates"""

    latitude: float  # -90..90
    longitude: float  # -180..180

    def isValid(self) -> bool:
        """Check that coordinates are inside WGS84 ranges"""
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


@dataclass(frozen=True)
class ByCityName:
    """Query weather by city name"""

    name: str

    def isValid(self) -> bool:
        return bool(self.name and self.name.strip())


LocationQuery: TypeAlias = Union[ByCoordinates, ByCityName]


# Weather data


@dataclass(frozen=True)
class WeatherSnapshot:
    """One current weather observation"""

    # https://openweathermap.org/current#fields_json

    city: str  # City name, as returned by provider
    country: str  # Country code (ISO 3166-1 alpha-2, e.g. "FR")
    description: str  # Weather condition description
    humidity: int  # Humidity percentage
    pressure: int  # Atmospheric pressure (hPa)
    icon: str  # Weather icon id (e.g. "03d")
    temperature: float  # Temperature in provider units
    observedAt: int  # Observation time (Unix timestamp, UTC)

    @property
    def iconUrl(self) -> str:
        return ICON_URL_TEMPLATE.format(icon=self.icon)

    @property
    def observedAtDateTime(self) -> datetime.datetime:
        return datetime.datetime.fromtimestamp(self.observedAt, tz=datetime.timezone.utc)


# Fetch outcome


class FetchErrorKind(StrEnum):
    INVALID_QUERY = "invalidQuery"
    """Empty city name or out of range coordinates, rejected before any I/O"""
    LOCATION_UNAVAILABLE = "locationUnavailable"
    """Permission denied or no coordinate fix"""
    NETWORK_ERROR = "networkError"
    """Transport failure (connect, timeout, DNS, IO)"""
    PROVIDER_ERROR = "providerError"
    """Provider answered with non-success status code"""
    MALFORMED_RESPONSE = "malformedResponse"
    """Response is not parseable or misses required fields"""


@dataclass(frozen=True)
class FetchError:
    """Typed failure of weather fetch"""

    kind: FetchErrorKind
    code: Optional[str] = None  # Provider status code, for PROVIDER_ERROR only
    message: str = ""  # Diagnostic message, not for end user


@dataclass(frozen=True)
class FetchSuccess:
    snapshot: WeatherSnapshot

    @property
    def isSuccess(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    error: FetchError

    @property
    def isSuccess(self) -> bool:
        return False

    @classmethod
    def of(cls, kind: FetchErrorKind, code: Optional[str] = None, message: str = "") -> "FetchFailure":
        """Shortcut for building failure from error fields"""
        return cls(FetchError(kind=kind, code=code, message=message))


FetchOutcome: TypeAlias = Union[FetchSuccess, FetchFailure]
