"""
Location: models for stored location and geolocation results
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias, Union


@dataclass(frozen=True)
class UseDeviceLocation:
    """Resolve location via live device coordinates on each refresh"""


@dataclass(frozen=True)
class NamedCity:
    """Literal city name chosen by user"""

    name: str


StoredLocation: TypeAlias = Union[UseDeviceLocation, NamedCity]


@dataclass(frozen=True)
class CoordinateFix:
    """Single geolocation reading"""

    latitude: float
    longitude: float

    def isValid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


class GeolocationStatus(StrEnum):
    PERMISSION_DENIED = "permissionDenied"
    """User denied location access"""
    UNAVAILABLE = "unavailable"
    """No fix could be obtained"""


GeolocationResult: TypeAlias = Union[CoordinateFix, GeolocationStatus]
