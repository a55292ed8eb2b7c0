"""
Location module: stored location, geolocation collaborators and query resolution
"""

from .geolocation import (
    GeolocationProviderInterface,
    IpGeolocationProvider,
    NullGeolocationProvider,
    PermissionGateInterface,
    StaticGeolocationProvider,
    StaticPermissionGate,
)
from .models import CoordinateFix, GeolocationResult, GeolocationStatus, NamedCity, StoredLocation, UseDeviceLocation
from .resolver import LocationResolver, ResolveResult
from .store import DatabaseLocationStore, DictLocationStore, LocationStoreInterface

__all__ = [
    # Models
    "CoordinateFix",
    "GeolocationResult",
    "GeolocationStatus",
    "NamedCity",
    "StoredLocation",
    "UseDeviceLocation",
    # Store
    "LocationStoreInterface",
    "DatabaseLocationStore",
    "DictLocationStore",
    # Geolocation
    "GeolocationProviderInterface",
    "PermissionGateInterface",
    "IpGeolocationProvider",
    "NullGeolocationProvider",
    "StaticGeolocationProvider",
    "StaticPermissionGate",
    # Resolver
    "LocationResolver",
    "ResolveResult",
]
