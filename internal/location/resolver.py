"""
Location resolver: decide which location query to issue

Stored NamedCity resolves immediately, UseDeviceLocation needs permission
and a live coordinate fix. Resolution never raises: failures are returned
as FetchFailure with LOCATION_UNAVAILABLE or INVALID_QUERY.
"""

import asyncio
import logging
from typing import Optional, TypeAlias, Union

from lib.openweathermap import ByCityName, ByCoordinates, FetchErrorKind, FetchFailure, LocationQuery

from .geolocation import GeolocationProviderInterface, PermissionGateInterface
from .models import CoordinateFix, GeolocationStatus, NamedCity
from .store import LocationStoreInterface

logger = logging.getLogger(__name__)

ResolveResult: TypeAlias = Union[LocationQuery, FetchFailure]

DEFAULT_FIX_TIMEOUT = 15.0


class LocationResolver:
    """
    Turns stored state and live signals into LocationQuery

    Example:
        resolver = LocationResolver(store, geolocation, permissionGate)
        result = await resolver.resolve()
        if isinstance(result, FetchFailure):
            ...  # location unavailable
        else:
            outcome = await client.fetch(result)
    """

    def __init__(
        self,
        store: LocationStoreInterface,
        geolocation: GeolocationProviderInterface,
        permissionGate: PermissionGateInterface,
        fixTimeout: Optional[float] = DEFAULT_FIX_TIMEOUT,
    ):
        """
        Args:
            store: Store with last chosen location
            geolocation: Coordinate fix provider
            permissionGate: Location permission state
            fixTimeout: Max seconds to wait for coordinate fix, None to wait forever
        """
        self.store = store
        self.geolocation = geolocation
        self.permissionGate = permissionGate
        self.fixTimeout = fixTimeout

    async def resolve(self) -> ResolveResult:
        """
        Resolve query from stored location

        Returns:
            ByCityName for stored city (no geolocation involved),
            ByCoordinates for device location, or FetchFailure(LOCATION_UNAVAILABLE)
        """
        stored = self.store.get()
        if isinstance(stored, NamedCity):
            logger.debug(f"Resolved stored city {stored.name!r}")
            return ByCityName(stored.name)

        return await self.resolveForDeviceLocation()

    def resolveForCity(self, name: str) -> ResolveResult:
        """
        Resolve explicitly submitted city, bypassing stored location

        Returns:
            ByCityName(name) or FetchFailure(INVALID_QUERY) for blank name
        """
        if not name or not name.strip():
            logger.warning(f"Rejecting blank city name {name!r}")
            return FetchFailure.of(FetchErrorKind.INVALID_QUERY, message="City name is empty")
        return ByCityName(name)

    async def resolveForDeviceLocation(self, fix: Optional[CoordinateFix] = None) -> ResolveResult:
        """
        Resolve device location, acquiring coordinate fix if none is given

        Args:
            fix: Already known coordinates (e.g. delivered by location update event)

        Returns:
            ByCoordinates or FetchFailure(LOCATION_UNAVAILABLE)
        """
        if fix is None:
            if not self.permissionGate.isGranted():
                # Prompt is shown, until user answers location is unavailable
                logger.info("Location permission is not granted, requesting it")
                self.permissionGate.requestPermission()
                return FetchFailure.of(FetchErrorKind.LOCATION_UNAVAILABLE, message="Location permission not granted")

            result = await self._requestFix()
            if isinstance(result, GeolocationStatus):
                logger.warning(f"No coordinate fix: {result}")
                return FetchFailure.of(FetchErrorKind.LOCATION_UNAVAILABLE, message=f"Geolocation: {result}")
            fix = result

        if not fix.isValid():
            logger.error(f"Coordinate fix out of range: {fix}")
            return FetchFailure.of(FetchErrorKind.LOCATION_UNAVAILABLE, message=f"Invalid fix: {fix}")

        return ByCoordinates(latitude=fix.latitude, longitude=fix.longitude)

    async def _requestFix(self) -> Union[CoordinateFix, GeolocationStatus]:
        try:
            if self.fixTimeout is None:
                return await self.geolocation.requestCoordinateFix()
            return await asyncio.wait_for(self.geolocation.requestCoordinateFix(), timeout=self.fixTimeout)
        except asyncio.TimeoutError:
            logger.warning(f"Coordinate fix timed out after {self.fixTimeout}s")
            return GeolocationStatus.UNAVAILABLE
        except Exception as e:
            logger.error(f"Geolocation provider failed: {e}")
            return GeolocationStatus.UNAVAILABLE
