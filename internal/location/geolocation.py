"""
Geolocation collaborators: coordinate fix providers and permission gates

The core only needs an asynchronous "give me a coordinate fix" call and a
boolean "location access granted" signal. Bundled implementations are
meant for the console application and for tests.
"""

import json
import logging
from abc import ABC, abstractmethod

import httpx

from .models import CoordinateFix, GeolocationResult, GeolocationStatus

logger = logging.getLogger(__name__)


class GeolocationProviderInterface(ABC):
    """Source of device coordinates"""

    @abstractmethod
    async def requestCoordinateFix(self) -> GeolocationResult:
        """
        Obtain single coordinate fix

        At most one request is assumed to be pending at a time.

        Returns:
            CoordinateFix, or GeolocationStatus explaining why there is none
        """
        pass


class PermissionGateInterface(ABC):
    """Location access permission"""

    @abstractmethod
    def isGranted(self) -> bool:
        """Whether location permission is currently granted"""
        pass

    @abstractmethod
    def requestPermission(self) -> None:
        """
        Prompt user for location permission

        Result arrives later as separate grant/deny event
        (see RefreshController.onPermissionResult()).
        """
        pass


class StaticPermissionGate(PermissionGateInterface):
    """Permission taken from configuration, prompting only logs a hint"""

    def __init__(self, granted: bool = False):
        self.granted = granted
        self.promptCount = 0

    def isGranted(self) -> bool:
        return self.granted

    def requestPermission(self) -> None:
        self.promptCount += 1
        logger.warning("Location access is not granted, set [geolocation] permission-granted = true to allow it")


class StaticGeolocationProvider(GeolocationProviderInterface):
    """Always returns the same configured coordinates"""

    def __init__(self, latitude: float, longitude: float):
        self.fix = CoordinateFix(latitude=float(latitude), longitude=float(longitude))

    async def requestCoordinateFix(self) -> GeolocationResult:
        return self.fix


class NullGeolocationProvider(GeolocationProviderInterface):
    """Provider for environments without any location source"""

    async def requestCoordinateFix(self) -> GeolocationResult:
        return GeolocationStatus.UNAVAILABLE


class IpGeolocationProvider(GeolocationProviderInterface):
    """
    Approximate coordinates by public IP address, dood!

    Uses: http://ip-api.com/json/
    """

    API_URL = "http://ip-api.com/json/"

    def __init__(self, requestTimeout: int = 10):
        self.requestTimeout = requestTimeout

    async def requestCoordinateFix(self) -> GeolocationResult:
        try:
            async with httpx.AsyncClient(timeout=self.requestTimeout) as session:
                response = await session.get(self.API_URL, params={"fields": "status,message,lat,lon,city"})
            if response.status_code != 200:
                logger.error(f"IP geolocation failed: HTTP {response.status_code}")
                return GeolocationStatus.UNAVAILABLE
            data = json.loads(response.text)
        except httpx.HTTPError as e:
            logger.error(f"IP geolocation network error: {e}")
            return GeolocationStatus.UNAVAILABLE
        except ValueError as e:
            logger.error(f"Failed to parse IP geolocation response: {e}")
            return GeolocationStatus.UNAVAILABLE

        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("message", "") if isinstance(data, dict) else ""
            logger.warning(f"IP geolocation unsuccessful: {message}")
            return GeolocationStatus.UNAVAILABLE

        try:
            fix = CoordinateFix(latitude=float(data["lat"]), longitude=float(data["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"IP geolocation response misses coordinates: {e}")
            return GeolocationStatus.UNAVAILABLE

        logger.debug(f"IP geolocation: {data.get('city', '?')} at {fix}")
        return fix
