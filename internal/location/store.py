"""
Location store: persistence of the single "last resolved location" record

Record is either UseDeviceLocation or NamedCity. It is never deleted, only
overwritten, and nothing stored means UseDeviceLocation, dood!
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from internal.database.wrapper import DatabaseWrapper

from .models import NamedCity, StoredLocation, UseDeviceLocation

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_KEY = "location"
# City names are never empty, so empty string can't collide with any of them
DEVICE_LOCATION_SENTINEL = ""


def _validateCityName(name: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"City name must be non-empty string, got {name!r}")


class LocationStoreInterface(ABC):
    """Abstract interface for location persistence"""

    @abstractmethod
    def get(self) -> StoredLocation:
        """
        Get stored location

        Returns:
            Stored location, UseDeviceLocation if nothing was ever stored
        """
        pass

    @abstractmethod
    def setDeviceLocation(self) -> bool:
        """
        Overwrite stored location with UseDeviceLocation

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def setCity(self, name: str) -> bool:
        """
        Overwrite stored location with NamedCity(name)

        Args:
            name: City name, as submitted

        Returns:
            True if successful, False otherwise

        Raises:
            ValueError: if name is empty or whitespace-only
        """
        pass


class DictLocationStore(LocationStoreInterface):
    """In-memory location store, lives as long as the process"""

    def __init__(self, initial: Optional[StoredLocation] = None):
        self._location: StoredLocation = initial if initial is not None else UseDeviceLocation()

    def get(self) -> StoredLocation:
        return self._location

    def setDeviceLocation(self) -> bool:
        self._location = UseDeviceLocation()
        return True

    def setCity(self, name: str) -> bool:
        _validateCityName(name)
        self._location = NamedCity(name)
        return True


class DatabaseLocationStore(LocationStoreInterface):
    """
    Location store backed by settings table, survives process restart

    Layout: one settings key holding either DEVICE_LOCATION_SENTINEL or city name.
    """

    def __init__(self, db: DatabaseWrapper, key: str = DEFAULT_LOCATION_KEY):
        """
        Args:
            db: Database wrapper to keep setting in
            key: Settings key (default: "location")
        """
        self.db = db
        self.key = key

    def get(self) -> StoredLocation:
        value = self.db.getSetting(self.key)
        if value is None or value == DEVICE_LOCATION_SENTINEL:
            return UseDeviceLocation()
        return NamedCity(value)

    def setDeviceLocation(self) -> bool:
        ret = self.db.setSetting(self.key, DEVICE_LOCATION_SENTINEL)
        if ret:
            logger.info("Stored location: device location")
        else:
            logger.error("Failed to store device location")
        return ret

    def setCity(self, name: str) -> bool:
        _validateCityName(name)
        ret = self.db.setSetting(self.key, name)
        if ret:
            logger.info(f"Stored location: city {name!r}")
        else:
            logger.error(f"Failed to store city {name!r}")
        return ret
