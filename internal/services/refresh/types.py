"""
Refresh: triggers, states and presentation sink interface
"""

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Optional

from lib.openweathermap import FetchOutcome


class RefreshTrigger(StrEnum):
    RESUME = "resume"
    """Application came to foreground"""
    PULL_TO_REFRESH = "pullToRefresh"
    """Pull-to-refresh gesture"""
    MENU_REFRESH = "menuRefresh"
    """Refresh menu item"""
    TIMER = "timer"
    """Periodic auto refresh"""

    CITY_SUBMITTED = "citySubmitted"
    """User submitted city name"""
    LOCATE_ME = "locateMe"
    """User asked to use device location"""
    PERMISSION_GRANTED = "permissionGranted"
    """Location permission granted or coordinates became available"""


# Triggers which refresh stored location and are dropped while refresh is in flight.
# All other triggers are explicit user choices and supersede in-flight refresh.
AUTOMATIC_TRIGGERS = frozenset(
    {
        RefreshTrigger.RESUME,
        RefreshTrigger.PULL_TO_REFRESH,
        RefreshTrigger.MENU_REFRESH,
        RefreshTrigger.TIMER,
    }
)


class RefreshState(StrEnum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    DONE = "done"
    """Transient: outcome is being delivered, IDLE follows immediately"""


class PresentationSinkInterface(ABC):
    """Receiver of refresh progress and outcomes, rendering is up to implementation"""

    @abstractmethod
    def setRefreshing(self, isRefreshing: bool) -> None:
        """Show or hide refresh progress indicator"""
        pass

    @abstractmethod
    def showOutcome(self, outcome: FetchOutcome, notice: Optional[str]) -> None:
        """
        Present refresh outcome

        Args:
            outcome: FetchSuccess with snapshot or FetchFailure
            notice: User-visible failure text, None on success.
                Previously shown snapshot should stay visible on failure.
        """
        pass
