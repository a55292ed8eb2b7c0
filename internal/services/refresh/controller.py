"""
Refresh controller: single in-flight refresh pipeline

Turns triggers (resume, pull-to-refresh, timer, city submission, "locate me",
permission events) into resolve -> fetch -> persist -> present sequences.
Only the newest request may deliver its outcome, older ones are discarded
by sequence number.
"""

import asyncio
import logging
from typing import Optional, Set

from lib.openweathermap import (
    ByCityName,
    ByCoordinates,
    FetchError,
    FetchErrorKind,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    LocationQuery,
    OpenWeatherMapClient,
)

from ...location import CoordinateFix, LocationResolver, LocationStoreInterface
from ...location.resolver import ResolveResult
from .types import AUTOMATIC_TRIGGERS, PresentationSinkInterface, RefreshState, RefreshTrigger

logger = logging.getLogger(__name__)

NOT_FOUND_CODE = "404"
UNAUTHORIZED_CODE = "401"


def describeFailure(error: FetchError) -> str:
    """Map fetch error to user-visible notice"""
    match error.kind:
        case FetchErrorKind.INVALID_QUERY:
            return "Please enter a city name."
        case FetchErrorKind.LOCATION_UNAVAILABLE:
            return "Your location is unavailable. Allow location access or choose a city."
        case FetchErrorKind.NETWORK_ERROR:
            return "Can't reach the weather service. Check your connection."
        case FetchErrorKind.PROVIDER_ERROR:
            if error.code == NOT_FOUND_CODE:
                return "Sorry, no weather data found."
            if error.code == UNAUTHORIZED_CODE:
                return "Weather service rejected the API key."
            return f"Weather service error ({error.code}). Try again later."
        case FetchErrorKind.MALFORMED_RESPONSE:
            return "Weather service sent unexpected data. Try again later."
    return "Something went wrong."


class RefreshController:
    """
    Refresh state machine, dood!

    States go IDLE -> RESOLVING -> FETCHING -> DONE -> IDLE. Automatic
    triggers are ignored while refresh is in flight, explicit ones
    (city submission, "locate me", permission grant) supersede it.

    Trigger methods are synchronous and must be called from running event
    loop: the refresh itself runs as background task.

    Example:
        controller = RefreshController(client, resolver, store, sink)
        controller.onResume()
        controller.submitCity("Paris")
        await controller.waitIdle()
    """

    def __init__(
        self,
        client: OpenWeatherMapClient,
        resolver: LocationResolver,
        store: LocationStoreInterface,
        sink: PresentationSinkInterface,
    ):
        self.client = client
        self.resolver = resolver
        self.store = store
        self.sink = sink

        self.state: RefreshState = RefreshState.IDLE
        self._sequence: int = 0
        # Sequence number of request currently waiting on device location, if any
        self._awaitingFixSequence: Optional[int] = None

        self.backgroundTasks: Set[asyncio.Task] = set()
        self._autoRefreshTask: Optional[asyncio.Task] = None

    @property
    def isBusy(self) -> bool:
        return self.state in (RefreshState.RESOLVING, RefreshState.FETCHING)

    @property
    def sequence(self) -> int:
        """Sequence number of the latest issued request"""
        return self._sequence

    def trigger(
        self,
        trigger: RefreshTrigger,
        *,
        cityName: Optional[str] = None,
        fix: Optional[CoordinateFix] = None,
    ) -> Optional[asyncio.Task]:
        """
        Start refresh for given trigger

        Args:
            trigger: What caused the refresh
            cityName: Submitted city, for CITY_SUBMITTED only
            fix: Known coordinates, for LOCATE_ME/PERMISSION_GRANTED only

        Returns:
            Task running the refresh, or None if trigger was ignored
        """
        if trigger in AUTOMATIC_TRIGGERS and self.isBusy:
            logger.debug(f"Ignoring {trigger} trigger, refresh #{self._sequence} is {self.state}")
            return None

        if self.isBusy:
            logger.info(f"{trigger} trigger supersedes refresh #{self._sequence}")

        self._sequence += 1
        sequence = self._sequence
        self.state = RefreshState.RESOLVING
        self._notifyRefreshing(True)

        logger.debug(f"Refresh #{sequence} started by {trigger}")
        task = asyncio.create_task(self._run(sequence, trigger, cityName, fix))
        self.backgroundTasks.add(task)
        task.add_done_callback(self.backgroundTasks.discard)
        return task

    def onResume(self) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.RESUME)

    def onPullToRefresh(self) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.PULL_TO_REFRESH)

    def onMenuRefresh(self) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.MENU_REFRESH)

    def onTimer(self) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.TIMER)

    def submitCity(self, name: str) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.CITY_SUBMITTED, cityName=name)

    def locateMe(self) -> Optional[asyncio.Task]:
        return self.trigger(RefreshTrigger.LOCATE_ME)

    def onCoordinatesAvailable(self, fix: CoordinateFix) -> Optional[asyncio.Task]:
        """Coordinates arrived from location update, refresh with them"""
        return self.trigger(RefreshTrigger.PERMISSION_GRANTED, fix=fix)

    def onPermissionResult(self, granted: bool) -> Optional[asyncio.Task]:
        """
        Handle answer to location permission prompt

        Grant starts device location refresh. Denial terminates in-flight
        request only while it waits on device location, delivering
        LOCATION_UNAVAILABLE at once. Otherwise denial is only logged:
        refresh which showed the prompt has already reported it.
        """
        if granted:
            logger.info("Location permission granted")
            return self.trigger(RefreshTrigger.PERMISSION_GRANTED)

        logger.info("Location permission denied")
        if self._awaitingFixSequence != self._sequence:
            # Nothing waits on device location, let in-flight request finish
            return None

        logger.info(f"Terminating refresh #{self._sequence}: location permission denied")
        self._sequence += 1
        self._awaitingFixSequence = None

        try:
            self._deliver(FetchFailure.of(FetchErrorKind.LOCATION_UNAVAILABLE, message="Location permission denied"))
        except Exception as e:
            logger.error(f"Failed to report location permission denial: {e}")
            logger.exception(e)
        finally:
            self._finish()
        return None

    def startAutoRefresh(self, interval: float) -> None:
        """Fire TIMER trigger every interval seconds until stop()"""
        if interval <= 0:
            raise ValueError(f"Auto refresh interval must be positive, got {interval}")
        if self._autoRefreshTask is not None and not self._autoRefreshTask.done():
            logger.warning("Auto refresh is already running")
            return

        logger.info(f"Starting auto refresh every {interval}s")
        self._autoRefreshTask = asyncio.create_task(self._autoRefreshLoop(interval))

    async def stop(self) -> None:
        """Stop auto refresh and wait for in-flight refresh to complete"""
        if self._autoRefreshTask is not None:
            self._autoRefreshTask.cancel()
            try:
                await self._autoRefreshTask
            except asyncio.CancelledError:
                pass
            self._autoRefreshTask = None
            logger.info("Auto refresh stopped")

        await self.waitIdle()

    async def waitIdle(self) -> None:
        """Wait until all started refresh tasks are complete"""
        while True:
            pending = [task for task in self.backgroundTasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def _autoRefreshLoop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.onTimer()

    async def _run(
        self,
        sequence: int,
        trigger: RefreshTrigger,
        cityName: Optional[str],
        fix: Optional[CoordinateFix],
    ) -> None:
        try:
            resolution = await self._resolve(sequence, trigger, cityName, fix)
            if not self._isCurrent(sequence):
                logger.info(f"Discarding resolution of stale refresh #{sequence}")
                return

            if isinstance(resolution, FetchFailure):
                outcome: FetchOutcome = resolution
            else:
                self.state = RefreshState.FETCHING
                outcome = await self.client.fetch(resolution)
                if not self._isCurrent(sequence):
                    logger.info(f"Discarding outcome of stale refresh #{sequence}")
                    return
                if isinstance(outcome, FetchSuccess):
                    self._persist(resolution)

            self._deliver(outcome)
        except Exception as e:
            logger.error(f"Refresh #{sequence} failed: {e}")
            logger.exception(e)
        finally:
            if self._isCurrent(sequence) and self.state != RefreshState.IDLE:
                self._finish()

    async def _resolve(
        self,
        sequence: int,
        trigger: RefreshTrigger,
        cityName: Optional[str],
        fix: Optional[CoordinateFix],
    ) -> ResolveResult:
        if trigger == RefreshTrigger.CITY_SUBMITTED:
            return self.resolver.resolveForCity(cityName or "")

        # Stored city and supplied fix resolve without suspending,
        # so only a pending coordinate fix is observable as waiting
        self._awaitingFixSequence = sequence
        try:
            if trigger in (RefreshTrigger.LOCATE_ME, RefreshTrigger.PERMISSION_GRANTED):
                return await self.resolver.resolveForDeviceLocation(fix)
            return await self.resolver.resolve()
        finally:
            if self._awaitingFixSequence == sequence:
                self._awaitingFixSequence = None

    def _isCurrent(self, sequence: int) -> bool:
        return sequence == self._sequence

    def _persist(self, query: LocationQuery) -> None:
        if isinstance(query, ByCityName):
            stored = self.store.setCity(query.name)
        elif isinstance(query, ByCoordinates):
            stored = self.store.setDeviceLocation()
        else:
            raise TypeError(f"Unknown location query: {query!r}")

        if not stored:
            logger.warning(f"Location {query} was not persisted")

    def _deliver(self, outcome: FetchOutcome) -> None:
        self.state = RefreshState.DONE
        if isinstance(outcome, FetchFailure):
            logger.warning(f"Refresh #{self._sequence} failed: {outcome.error}")
            self.sink.showOutcome(outcome, describeFailure(outcome.error))
        else:
            logger.debug(f"Refresh #{self._sequence} succeeded: {outcome.snapshot}")
            self.sink.showOutcome(outcome, None)

    def _finish(self) -> None:
        self.state = RefreshState.IDLE
        self._notifyRefreshing(False)

    def _notifyRefreshing(self, isRefreshing: bool) -> None:
        try:
            self.sink.setRefreshing(isRefreshing)
        except Exception as e:
            logger.error(f"Failed to update refresh indicator: {e}")
