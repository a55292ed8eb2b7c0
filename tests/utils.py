"""
Test utility functions and helpers.

This module provides helper functions for creating test objects,
async utilities and controllable collaborators for testing.
"""

import asyncio
from typing import Any, Callable, Optional
from unittest.mock import AsyncMock, Mock

from internal.location import GeolocationProviderInterface, GeolocationResult
from internal.services.refresh import RefreshController, RefreshState
from lib.openweathermap import FetchSuccess, OpenWeatherMapClient, WeatherSnapshot

# ============================================================================
# Weather Data Utilities
# ============================================================================


def makeSnapshot(
    city: str = "Paris",
    country: str = "FR",
    description: str = "scattered clouds",
    humidity: int = 72,
    pressure: int = 1012,
    icon: str = "03d",
    temperature: float = 61.2,
    observedAt: int = 1700000000,
) -> WeatherSnapshot:
    """
    Create WeatherSnapshot with sensible defaults.

    Example:
        snapshot = makeSnapshot(city="Berlin", country="DE")
    """
    return WeatherSnapshot(
        city=city,
        country=country,
        description=description,
        humidity=humidity,
        pressure=pressure,
        icon=icon,
        temperature=temperature,
        observedAt=observedAt,
    )


def makeSuccess(**kwargs) -> FetchSuccess:
    """Create FetchSuccess around makeSnapshot(**kwargs)."""
    return FetchSuccess(makeSnapshot(**kwargs))


# ============================================================================
# Async Mock Utilities
# ============================================================================


def createAsyncMock(
    returnValue: Any = None,
    sideEffect: Optional[Callable] = None,
    spec: Optional[type] = None,
) -> AsyncMock:
    """
    Create an AsyncMock with optional return value or side effect.

    Args:
        returnValue: Value to return when called (default: None)
        sideEffect: Function to call instead of returning value (default: None)
        spec: Class to use as spec (default: None)

    Returns:
        AsyncMock: Configured async mock

    Example:
        mockFunc = createAsyncMock(returnValue="result")
        result = await mockFunc()
        assert result == "result"
    """
    mock = AsyncMock(spec=spec)

    if sideEffect is not None:
        mock.side_effect = sideEffect
    else:
        mock.return_value = returnValue

    return mock


def createMockWeatherClient(
    returnValue: Any = None,
    sideEffect: Optional[Callable] = None,
) -> Mock:
    """
    Create mocked OpenWeatherMapClient with async fetch().

    Example:
        client = createMockWeatherClient(returnValue=makeSuccess())
        outcome = await client.fetch(ByCityName("Paris"))
    """
    client = Mock(spec=OpenWeatherMapClient)
    client.fetch = createAsyncMock(returnValue=returnValue, sideEffect=sideEffect)
    return client


async def waitForState(controller: RefreshController, state: RefreshState, maxIterations: int = 100) -> None:
    """
    Yield to event loop until controller reaches given state.

    Raises:
        AssertionError: if state is not reached in maxIterations loop iterations
    """
    for _ in range(maxIterations):
        if controller.state == state:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"Controller is {controller.state}, expected {state}")


# ============================================================================
# Controllable Collaborators
# ============================================================================


class ControlledGeolocationProvider(GeolocationProviderInterface):
    """
    Geolocation provider which answers only when test delivers result.

    Example:
        geolocation = ControlledGeolocationProvider()
        task = asyncio.create_task(resolver.resolve())
        await geolocation.requested.wait()
        geolocation.deliver(CoordinateFix(48.85, 2.35))
    """

    def __init__(self):
        self.requestCount = 0
        self.requested = asyncio.Event()
        self._pending: Optional[asyncio.Future] = None

    async def requestCoordinateFix(self) -> GeolocationResult:
        self.requestCount += 1
        self._pending = asyncio.get_running_loop().create_future()
        self.requested.set()
        return await self._pending

    def deliver(self, result: GeolocationResult) -> None:
        """Complete pending coordinate fix request."""
        assert self._pending is not None, "No pending coordinate fix request"
        if not self._pending.done():
            self._pending.set_result(result)
