"""
Presentation sinks for refresh outcomes
"""

import logging
import sys
from typing import List, Optional, TextIO, Tuple

from lib.openweathermap import FetchOutcome, FetchSuccess, WeatherSnapshot

from .types import PresentationSinkInterface

logger = logging.getLogger(__name__)

TEMPERATURE_SYMBOLS = {
    "imperial": "°F",
    "metric": "°C",
    "standard": "K",
}


def formatSnapshot(snapshot: WeatherSnapshot, units: str = "imperial") -> str:
    """Render snapshot as multiline text, city header first"""
    symbol = TEMPERATURE_SYMBOLS.get(units, "")
    observedAt = snapshot.observedAtDateTime.astimezone().strftime("%Y-%m-%d %H:%M")
    lines = [
        f"{snapshot.city.upper()}, {snapshot.country}",
        snapshot.description.capitalize(),
        f"Humidity: {snapshot.humidity}%",
        f"Pressure: {snapshot.pressure} hPa",
        f"Temperature: {snapshot.temperature:.2f} {symbol}".rstrip(),
        f"Icon: {snapshot.iconUrl}",
        f"Last update: {observedAt}",
    ]
    return "\n".join(lines)


class ConsolePresentationSink(PresentationSinkInterface):
    """
    Prints weather to terminal

    Failure notice is printed below the last successful snapshot,
    which is kept and never cleared.
    """

    def __init__(self, units: str = "imperial", stream: Optional[TextIO] = None):
        self.units = units
        self.stream = stream
        self.lastSnapshot: Optional[WeatherSnapshot] = None

    def _print(self, text: str) -> None:
        print(text, file=self.stream if self.stream is not None else sys.stdout, flush=True)

    def setRefreshing(self, isRefreshing: bool) -> None:
        if isRefreshing:
            self._print("Refreshing...")

    def showOutcome(self, outcome: FetchOutcome, notice: Optional[str]) -> None:
        if isinstance(outcome, FetchSuccess):
            self.lastSnapshot = outcome.snapshot
            self._print(formatSnapshot(outcome.snapshot, self.units))
            return

        self._print(f"! {notice}")
        if self.lastSnapshot is not None:
            self._print(f"(showing weather from {self.lastSnapshot.observedAtDateTime.astimezone():%H:%M})")


class RecordingPresentationSink(PresentationSinkInterface):
    """Collects everything it is given, for tests and embedding"""

    def __init__(self):
        self.outcomes: List[Tuple[FetchOutcome, Optional[str]]] = []
        self.refreshingHistory: List[bool] = []

    def setRefreshing(self, isRefreshing: bool) -> None:
        self.refreshingHistory.append(isRefreshing)

    def showOutcome(self, outcome: FetchOutcome, notice: Optional[str]) -> None:
        self.outcomes.append((outcome, notice))

    @property
    def lastOutcome(self) -> Optional[FetchOutcome]:
        return self.outcomes[-1][0] if self.outcomes else None

    @property
    def lastNotice(self) -> Optional[str]:
        return self.outcomes[-1][1] if self.outcomes else None
