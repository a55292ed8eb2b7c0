"""
Refresh service: state machine driving resolve -> fetch -> present
"""

from .controller import RefreshController, describeFailure
from .sinks import ConsolePresentationSink, RecordingPresentationSink, formatSnapshot
from .types import AUTOMATIC_TRIGGERS, PresentationSinkInterface, RefreshState, RefreshTrigger

__all__ = [
    "AUTOMATIC_TRIGGERS",
    "ConsolePresentationSink",
    "PresentationSinkInterface",
    "RecordingPresentationSink",
    "RefreshController",
    "RefreshState",
    "RefreshTrigger",
    "describeFailure",
    "formatSnapshot",
]
