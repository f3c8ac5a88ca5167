from .command_queue import CommandQueue
from .controller import SleepTrackerController
from .formatting import format_nights
from .live_data import LiveValue
from .live_data import OneShotEvent
from .view_state import TrackerViewState

__all__ = [
    "CommandQueue",
    "LiveValue",
    "OneShotEvent",
    "SleepTrackerController",
    "TrackerViewState",
    "format_nights",
]
