from __future__ import annotations


class SleepTrackerError(Exception):
    """Base error for the sleep tracker."""


class StorageFault(SleepTrackerError):
    """The night store could not complete an I/O operation."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class NightNotFound(SleepTrackerError):
    def __init__(self, night_id: int | None) -> None:
        super().__init__(f"night {night_id} does not exist")
        self.night_id = night_id
