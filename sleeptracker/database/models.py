from __future__ import annotations

from dataclasses import dataclass

UNRATED_QUALITY = -1


@dataclass
class SleepNight:
    """One sleep interval.

    A night is open while ``end_time_milli`` equals ``start_time_milli``;
    the stored rows carry no separate flag for it.
    """

    start_time_milli: int
    end_time_milli: int
    sleep_quality: int = UNRATED_QUALITY
    night_id: int | None = None

    @classmethod
    def begin(cls, now_milli: int) -> SleepNight:
        return cls(start_time_milli=now_milli, end_time_milli=now_milli)

    @property
    def is_open(self) -> bool:
        return self.end_time_milli == self.start_time_milli

    @property
    def duration_milli(self) -> int:
        return self.end_time_milli - self.start_time_milli
