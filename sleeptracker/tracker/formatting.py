from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sleeptracker.database.models import SleepNight

EMPTY_HISTORY_TEXT = "No sleep data recorded yet."
HISTORY_TITLE = "Here is your sleep data"
DATE_FORMAT = "%A %b-%d-%Y Time: %H:%M"

_QUALITY_LABELS = {
    0: "Very bad",
    1: "Poor",
    2: "So-so",
    3: "OK",
    4: "Pretty good",
    5: "Excellent",
}


def format_nights(nights: Sequence[SleepNight], *, timezone_name: str = "UTC") -> str:
    if not nights:
        return EMPTY_HISTORY_TEXT
    tz = ZoneInfo(timezone_name)
    blocks = [HISTORY_TITLE]
    for night in nights:
        lines = [f"Start:\t{format_timestamp(night.start_time_milli, tz)}"]
        if not night.is_open:
            lines.append(f"End:\t{format_timestamp(night.end_time_milli, tz)}")
            lines.append(f"Quality:\t{quality_label(night.sleep_quality)}")
            lines.append(f"Hours:Minutes:Seconds:\t{format_duration(night.duration_milli)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_timestamp(epoch_milli: int, tz: ZoneInfo) -> str:
    moment = datetime.fromtimestamp(epoch_milli / 1000, tz=timezone.utc).astimezone(tz)
    return moment.strftime(DATE_FORMAT)


def quality_label(quality: int) -> str:
    return _QUALITY_LABELS.get(quality, "--")


def format_duration(duration_milli: int) -> str:
    total_seconds = max(duration_milli, 0) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"
