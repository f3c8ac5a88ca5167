from .errors import NightNotFound
from .errors import SleepTrackerError
from .errors import StorageFault
from .migrate import apply_schema
from .models import UNRATED_QUALITY
from .models import SleepNight
from .night_store import SleepNightStore

__all__ = [
    "NightNotFound",
    "SleepNight",
    "SleepNightStore",
    "SleepTrackerError",
    "StorageFault",
    "UNRATED_QUALITY",
    "apply_schema",
]
