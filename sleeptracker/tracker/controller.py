"""Sleep-session controller.

The controller owns the single "tonight" reference. Every operation is a
command on a private single-worker queue, so store I/O never runs on the
caller's thread and start/stop/clear apply in the order they were issued.

Published state is exposed as ``LiveValue``s and ``OneShotEvent``s; the
optional ``dispatcher`` decides on which context those are updated.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from dataclasses import replace
from typing import Any

from sleeptracker.config import settings
from sleeptracker.database.errors import NightNotFound, StorageFault
from sleeptracker.database.models import SleepNight
from sleeptracker.database.night_store import SleepNightStore
from sleeptracker.observability.log_manager import get_component_logger
from sleeptracker.tracker.command_queue import CommandQueue
from sleeptracker.tracker.formatting import format_nights
from sleeptracker.tracker.live_data import LiveValue, OneShotEvent
from sleeptracker.tracker.view_state import TrackerViewState

logger = get_component_logger("tracker.controller")

Dispatcher = Callable[[Callable[[], None]], None]


class SleepTrackerController:
    def __init__(
        self,
        store: SleepNightStore,
        *,
        clock: Callable[[], int] | None = None,
        timezone_name: str | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self.store = store
        self._clock = clock or _now_milli
        self._timezone_name = (
            settings.resolve_timezone(timezone_name) if timezone_name else settings.get_timezone()
        )
        self._dispatch = dispatcher or _run_inline
        self._tonight: SleepNight | None = None
        self._store_token: str | None = None

        self.tonight: LiveValue[SleepNight | None] = LiveValue(None)
        self.nights: LiveValue[list[SleepNight]] = LiveValue([])
        self.start_enabled = self.tonight.map(lambda night: night is None)
        self.stop_enabled = self.tonight.map(lambda night: night is not None)
        self.clear_enabled = self.nights.map(lambda nights: len(nights) > 0)
        self.history_text = self.nights.map(self._format_history)

        self.navigate_to_rating: OneShotEvent[SleepNight] = OneShotEvent()
        self.notify_cleared: OneShotEvent[bool] = OneShotEvent()
        self.storage_error: OneShotEvent[str] = OneShotEvent()

        self._commands = CommandQueue(name="sleep-tracker-commands")
        self._commands.start()
        self.ready = self._submit("initialize_tonight", self._initialize_tonight)

    def __enter__(self) -> SleepTrackerController:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._commands.closed

    def start(self) -> Future:
        return self._submit("start", self._start_tracking)

    def stop(self) -> Future:
        return self._submit("stop", self._stop_tracking)

    def clear(self) -> Future:
        return self._submit("clear", self._clear_nights)

    def close(self) -> None:
        if self._commands.closed:
            return
        cancelled = self._commands.shutdown()
        if self._store_token is not None:
            self.store.remove_observer(self._store_token)
            self._store_token = None
        logger.info(
            "Controller closed cancelled=%s",
            cancelled,
            extra={"event": "tracker.closed"},
        )

    def done_navigating(self) -> None:
        self.navigate_to_rating.acknowledge()

    def done_showing_cleared(self) -> None:
        self.notify_cleared.acknowledge()

    def done_showing_error(self) -> None:
        self.storage_error.acknowledge()

    def snapshot(self) -> TrackerViewState:
        tonight = self.tonight.value
        rating = self.navigate_to_rating.pending
        return TrackerViewState(
            start_enabled=self.start_enabled.value,
            stop_enabled=self.stop_enabled.value,
            clear_enabled=self.clear_enabled.value,
            history_text=self.history_text.value,
            tonight_id=tonight.night_id if tonight else None,
            pending_rating_id=rating.night_id if rating else None,
            cleared_pending=self.notify_cleared.pending is not None,
            error_message=self.storage_error.pending,
        )

    def _submit(self, name: str, body: Callable[[], Any]) -> Future:
        return self._commands.submit(name, lambda: self._run_guarded(name, body))

    def _run_guarded(self, name: str, body: Callable[[], Any]) -> Any:
        try:
            return body()
        except StorageFault as exc:
            logger.exception(
                "Command %s failed status=storage_fault",
                name,
                exc_info=exc,
                extra={"event": f"tracker.{name}.failed"},
            )
            self._report_error(str(exc))
            return None

    def _initialize_tonight(self) -> SleepNight | None:
        if self._store_token is None:
            self._store_token = self.store.observe_all(self._on_nights_changed)
        self._set_tonight(self._tonight_from_database())
        return self._tonight

    def _start_tracking(self) -> SleepNight | None:
        if self._tonight is None:
            # Another writer, or an earlier start whose refresh failed, may
            # have left an open night behind.
            self._set_tonight(self._tonight_from_database())
        if self._tonight is not None:
            logger.warning(
                "Start ignored while night_id=%s is open",
                self._tonight.night_id,
                extra={"event": "tracker.start.ignored"},
            )
            return self._tonight
        night = SleepNight.begin(self._clock())
        self.store.insert(night)
        self._set_tonight(self._tonight_from_database())
        if self._tonight is not None:
            logger.info(
                "Started tracking night_id=%s",
                self._tonight.night_id,
                extra={"event": "tracker.started"},
            )
        return self._tonight

    def _stop_tracking(self) -> SleepNight | None:
        night = self._tonight
        if night is None:
            logger.info("Stop ignored; no open night", extra={"event": "tracker.stop.ignored"})
            return None
        # Never write end == start, which would leave the night open.
        ended = max(self._clock(), night.start_time_milli + 1)
        closed = replace(night, end_time_milli=ended)
        try:
            self.store.update(closed)
        except NightNotFound as exc:
            logger.warning(
                "Open night vanished night_id=%s",
                night.night_id,
                extra={"event": "tracker.stop.missing"},
            )
            self._set_tonight(None)
            self._report_error(str(exc))
            return None
        self._set_tonight(None)
        self._publish(lambda: self.navigate_to_rating.emit(closed))
        logger.info(
            "Stopped tracking night_id=%s duration_ms=%s",
            closed.night_id,
            closed.duration_milli,
            extra={"event": "tracker.stopped"},
        )
        return closed

    def _clear_nights(self) -> None:
        self.store.clear()
        self._set_tonight(None)
        self._publish(lambda: self.notify_cleared.emit(True))
        logger.info("Cleared sleep history", extra={"event": "tracker.cleared"})

    def _tonight_from_database(self) -> SleepNight | None:
        night = self.store.get_tonight()
        if night is None or not night.is_open:
            return None
        return night

    def _set_tonight(self, night: SleepNight | None) -> None:
        self._tonight = night
        self._publish(lambda: self.tonight.set(night))

    def _on_nights_changed(self, nights: list[SleepNight]) -> None:
        self._publish(lambda: self.nights.set(nights))

    def _report_error(self, message: str) -> None:
        self._publish(lambda: self.storage_error.emit(message))

    def _publish(self, action: Callable[[], None]) -> None:
        self._dispatch(action)

    def _format_history(self, nights: Sequence[SleepNight]) -> str:
        return format_nights(nights, timezone_name=self._timezone_name)


def _now_milli() -> int:
    return int(time.time() * 1000)


def _run_inline(action: Callable[[], None]) -> None:
    action()
