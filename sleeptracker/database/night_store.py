from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path

from sleeptracker.database.errors import NightNotFound, StorageFault
from sleeptracker.database.migrate import NIGHTS_TABLE
from sleeptracker.database.models import SleepNight

logger = logging.getLogger(__name__)

NightsObserver = Callable[[list[SleepNight]], None]

_SELECT_COLUMNS = "nightId, start_time_milli, end_time_milli, quality_rating"


class SleepNightStore:
    """SQLite-backed table of sleep nights.

    Every mutation made through the store pushes a freshly queried listing
    (newest night first) to the registered observers. Observers run on the
    thread that made the mutation.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._observers: dict[str, NightsObserver] = {}

    def insert(self, night: SleepNight) -> int:
        with self._connection("insert") as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO {NIGHTS_TABLE} (start_time_milli, end_time_milli, quality_rating)
                VALUES (?, ?, ?)
                """,
                (night.start_time_milli, night.end_time_milli, night.sleep_quality),
            )
            night_id = int(cursor.lastrowid)
        night.night_id = night_id
        logger.debug("Inserted night %s", night_id)
        self._publish()
        return night_id

    def update(self, night: SleepNight) -> None:
        if night.night_id is None:
            raise NightNotFound(None)
        with self._connection("update") as conn:
            cursor = conn.execute(
                f"""
                UPDATE {NIGHTS_TABLE}
                SET start_time_milli = ?, end_time_milli = ?, quality_rating = ?
                WHERE nightId = ?
                """,
                (
                    night.start_time_milli,
                    night.end_time_milli,
                    night.sleep_quality,
                    night.night_id,
                ),
            )
            updated = cursor.rowcount
        if updated == 0:
            raise NightNotFound(night.night_id)
        logger.debug("Updated night %s", night.night_id)
        self._publish()

    def get(self, night_id: int) -> SleepNight | None:
        with self._connection("get") as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {NIGHTS_TABLE} WHERE nightId = ?",
                (night_id,),
            ).fetchone()
        return _row_to_night(row)

    def get_tonight(self) -> SleepNight | None:
        with self._connection("get_tonight") as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {NIGHTS_TABLE} ORDER BY nightId DESC LIMIT 1"
            ).fetchone()
        return _row_to_night(row)

    def list_nights(self) -> list[SleepNight]:
        with self._connection("list_nights") as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {NIGHTS_TABLE} ORDER BY nightId DESC"
            ).fetchall()
        return [night for night in (_row_to_night(row) for row in rows) if night is not None]

    def clear(self) -> None:
        with self._connection("clear") as conn:
            cursor = conn.execute(f"DELETE FROM {NIGHTS_TABLE}")
            removed = cursor.rowcount
        logger.info("Cleared %s nights", removed)
        self._publish()

    def observe_all(self, callback: NightsObserver) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            self._observers[token] = callback
        try:
            callback(self.list_nights())
        except Exception:
            self.remove_observer(token)
            raise
        return token

    def remove_observer(self, token: str) -> None:
        with self._lock:
            self._observers.pop(token, None)

    def _publish(self) -> None:
        with self._lock:
            observers = list(self._observers.values())
        if not observers:
            return
        try:
            nights = self.list_nights()
        except StorageFault:
            # The write already committed; only the refresh is lost.
            logger.exception("Night listing refresh failed")
            return
        for observer in observers:
            try:
                observer([replace(night) for night in nights])
            except Exception:
                logger.exception("Night listing observer failed")

    @contextmanager
    def _connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageFault(operation, str(exc)) from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageFault(operation, str(exc)) from exc
        finally:
            conn.close()


def _row_to_night(row: sqlite3.Row | None) -> SleepNight | None:
    if row is None:
        return None
    return SleepNight(
        night_id=int(row["nightId"]),
        start_time_milli=int(row["start_time_milli"]),
        end_time_milli=int(row["end_time_milli"]),
        sleep_quality=int(row["quality_rating"]),
    )
