from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sleeptracker.database.errors import NightNotFound, StorageFault
from sleeptracker.database.migrate import NIGHTS_TABLE, apply_schema
from sleeptracker.database.models import UNRATED_QUALITY, SleepNight
from sleeptracker.database.night_store import SleepNightStore


def test_insert_assigns_increasing_ids(store: SleepNightStore) -> None:
    first = SleepNight.begin(100)
    second = SleepNight.begin(200)

    first_id = store.insert(first)
    second_id = store.insert(second)

    assert first.night_id == first_id
    assert second.night_id == second_id
    assert second_id > first_id

    loaded = store.get(first_id)
    assert loaded == SleepNight(
        night_id=first_id,
        start_time_milli=100,
        end_time_milli=100,
        sleep_quality=UNRATED_QUALITY,
    )
    assert loaded.is_open


def test_get_tonight_returns_newest_night(store: SleepNightStore) -> None:
    assert store.get_tonight() is None

    store.insert(SleepNight(start_time_milli=100, end_time_milli=500))
    newest_id = store.insert(SleepNight.begin(900))

    tonight = store.get_tonight()
    assert tonight is not None
    assert tonight.night_id == newest_id
    assert tonight.start_time_milli == 900


def test_get_missing_night_returns_none(store: SleepNightStore) -> None:
    assert store.get(42) is None


def test_update_persists_by_id(store: SleepNightStore) -> None:
    night = SleepNight.begin(100)
    store.insert(night)
    night.end_time_milli = 200
    night.sleep_quality = 4

    store.update(night)

    loaded = store.get(night.night_id)
    assert loaded is not None
    assert (loaded.start_time_milli, loaded.end_time_milli, loaded.sleep_quality) == (100, 200, 4)
    assert not loaded.is_open


def test_update_missing_night_raises(store: SleepNightStore) -> None:
    with pytest.raises(NightNotFound) as excinfo:
        store.update(SleepNight(night_id=99, start_time_milli=1, end_time_milli=2))
    assert excinfo.value.night_id == 99

    with pytest.raises(NightNotFound):
        store.update(SleepNight.begin(5))


def test_list_nights_is_newest_first(store: SleepNightStore) -> None:
    ids = [store.insert(SleepNight.begin(stamp)) for stamp in (10, 20, 30)]

    assert [night.night_id for night in store.list_nights()] == list(reversed(ids))


def test_clear_removes_everything_and_ids_are_not_reused(store: SleepNightStore) -> None:
    old_id = store.insert(SleepNight.begin(10))
    store.clear()

    assert store.list_nights() == []
    assert store.get_tonight() is None

    new_id = store.insert(SleepNight.begin(20))
    assert new_id > old_id


def test_observe_all_pushes_fresh_listing(store: SleepNightStore) -> None:
    received: list[list[SleepNight]] = []
    token = store.observe_all(received.append)

    night = SleepNight.begin(100)
    store.insert(night)
    night.end_time_milli = 300
    store.update(night)
    store.clear()

    assert [len(listing) for listing in received] == [0, 1, 1, 0]
    assert received[1][0].is_open
    assert received[2][0].end_time_milli == 300

    store.remove_observer(token)
    store.insert(SleepNight.begin(400))
    assert len(received) == 4


def test_observers_receive_independent_copies(store: SleepNightStore) -> None:
    first: list[list[SleepNight]] = []
    second: list[list[SleepNight]] = []
    store.observe_all(first.append)
    store.observe_all(second.append)

    store.insert(SleepNight.begin(100))
    first[-1][0].end_time_milli = 999

    assert second[-1][0].end_time_milli == 100


def test_failing_observer_does_not_break_writes(store: SleepNightStore) -> None:
    def explode(nights: list[SleepNight]) -> None:
        if nights:
            raise RuntimeError("boom")

    store.observe_all(explode)
    night_id = store.insert(SleepNight.begin(100))

    assert store.get(night_id) is not None


def test_unreadable_database_raises_storage_fault(tmp_path: Path) -> None:
    store = SleepNightStore(tmp_path / "missing" / "sleep.db")

    with pytest.raises(StorageFault) as excinfo:
        store.insert(SleepNight.begin(1))
    assert excinfo.value.operation == "insert"
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


def test_missing_table_raises_storage_fault(tmp_path: Path) -> None:
    store = SleepNightStore(tmp_path / "empty.db")

    with pytest.raises(StorageFault):
        store.list_nights()


def test_apply_schema_backfills_quality_column(tmp_path: Path) -> None:
    db_path = tmp_path / "legacy.db"
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            f"""
            CREATE TABLE {NIGHTS_TABLE} (
              nightId INTEGER PRIMARY KEY AUTOINCREMENT,
              start_time_milli INTEGER NOT NULL,
              end_time_milli INTEGER NOT NULL
            )
            """
        )
        conn.execute(
            f"INSERT INTO {NIGHTS_TABLE} (start_time_milli, end_time_milli) VALUES (1, 2)"
        )
        conn.commit()

    apply_schema(db_path)
    apply_schema(db_path)

    nights = SleepNightStore(db_path).list_nights()
    assert len(nights) == 1
    assert nights[0].sleep_quality == UNRATED_QUALITY


def test_apply_schema_under_a_file_raises_storage_fault(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(StorageFault):
        apply_schema(blocker / "sleep.db")


class RefreshFailsStore(SleepNightStore):
    def __init__(self, db_path: Path) -> None:
        super().__init__(db_path)
        self.refresh_broken = False

    def list_nights(self) -> list[SleepNight]:
        if self.refresh_broken:
            raise StorageFault("list_nights", "database is locked")
        return super().list_nights()


def test_committed_write_survives_failed_refresh(db_path: Path) -> None:
    store = RefreshFailsStore(db_path)
    received: list[list[SleepNight]] = []
    store.observe_all(received.append)
    store.refresh_broken = True

    night = SleepNight.begin(100)
    night_id = store.insert(night)
    night.end_time_milli = 200
    store.update(night)
    store.clear()

    assert night_id is not None
    assert received == [[]]
    store.refresh_broken = False
    assert store.list_nights() == []


def test_observer_failing_on_first_delivery_is_not_kept(store: SleepNightStore) -> None:
    calls: list[int] = []

    def explode(nights: list[SleepNight]) -> None:
        calls.append(len(nights))
        raise ValueError("bad observer")

    with pytest.raises(ValueError):
        store.observe_all(explode)
    store.insert(SleepNight.begin(1))

    assert calls == [0]
