from __future__ import annotations

from pathlib import Path

import pytest

from sleeptracker.database.migrate import apply_schema
from sleeptracker.database.night_store import SleepNightStore


@pytest.fixture(autouse=True)
def _isolate_sleep_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Never touch the default database that lives next to the package.
    monkeypatch.setenv("SLEEPTRACKER_DB_PATH", str(tmp_path / "env" / "sleep-history.db"))
    monkeypatch.delenv("SLEEPTRACKER_TIMEZONE", raising=False)
    monkeypatch.delenv("SLEEPTRACKER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SLEEPTRACKER_COMMAND_TIMEOUT_SECONDS", raising=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "sleep-history.db"
    apply_schema(path)
    return path


@pytest.fixture
def store(db_path: Path) -> SleepNightStore:
    return SleepNightStore(db_path)
