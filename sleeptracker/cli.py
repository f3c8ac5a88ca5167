from __future__ import annotations

import argparse
import logging
from pathlib import Path

from dotenv import load_dotenv

from sleeptracker.config import settings
from sleeptracker.database.errors import StorageFault
from sleeptracker.database.migrate import apply_schema
from sleeptracker.database.night_store import SleepNightStore
from sleeptracker.tracker.controller import SleepTrackerController

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    _load_env()
    parser = argparse.ArgumentParser(prog="sleeptracker")
    parser.add_argument("--log-level", default=settings.get_log_level())
    parser.add_argument("--db-path", default=None, help="SQLite file (default: SLEEPTRACKER_DB_PATH)")
    parser.add_argument("--timezone", default=None, help="Timezone used to render history")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("start", help="Start tracking tonight")
    sub.add_parser("stop", help="Stop tracking the open night")
    sub.add_parser("clear", help="Delete all recorded nights")
    sub.add_parser("history", help="Print the formatted sleep history")
    sub.add_parser("status", help="Print the tracker state")

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    db_path = Path(args.db_path) if args.db_path else settings.resolve_sleep_db_path()
    logger.debug("Using sleep database %s", db_path)
    try:
        apply_schema(db_path)
    except StorageFault as exc:
        print(f"Error: {exc}")
        return 1

    store = SleepNightStore(db_path)
    timeout = settings.get_command_timeout_seconds()
    with SleepTrackerController(store, timezone_name=args.timezone or settings.get_timezone()) as controller:
        controller.ready.result(timeout=timeout)
        if args.command == "start":
            _command_start(controller, timeout)
        elif args.command == "stop":
            _command_stop(controller, timeout)
        elif args.command == "clear":
            _command_clear(controller, timeout)
        elif args.command == "history":
            print(controller.history_text.value)
        elif args.command == "status":
            _command_status(controller)
        return _report_errors(controller)


def _command_start(controller: SleepTrackerController, timeout: float) -> None:
    already_open = controller.tonight.value
    night = controller.start().result(timeout=timeout)
    if night is None:
        return
    if already_open is not None:
        print(f"Night {night.night_id} is already being tracked.")
        return
    print(f"Started tracking night {night.night_id}.")


def _command_stop(controller: SleepTrackerController, timeout: float) -> None:
    controller.stop().result(timeout=timeout)
    night = controller.navigate_to_rating.consume()
    if night is None:
        if controller.storage_error.pending is None:
            print("No night is being tracked.")
        return
    print(f"Stopped tracking night {night.night_id}. Rate it from 0 (very bad) to 5 (excellent).")


def _command_clear(controller: SleepTrackerController, timeout: float) -> None:
    controller.clear().result(timeout=timeout)
    if controller.notify_cleared.consume():
        print("All your sleep data has been cleared.")


def _command_status(controller: SleepTrackerController) -> None:
    state = controller.snapshot()
    if state.tonight_id is not None:
        print(f"Tracking night {state.tonight_id}.")
    else:
        print("Not tracking.")
    print(f"start: {_on_off(state.start_enabled)}")
    print(f"stop: {_on_off(state.stop_enabled)}")
    print(f"clear: {_on_off(state.clear_enabled)}")


def _report_errors(controller: SleepTrackerController) -> int:
    message = controller.storage_error.consume()
    if message is None:
        return 0
    print(f"Error: {message}")
    return 1


def _on_off(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


def _load_env() -> None:
    env_path = Path(__file__).resolve().parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level_name).upper(), logging.INFO))


if __name__ == "__main__":
    raise SystemExit(main())
