from __future__ import annotations

import json
import logging
import re
import traceback
from typing import Any

_DEFAULT_LOGGER_NAME = "sleeptracker.observability"
_KEY_VALUE_PATTERN = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)=([^\s,]+)")


class LogManager:
    """Writes one JSON line per tracker event."""

    def __init__(self, logger_name: str = _DEFAULT_LOGGER_NAME) -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(
        self,
        level: int,
        *,
        component: str,
        event: str,
        message: str,
        fields: dict[str, Any] | None = None,
    ) -> None:
        record = {**(fields or {}), "event": event, "component": component, "message": message}
        self._logger.log(level, "event %s", json.dumps(record, separators=(",", ":"), default=str))


class StructuredLoggerAdapter:
    """Logger-style front for LogManager.

    ``night_id=4`` style pairs in the formatted message become fields of the
    event; ``extra={"event": ...}`` names it.
    """

    def __init__(self, *, manager: LogManager, component: str) -> None:
        self._manager = manager
        self._component = component

    def info(self, msg: str, *args: Any, extra: dict[str, Any] | None = None) -> None:
        self._emit(logging.INFO, msg, args, extra)

    def warning(self, msg: str, *args: Any, extra: dict[str, Any] | None = None) -> None:
        self._emit(logging.WARNING, msg, args, extra)

    def exception(
        self,
        msg: str,
        *args: Any,
        exc_info: BaseException,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self._emit(
            logging.ERROR,
            msg,
            args,
            extra,
            error_code=type(exc_info).__name__,
            error=str(exc_info),
            stack_excerpt="".join(traceback.format_exception(exc_info, limit=10)),
        )

    def _emit(
        self,
        level: int,
        msg: str,
        args: tuple[Any, ...],
        extra: dict[str, Any] | None,
        **error_fields: Any,
    ) -> None:
        text = msg % args if args else msg
        fields: dict[str, Any] = {
            key: _coerce(value) for key, value in _KEY_VALUE_PATTERN.findall(text)
        }
        fields.update(extra or {})
        fields.update(error_fields)
        event = str(fields.pop("event", None) or f"{self._component}.log")
        self._manager.emit(
            level, component=self._component, event=event, message=text, fields=fields
        )


def _coerce(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        return value


_DEFAULT_MANAGER: LogManager | None = None


def get_log_manager() -> LogManager:
    global _DEFAULT_MANAGER
    if _DEFAULT_MANAGER is None:
        _DEFAULT_MANAGER = LogManager()
    return _DEFAULT_MANAGER


def get_component_logger(component: str) -> StructuredLoggerAdapter:
    return StructuredLoggerAdapter(manager=get_log_manager(), component=component)
