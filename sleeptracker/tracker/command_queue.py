from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Command:
    name: str
    run: Callable[[], Any]
    future: Future


class CommandQueue:
    """Single worker thread applying commands strictly in submission order."""

    def __init__(self, *, name: str = "sleeptracker-commands") -> None:
        self.name = name
        self._queue: Queue[Command | None] = Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self.name} is closed")
            if self._thread and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        logger.debug("Command queue %s started", self.name)

    def submit(self, name: str, run: Callable[[], Any]) -> Future:
        future: Future = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self.name} is closed")
            self._queue.put(Command(name=name, run=run, future=future))
        return future

    def shutdown(self, *, timeout: float = 5.0) -> int:
        """Cancel queued commands, let the running one finish, stop the worker.

        Returns the number of commands that were cancelled.
        """
        with self._lock:
            if self._closed:
                return 0
            self._closed = True
            cancelled = self._drain()
            self._queue.put(None)
            thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.debug("Command queue %s stopped cancelled=%s", self.name, cancelled)
        return cancelled

    def _drain(self) -> int:
        cancelled = 0
        while True:
            try:
                command = self._queue.get_nowait()
            except Empty:
                return cancelled
            if command is not None and command.future.cancel():
                cancelled += 1
                logger.debug("Cancelled queued command %s", command.name)

    def _run(self) -> None:
        while True:
            command = self._queue.get()
            if command is None:
                return
            if not command.future.set_running_or_notify_cancel():
                continue
            started = time.monotonic()
            try:
                result = command.run()
            except Exception as exc:
                logger.debug("Command %s raised %s", command.name, type(exc).__name__)
                command.future.set_exception(exc)
                continue
            command.future.set_result(result)
            logger.debug(
                "Command %s finished latency_ms=%s",
                command.name,
                int((time.monotonic() - started) * 1000),
            )
