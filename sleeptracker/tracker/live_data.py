from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class LiveValue(Generic[T]):
    """Observable value.

    Observers are called with the current value when they subscribe and
    again on every ``set``, on the thread that called ``set``.
    """

    def __init__(self, initial: T) -> None:
        self._lock = threading.Lock()
        self._value = initial
        self._observers: dict[str, Callable[[T], None]] = {}

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            observers = list(self._observers.values())
        for observer in observers:
            observer(value)

    def observe(self, callback: Callable[[T], None]) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            self._observers[token] = callback
            current = self._value
        callback(current)
        return token

    def remove_observer(self, token: str) -> None:
        with self._lock:
            self._observers.pop(token, None)

    def map(self, transform: Callable[[T], U]) -> LiveValue[U]:
        derived: LiveValue[U] = LiveValue(transform(self.value))
        self.observe(lambda value: derived.set(transform(value)))
        return derived


class OneShotEvent(Generic[T]):
    """Pending-event slot delivered until the consumer acknowledges it.

    ``emit`` stores the payload and notifies observers. A late observer
    still sees a pending payload on subscription; once ``acknowledge`` (or
    ``consume``) clears the slot, re-subscribing delivers nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: T | None = None
        self._observers: dict[str, Callable[[T], None]] = {}

    @property
    def pending(self) -> T | None:
        with self._lock:
            return self._pending

    def emit(self, payload: T) -> None:
        with self._lock:
            self._pending = payload
            observers = list(self._observers.values())
        for observer in observers:
            observer(payload)

    def acknowledge(self) -> None:
        with self._lock:
            self._pending = None

    def consume(self) -> T | None:
        with self._lock:
            payload = self._pending
            self._pending = None
        return payload

    def observe(self, callback: Callable[[T], None]) -> str:
        token = str(uuid.uuid4())
        with self._lock:
            self._observers[token] = callback
            pending = self._pending
        if pending is not None:
            callback(pending)
        return token

    def remove_observer(self, token: str) -> None:
        with self._lock:
            self._observers.pop(token, None)
