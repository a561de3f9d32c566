"""Live values for the presentation layer.

An ``Observable`` holds the latest value and calls subscribers synchronously
on every change. Subscriber failures are logged and never reach the writer.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Observable(Generic[T]):
    """Latest-value holder with change notification."""

    __slots__ = ("_listeners", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: list[Listener[T]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify subscribers when it changed."""
        if value == self._value:
            return
        self._value = value
        for listener in tuple(self._listeners):
            try:
                listener(value)
            except Exception as e:
                log.error(
                    "Observer '%s' failed: %s",
                    getattr(listener, "__name__", type(listener).__name__),
                    e,
                    exc_info=True,
                )

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register *listener* and return a callable that unregisters it.

        The listener is not called with the current value; read ``value``
        for the initial render.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
