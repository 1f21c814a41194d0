"""Minimal observer plumbing for interpreter change notifications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

T = TypeVar("T")


class Disposable:
    """Handle returned by a subscription; call it (or :meth:`dispose`) to unsubscribe."""

    def __init__(self, on_dispose: Callable[[], None]) -> None:
        self._on_dispose: Callable[[], None] | None = on_dispose

    def dispose(self) -> None:
        if self._on_dispose is not None:
            on_dispose, self._on_dispose = self._on_dispose, None
            on_dispose()

    __call__ = dispose


class Event(Generic[T]):
    """Subscribe a listener by calling the event with it."""

    def __init__(self, emitter: EventEmitter[T]) -> None:
        self._emitter = emitter

    def __call__(self, listener: Callable[[T], object]) -> Disposable:
        return self._emitter._add(listener)  # noqa: SLF001


class EventEmitter(Generic[T]):
    """Fires values to subscribed listeners in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], object]] = []
        self._event: Event[T] = Event(self)

    @property
    def event(self) -> Event[T]:
        return self._event

    def _add(self, listener: Callable[[T], object]) -> Disposable:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(remove)

    def fire(self, value: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                _LOGGER.exception("listener %r failed", listener)

    def dispose(self) -> None:
        self._listeners.clear()


__all__ = [
    "Disposable",
    "Event",
    "EventEmitter",
]
