"""
Multicast event channels.

An ``EventEmitter`` owns a stable ``event`` subscription point. Listeners
subscribe by calling ``emitter.event(listener)`` and receive every value
passed to ``fire()`` until they dispose the returned subscription or the
emitter itself is disposed. Listener failures are logged and never reach
the code that fired the event.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .asyncio_utils import create_logged_task, has_running_loop
from .disposable import DisposableCallback
from .logging_utils import LoggerLike, ensure_structured_logger

T = TypeVar("T")

Listener = Callable[[T], Any]


class Event(Generic[T]):
    """Subscribe-only view of an emitter."""

    __slots__ = ("_emitter",)

    def __init__(self, emitter: "EventEmitter[T]") -> None:
        self._emitter = emitter

    def __call__(self, listener: Listener) -> DisposableCallback:
        return self._emitter.subscribe(listener)

    @property
    def name(self) -> str:
        return self._emitter.name

    def __repr__(self) -> str:
        return f"Event({self._emitter.name})"


class EventEmitter(Generic[T]):

    def __init__(self, name: str = "event", logger: LoggerLike = None) -> None:
        self.name = name
        self.logger = ensure_structured_logger(logger, fallback_name="EventEmitter")
        self._listeners: List[Listener] = []
        self._event: Event[T] = Event(self)
        self._disposed = False
        self._muted = False

    @property
    def event(self) -> Event[T]:
        return self._event

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> DisposableCallback:
        if not callable(listener):
            raise TypeError(f"Listener for {self.name} must be callable")
        if self._disposed:
            self.logger.warning("Ignoring subscription to disposed emitter %s", self.name)
            return DisposableCallback(lambda: None, name=f"{self.name} subscription")

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return DisposableCallback(_unsubscribe, name=f"{self.name} subscription")

    def fire(self, data: T) -> None:
        """Deliver ``data`` to every listener registered at call time.

        Coroutine listeners are scheduled as logged tasks when a loop is
        running; a disposed or muted emitter drops the event.
        """
        if self._disposed or self._muted:
            self.logger.debug("Dropping %s event on silenced emitter %s", type(data).__name__, self.name)
            return

        for listener in list(self._listeners):
            try:
                result = listener(data)
            except Exception as exc:
                self.logger.error(
                    "Listener %s failed handling %s event: %s",
                    _listener_name(listener),
                    self.name,
                    exc,
                    exc_info=True,
                )
                continue

            if inspect.isawaitable(result):
                self._schedule(result, listener)

    def _schedule(self, awaitable: Any, listener: Listener) -> None:
        if not has_running_loop():
            self.logger.warning(
                "No running event loop for async listener %s on %s",
                _listener_name(listener),
                self.name,
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        create_logged_task(
            awaitable,
            logger=self.logger,
            context=f"{self.name} listener {_listener_name(listener)}",
        )

    def mute(self) -> None:
        """Drop every later event while keeping the subscriptions."""
        self._muted = True

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._listeners.clear()
        self.logger.debug("Disposed emitter %s", self.name)


def _listener_name(listener: Optional[Listener]) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


__all__ = ["Event", "EventEmitter", "Listener"]
