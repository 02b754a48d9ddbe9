"""
Disposable resources and the registry that releases them.

A ``Disposer`` keeps an ordered list of resources and releases them
last-registered-first. Every resource is released at most once, and a
failure in one release is logged without stopping the others.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Iterable, List, Optional, Protocol, Union, runtime_checkable

from .asyncio_utils import maybe_await
from .logging_utils import LoggerLike, ensure_structured_logger


@runtime_checkable
class Disposable(Protocol):
    """Anything with a ``dispose()`` method, sync or async."""

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


class DisposableCallback:
    """Wrap a plain callable so it can be registered as a resource."""

    def __init__(self, callback: Callable[[], Any], name: Optional[str] = None) -> None:
        self._callback: Optional[Callable[[], Any]] = callback
        self.name = name or getattr(callback, "__qualname__", repr(callback))

    @property
    def is_disposed(self) -> bool:
        return self._callback is None

    def dispose(self) -> Union[None, Awaitable[None]]:
        """Run the callback once; an async callback's awaitable is returned."""
        callback, self._callback = self._callback, None
        if callback is None:
            return None
        return callback()

    def __repr__(self) -> str:
        return f"DisposableCallback({self.name})"


def describe(resource: object) -> str:
    return getattr(resource, "name", None) or type(resource).__name__


class Disposer:
    """Ordered registry of resources released in reverse order."""

    def __init__(self, logger: LoggerLike = None, *, name: str = "resources") -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="Disposer")
        self.name = name
        self._resources: List[Disposable] = []

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def resources(self) -> List[Disposable]:
        return list(self._resources)

    def register(self, *resources: Disposable) -> None:
        for resource in resources:
            if not callable(getattr(resource, "dispose", None)):
                raise TypeError(f"{resource!r} has no dispose() method")
            self._resources.append(resource)

    async def dispose_all(self) -> int:
        """Release every registered resource; returns how many failed."""
        # Detach the list first so a concurrent call sees nothing to release
        resources, self._resources = self._resources, []
        if resources:
            self.logger.debug("Disposing %d %s", len(resources), self.name)
        return await Disposer.dispose(reversed(resources), self.logger)

    @staticmethod
    async def dispose(resources: Iterable[Disposable], logger: LoggerLike = None) -> int:
        """Dispose ``resources`` in the given order, containing failures."""
        log = ensure_structured_logger(logger, fallback_name="Disposer")
        failures = 0
        for resource in resources:
            try:
                await maybe_await(resource.dispose())
            except Exception as exc:
                failures += 1
                log.error("Failed to dispose %s: %s", describe(resource), exc, exc_info=True)
        return failures


__all__ = ["Disposable", "DisposableCallback", "Disposer"]
