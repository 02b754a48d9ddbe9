"""Exception types raised by the explorer adapter."""

from __future__ import annotations

from typing import Optional, Sequence


class ExplorerAdapterError(RuntimeError):
    """Base class for adapter failures."""


class AdapterDisposedError(ExplorerAdapterError):
    """An operation was invoked on an adapter after ``dispose()``."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}: adapter has been disposed")
        self.operation = operation


class SessionSupersededError(ExplorerAdapterError):
    """The session an operation was bound to was replaced by a reset."""

    def __init__(self, operation: str, generation: Optional[int] = None) -> None:
        suffix = f" (session generation {generation})" if generation is not None else ""
        super().__init__(f"{operation} aborted: test explorer session was superseded{suffix}")
        self.operation = operation
        self.generation = generation


class ComponentConstructionError(ExplorerAdapterError):
    """The component factory could not assemble a session."""


class ConfigurationError(ExplorerAdapterError, ValueError):
    """A configuration setting holds an invalid value."""

    def __init__(self, setting: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid value for setting '{setting}' ({value!r}): {reason}")
        self.setting = setting
        self.value = value


class InvalidTestIdsError(ExplorerAdapterError, ValueError):
    """Test ids passed to run/debug are malformed or unknown."""

    def __init__(self, message: str, test_ids: Sequence[object] = ()) -> None:
        super().__init__(message)
        self.test_ids = list(test_ids)


class PortUnavailableError(ExplorerAdapterError):
    """No free port could be reserved in the requested range."""


class DebuggerAttachError(ExplorerAdapterError):
    """The host declined or failed to attach a debugger."""


class ProcessTerminatedError(ExplorerAdapterError):
    """A runner process was terminated before it completed."""


__all__ = [
    "AdapterDisposedError",
    "ComponentConstructionError",
    "ConfigurationError",
    "DebuggerAttachError",
    "ExplorerAdapterError",
    "InvalidTestIdsError",
    "PortUnavailableError",
    "ProcessTerminatedError",
    "SessionSupersededError",
]
