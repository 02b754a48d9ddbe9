"""Host command registry and per-project namespaced commands."""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .asyncio_utils import maybe_await
from .disposable import DisposableCallback
from .logging_utils import LoggerLike, ensure_structured_logger, get_module_logger

CommandHandler = Callable[..., "Awaitable[Any] | Any"]


class ProjectCommand(str, Enum):
    SHOW_LOG = "show-log"
    RESET = "reset"


class CommandRegistry:
    """All commands known to the host, keyed by full command id."""

    def __init__(self) -> None:
        self.logger = get_module_logger("CommandRegistry")
        self._handlers: Dict[str, CommandHandler] = {}

    def register_command(self, command_id: str, handler: CommandHandler) -> DisposableCallback:
        if command_id in self._handlers:
            raise ValueError(f"Command '{command_id}' is already registered")
        self._handlers[command_id] = handler
        self.logger.debug("Registered command %s", command_id)

        def _unregister() -> None:
            if self._handlers.get(command_id) is handler:
                del self._handlers[command_id]
                self.logger.debug("Unregistered command %s", command_id)

        return DisposableCallback(_unregister, name=f"command {command_id}")

    def get_commands(self) -> List[str]:
        return sorted(self._handlers)

    def has_command(self, command_id: str) -> bool:
        return command_id in self._handlers

    async def execute_command(self, command_id: str, *args: Any) -> Any:
        handler = self._handlers.get(command_id)
        if handler is None:
            raise KeyError(f"Unknown command '{command_id}'")
        self.logger.debug("Executing command %s", command_id)
        return await maybe_await(handler(*args))


_command_registry = CommandRegistry()


def get_command_registry() -> CommandRegistry:
    return _command_registry


class Commands:
    """Commands of one project, registered under ``<namespace>.<command>``."""

    def __init__(
        self,
        logger: LoggerLike = None,
        namespace: str = "explorer",
        *,
        registry: Optional[CommandRegistry] = None,
    ) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="Commands")
        self.namespace = namespace
        self.registry = registry or get_command_registry()
        self._registrations: Dict[str, DisposableCallback] = {}

    def get_command_name(self, command: ProjectCommand) -> str:
        return f"{self.namespace}.{ProjectCommand(command).value}"

    def register(self, command: ProjectCommand, handler: CommandHandler) -> DisposableCallback:
        command_name = self.get_command_name(command)
        registration = self.registry.register_command(command_name, handler)
        self._registrations[command_name] = registration
        return registration

    async def execute(self, command: ProjectCommand, *args: Any) -> Any:
        return await self.registry.execute_command(self.get_command_name(command), *args)

    @property
    def registered_commands(self) -> List[str]:
        return sorted(self._registrations)

    def dispose(self) -> None:
        for registration in self._registrations.values():
            registration.dispose()
        self._registrations.clear()


__all__ = ["CommandRegistry", "Commands", "ProjectCommand", "get_command_registry"]
