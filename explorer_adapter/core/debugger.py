"""Debug session bookkeeping on top of a host-provided attach hook."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from .asyncio_utils import maybe_await
from .errors import DebuggerAttachError
from .logging_utils import LoggerLike, ensure_structured_logger


@dataclass(frozen=True)
class DebugConfiguration:
    name: str
    port: int
    host: str = "127.0.0.1"
    cwd: Optional[Path] = None
    type: str = "python"
    request: str = "attach"


@dataclass
class DebugSession:
    configuration: DebugConfiguration
    started_at: float = field(default_factory=time.monotonic)
    active: bool = True


AttachHandler = Callable[[DebugConfiguration], "Awaitable[bool] | bool"]
DetachHandler = Callable[[DebugConfiguration], "Awaitable[None] | None"]


class Debugger:
    """
    Starts and tracks debug sessions for one project.

    Session names are prefixed with the debugger namespace so sessions from
    several projects stay distinguishable in the host.
    """

    def __init__(
        self,
        logger: LoggerLike = None,
        *,
        debugger_namespace: str,
        attach_handler: Optional[AttachHandler] = None,
        detach_handler: Optional[DetachHandler] = None,
    ) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="Debugger")
        self.debugger_namespace = debugger_namespace
        self._attach_handler = attach_handler
        self._detach_handler = detach_handler
        self._sessions: Dict[str, DebugSession] = {}

    @property
    def is_debugging(self) -> bool:
        return bool(self._sessions)

    @property
    def active_sessions(self) -> list[DebugSession]:
        return list(self._sessions.values())

    async def start_debug_session(self, name: str, port: int, *, cwd: Optional[Path] = None) -> DebugSession:
        configuration = DebugConfiguration(name=f"{self.debugger_namespace}: {name}", port=port, cwd=cwd)

        if configuration.name in self._sessions:
            raise DebuggerAttachError(f"Debug session '{configuration.name}' is already active")

        if self._attach_handler is None:
            self.logger.info(
                "Waiting for a debugger to attach to %s:%d (%s)",
                configuration.host,
                configuration.port,
                configuration.name,
            )
        else:
            self.logger.debug("Requesting debugger attach for %s on port %d", configuration.name, port)
            try:
                attached = await maybe_await(self._attach_handler(configuration))
            except Exception as exc:
                raise DebuggerAttachError(f"Debugger attach failed for {configuration.name}: {exc}") from exc
            if not attached:
                raise DebuggerAttachError(f"Debugger attach was declined for {configuration.name}")

        session = DebugSession(configuration)
        self._sessions[configuration.name] = session
        return session

    async def stop_debug_session(self, session: DebugSession) -> None:
        if self._sessions.pop(session.configuration.name, None) is None:
            return
        session.active = False
        if self._detach_handler is not None:
            try:
                await maybe_await(self._detach_handler(session.configuration))
            except Exception as exc:
                self.logger.warning("Failed to detach debugger from %s: %s", session.configuration.name, exc)
        self.logger.debug(
            "Debug session %s ended after %.1fs",
            session.configuration.name,
            time.monotonic() - session.started_at,
        )

    async def dispose(self) -> None:
        for session in list(self._sessions.values()):
            await self.stop_debug_session(session)


__all__ = ["DebugConfiguration", "DebugSession", "Debugger"]
