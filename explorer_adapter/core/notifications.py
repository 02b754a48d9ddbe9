"""Status display and user-facing notifications for one project."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable

from .logging_utils import LoggerLike, ensure_structured_logger, get_module_logger


@runtime_checkable
class StatusDisplay(Protocol):
    text: str

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...


class LoggingStatusDisplay:
    """Status display that reports text changes to the log."""

    def __init__(self, name: str = "status") -> None:
        self.logger = get_module_logger("StatusDisplay")
        self.name = name
        self.text = ""
        self.visible = False

    def show(self) -> None:
        self.visible = True
        if self.text:
            self.logger.info("%s: %s", self.name, self.text)

    def hide(self) -> None:
        self.visible = False


class MessageType(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StatusType(Enum):
    BUSY = "busy"
    DONE = "done"
    WARNING = "warning"
    FAILED = "failed"


_STATUS_ICONS = {
    StatusType.BUSY: "…",
    StatusType.DONE: "✓",
    StatusType.WARNING: "!",
    StatusType.FAILED: "✗",
}


class NotificationHandler:

    def __init__(
        self,
        status_display: StatusDisplay,
        logger: LoggerLike = None,
        *,
        show_log_command: Optional[str] = None,
    ) -> None:
        self.status_display = status_display
        self.logger = ensure_structured_logger(logger, fallback_name="NotificationHandler")
        self.show_log_command = show_log_command
        self.notifications: List[tuple[MessageType, str, List[str]]] = []

    def notify(self, message_type: MessageType, message: str, *, show_log_action: bool = True) -> None:
        actions = [self.show_log_command] if show_log_action and self.show_log_command else []
        self.notifications.append((message_type, message, actions))
        log = {
            MessageType.INFO: self.logger.info,
            MessageType.WARNING: self.logger.warning,
            MessageType.ERROR: self.logger.error,
        }[message_type]
        if actions:
            log("%s (see: %s)", message, ", ".join(actions))
        else:
            log("%s", message)

    def notify_status(self, status_type: StatusType, text: str) -> None:
        self.status_display.text = f"{_STATUS_ICONS[status_type]} {text}"
        self.status_display.show()

    def dispose(self) -> None:
        self.status_display.hide()


__all__ = [
    "LoggingStatusDisplay",
    "MessageType",
    "NotificationHandler",
    "StatusDisplay",
    "StatusType",
]
