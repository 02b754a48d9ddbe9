"""
Named log channels.

An ``OutputChannelLog`` buffers lines for one project (its log, or the
output of its runner processes). ``attach_to`` connects a ``logging``
logger to the channel so component loggers write into it.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

DEFAULT_MAX_LINES = 10_000
CHANNEL_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"

RevealHandler = Callable[["OutputChannelLog"], None]


class OutputChannelHandler(logging.Handler):
    """Logging handler that appends formatted records to a channel."""

    def __init__(self, channel: "OutputChannelLog", level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.channel = channel
        self.setFormatter(logging.Formatter(CHANNEL_LOG_FORMAT, datefmt="%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.channel.append_line(self.format(record))
        except Exception:
            self.handleError(record)


class OutputChannelLog:

    def __init__(
        self,
        name: str,
        *,
        enabled: bool = True,
        max_lines: int = DEFAULT_MAX_LINES,
        reveal_handler: Optional[RevealHandler] = None,
    ) -> None:
        self.name = name
        self.enabled = enabled
        self.reveal_handler = reveal_handler
        self._lines: Deque[str] = deque(maxlen=max_lines)
        self._partial = ""
        self._attachments: List[Tuple[logging.Logger, OutputChannelHandler]] = []
        self._disposed = False

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def append(self, text: str) -> None:
        """Append raw output, splitting it into lines."""
        if not self.enabled or self._disposed or not text:
            return
        *complete, self._partial = (self._partial + text).split("\n")
        self._lines.extend(line.rstrip("\r") for line in complete)

    def append_line(self, line: str) -> None:
        if not self.enabled or self._disposed:
            return
        if self._partial:
            self._lines.append(self._partial)
            self._partial = ""
        self._lines.append(line)

    def clear(self) -> None:
        self._lines.clear()
        self._partial = ""

    def show(self) -> None:
        if self.reveal_handler is not None:
            self.reveal_handler(self)
            return
        sys.stdout.write(f"===== {self.name} =====\n")
        for line in self._lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()

    def attach_to(self, logger: logging.Logger, level: int = logging.NOTSET) -> OutputChannelHandler:
        handler = OutputChannelHandler(self, level)
        logger.addHandler(handler)
        self._attachments.append((logger, handler))
        return handler

    def dispose(self) -> None:
        if self._disposed:
            return
        for logger, handler in self._attachments:
            logger.removeHandler(handler)
            handler.close()
        self._attachments.clear()
        self._disposed = True
        self.clear()


__all__ = ["OutputChannelHandler", "OutputChannelLog"]
