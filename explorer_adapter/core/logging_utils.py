"""Shared logging helpers for the explorer adapter."""

from __future__ import annotations

import logging
from typing import Optional, Union

LOGGER_NAMESPACE = "explorer_adapter"
PROJECT_LOGGER_NAMESPACE = f"{LOGGER_NAMESPACE}.project"
DEFAULT_COMPONENT = "Core"

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def coerce_log_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Translate a level name such as ``"debug"`` into a logging level."""
    if level is None or level == "":
        return default
    if isinstance(level, int):
        return level
    name = str(level).strip().lower()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'")
    return LOG_LEVELS[name]


def _normalize_logger_name(name: Optional[str]) -> str:
    if not name:
        return LOGGER_NAMESPACE
    if name.startswith(LOGGER_NAMESPACE):
        return name
    return f"{LOGGER_NAMESPACE}.{name}"


def _derive_component(name: str) -> str:
    if not name:
        return DEFAULT_COMPONENT
    return name.rsplit(".", 1)[-1] or DEFAULT_COMPONENT


class StructuredLogger:
    """Thin wrapper that tags every message with its component name."""

    __slots__ = ("_logger", "_component")

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        object.__setattr__(self, "_logger", logger)
        object.__setattr__(self, "_component", component or _derive_component(logger.name))

    def __getattr__(self, item):
        return getattr(self._logger, item)

    def __setattr__(self, key, value):
        if key in self.__slots__:
            object.__setattr__(self, key, value)
        else:
            setattr(self._logger, key, value)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"StructuredLogger({self._logger!r}, component={self._component!r})"

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def component(self) -> str:
        return self._component

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _compose(self, message: object, args: tuple) -> str:
        text = str(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = f"{text} | args={' '.join(str(arg) for arg in args)}"
        prefix = f"[{self._component}]"
        if not text.startswith(prefix):
            text = f"{prefix} {text}"
        return text

    def _emit(self, level: int, message: object, *args, **kwargs) -> None:
        # Skip formatting entirely when the level is filtered out
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, self._compose(message, args), **kwargs)

    def log(self, level: int, message: object, *args, **kwargs) -> None:
        self._emit(level, message, *args, **kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.INFO, message, *args, **kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.WARNING, message, *args, **kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: object, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.CRITICAL, message, *args, **kwargs)

    def getChild(self, suffix: str) -> "StructuredLogger":
        return StructuredLogger(self._logger.getChild(suffix), component=f"{self._component}.{suffix}")


LoggerLike = Union[StructuredLogger, logging.Logger, logging.LoggerAdapter, None]


def ensure_structured_logger(
    logger: LoggerLike,
    *,
    component: Optional[str] = None,
    fallback_name: Optional[str] = None,
) -> StructuredLogger:
    """Return a StructuredLogger wrapping ``logger`` (or a new module logger)."""
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.LoggerAdapter):
        return StructuredLogger(logger.logger, component=component)
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger, component=component)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Return a structured logger scoped to the explorer_adapter namespace."""
    return StructuredLogger(logging.getLogger(_normalize_logger_name(name)))


def get_project_logger(project_namespace: str, component: str) -> StructuredLogger:
    """Return a component logger below the per-project logger."""
    base = logging.getLogger(f"{PROJECT_LOGGER_NAMESPACE}.{project_namespace}")
    return StructuredLogger(base.getChild(component), component=component)


__all__ = [
    "LOG_LEVELS",
    "LoggerLike",
    "StructuredLogger",
    "coerce_log_level",
    "ensure_structured_logger",
    "get_module_logger",
    "get_project_logger",
]
