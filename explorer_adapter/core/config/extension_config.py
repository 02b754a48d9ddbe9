"""Typed, validated snapshot of a project's configuration."""

from __future__ import annotations

import shlex
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ConfigurationError
from ..logging_utils import LOG_LEVELS
from .config_setting import GeneralConfigSetting, InternalConfigSetting, ProjectConfigSetting
from .config_store import ConfigStore, SettingKey, setting_name

RUNNER_LOG_LEVELS = ("disable", "error", "warning", "info", "debug")

DEFAULT_TEST_FILES: Tuple[str, ...] = ("**/test_*.py", "**/*_test.py")
DEFAULT_EXCLUDE_FILES: Tuple[str, ...] = (
    "**/.git/**",
    "**/.venv/**",
    "**/venv/**",
    "**/node_modules/**",
    "**/__pycache__/**",
)
DEFAULT_DEBUGGER_PORT = 5678


def default_test_command() -> str:
    return f"{shlex.quote(sys.executable)} -m pytest -q"


def default_debug_command() -> str:
    return f"{shlex.quote(sys.executable)} -m debugpy --listen {{port}} --wait-for-client -m pytest -q"


def parse_bool(value: Any, default: bool = False) -> Optional[bool]:
    """Parse common string representations into booleans (None if unknown)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value

    normalized = str(value).strip().lower()
    if not normalized:
        return default
    if normalized in {'1', 'true', 'yes', 'on'}:
        return True
    if normalized in {'0', 'false', 'no', 'off'}:
        return False
    return None


def parse_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [part.strip() for part in str(value).split(',') if part.strip()]


@dataclass(frozen=True)
class ExtensionConfig:
    project_path: Path
    log_level: str = "info"
    runner_log_level: str = "info"
    test_files: Tuple[str, ...] = DEFAULT_TEST_FILES
    exclude_files: Tuple[str, ...] = DEFAULT_EXCLUDE_FILES
    test_command: str = field(default_factory=default_test_command)
    debug_command: str = field(default_factory=default_debug_command)
    debugger_port: int = DEFAULT_DEBUGGER_PORT
    test_timeout: Optional[float] = None
    watch_interval: float = 2.0
    reload_on_changed_files: bool = True

    @property
    def runner_log_enabled(self) -> bool:
        return self.runner_log_level != "disable"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_store(cls, store: ConfigStore, workspace_path: Path) -> "ExtensionConfig":
        """Build a snapshot from ``store``; raises ConfigurationError."""
        reader = _SettingReader(store)

        project_path = Path(reader.text(InternalConfigSetting.PROJECT_PATH, str(workspace_path)))
        if not project_path.is_absolute():
            project_path = Path(workspace_path) / project_path

        log_level = reader.choice(GeneralConfigSetting.LOG_LEVEL, "info", LOG_LEVELS)
        runner_log_level = reader.choice(ProjectConfigSetting.RUNNER_LOG_LEVEL, "info", RUNNER_LOG_LEVELS)

        test_files = tuple(reader.items(ProjectConfigSetting.TEST_FILES, DEFAULT_TEST_FILES))
        if not test_files:
            raise ConfigurationError(
                setting_name(ProjectConfigSetting.TEST_FILES), test_files, "at least one pattern is required"
            )

        test_command = reader.command(ProjectConfigSetting.TEST_COMMAND, default_test_command())
        debug_command = reader.command(ProjectConfigSetting.DEBUG_COMMAND, default_debug_command())

        debugger_port = reader.integer(ProjectConfigSetting.DEBUGGER_PORT, DEFAULT_DEBUGGER_PORT)
        if not 1 <= debugger_port <= 65535:
            raise ConfigurationError(
                setting_name(ProjectConfigSetting.DEBUGGER_PORT), debugger_port, "must be a TCP port"
            )

        test_timeout = reader.number(ProjectConfigSetting.TEST_TIMEOUT, 0.0)
        watch_interval = reader.number(ProjectConfigSetting.WATCH_INTERVAL, 2.0)

        return cls(
            project_path=project_path,
            log_level=log_level,
            runner_log_level=runner_log_level,
            test_files=test_files,
            exclude_files=tuple(reader.items(ProjectConfigSetting.EXCLUDE_FILES, DEFAULT_EXCLUDE_FILES)),
            test_command=test_command,
            debug_command=debug_command,
            debugger_port=debugger_port,
            test_timeout=test_timeout or None,
            watch_interval=watch_interval,
            reload_on_changed_files=reader.flag(ProjectConfigSetting.RELOAD_ON_CHANGED_FILES, True),
        )


class _SettingReader:
    """Coerces raw store values, naming the setting on failure."""

    def __init__(self, store: ConfigStore) -> None:
        self._store = store

    def _raw(self, setting: SettingKey) -> Any:
        value = self._store.get(setting)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def text(self, setting: SettingKey, default: str) -> str:
        value = self._raw(setting)
        return default if value is None else str(value).strip()

    def choice(self, setting: SettingKey, default: str, allowed) -> str:
        value = self.text(setting, default).lower()
        if value not in allowed:
            raise ConfigurationError(setting_name(setting), value, f"expected one of {', '.join(allowed)}")
        return value

    def items(self, setting: SettingKey, default) -> List[str]:
        value = self._raw(setting)
        return list(default) if value is None else parse_list(value)

    def command(self, setting: SettingKey, default: str) -> str:
        value = self.text(setting, default)
        try:
            parts = shlex.split(value)
        except ValueError as exc:
            raise ConfigurationError(setting_name(setting), value, str(exc)) from exc
        if not parts:
            raise ConfigurationError(setting_name(setting), value, "command is empty")
        return value

    def integer(self, setting: SettingKey, default: int) -> int:
        value = self._raw(setting)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(setting_name(setting), value, "expected an integer") from exc

    def number(self, setting: SettingKey, default: float) -> float:
        value = self._raw(setting)
        if value is None:
            return default
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(setting_name(setting), value, "expected a number") from exc
        if number < 0:
            raise ConfigurationError(setting_name(setting), value, "must not be negative")
        return number

    def flag(self, setting: SettingKey, default: bool) -> bool:
        value = parse_bool(self._raw(setting), default)
        if value is None:
            raise ConfigurationError(setting_name(setting), self._raw(setting), "expected true or false")
        return value


__all__ = ["ExtensionConfig", "RUNNER_LOG_LEVELS", "parse_bool", "parse_list"]
