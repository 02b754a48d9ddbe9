"""
Configuration store keyed by setting name.

Values come from a mapping, a ``key = value`` text file, or both (file
values first, explicit values on top). Every update that changes a value
fires ``on_did_change`` with the set of changed keys.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import aiofiles

from ..event_emitter import Event, EventEmitter
from ..logging_utils import get_module_logger

SettingKey = Union[str, Enum]

_MISSING = object()


def setting_name(setting: SettingKey) -> str:
    return setting.value if isinstance(setting, Enum) else str(setting)


def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
    config: Dict[str, str] = {}

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue
        if '=' not in line:
            continue

        key, value = line.split('=', 1)
        key = key.strip()
        value = value.strip()

        if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
            value = value[1:-1]
        elif ' #' in value:
            value = value.split(' #')[0].strip()

        config[key] = value

    return config


class ConfigStore:

    def __init__(
        self,
        values: Optional[Mapping[SettingKey, Any]] = None,
        *,
        config_path: Optional[Path] = None,
    ) -> None:
        self.logger = get_module_logger("ConfigStore")
        self.config_path = Path(config_path) if config_path else None
        self._file_values: Dict[str, Any] = {}
        self._explicit_values: Dict[str, Any] = {
            setting_name(key): value for key, value in (values or {}).items()
        }
        self._values: Dict[str, Any] = dict(self._explicit_values)
        self._change_emitter: EventEmitter[frozenset] = EventEmitter("config-change", self.logger)

    @classmethod
    def from_file(cls, config_path: Path, values: Optional[Mapping[SettingKey, Any]] = None) -> "ConfigStore":
        store = cls(values, config_path=config_path)
        store.load_file()
        return store

    @property
    def on_did_change(self) -> Event[frozenset]:
        return self._change_emitter.event

    # ------------------------------------------------------------------
    # Lookup

    def get(self, setting: SettingKey, default: Any = None) -> Any:
        return self._values.get(setting_name(setting), default)

    def has(self, setting: SettingKey) -> bool:
        return setting_name(setting) in self._values

    def __contains__(self, setting: object) -> bool:
        return isinstance(setting, (str, Enum)) and self.has(setting)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    # ------------------------------------------------------------------
    # Mutation

    def update(self, values: Mapping[SettingKey, Any]) -> frozenset:
        """Set explicit values; returns the keys whose value changed."""
        for key, value in values.items():
            self._explicit_values[setting_name(key)] = value
        return self._recompute()

    def unset(self, setting: SettingKey) -> frozenset:
        self._explicit_values.pop(setting_name(setting), None)
        return self._recompute()

    def load_file(self) -> frozenset:
        if self.config_path is None:
            return frozenset()
        self._file_values = self._read_file_sync(self.config_path)
        return self._recompute()

    async def load_file_async(self) -> frozenset:
        if self.config_path is None:
            return frozenset()
        config: Dict[str, str] = {}
        if await asyncio.to_thread(self.config_path.exists):
            try:
                async with aiofiles.open(self.config_path, 'r', encoding='utf-8') as fh:
                    lines = await fh.readlines()
                config = parse_config_lines(lines)
            except OSError as exc:
                self.logger.error("Failed to read config %s: %s", self.config_path, exc)
        self._file_values = config
        return self._recompute()

    def _read_file_sync(self, config_path: Path) -> Dict[str, str]:
        if not config_path.exists():
            self.logger.debug("Config file %s does not exist", config_path)
            return {}
        try:
            with open(config_path, 'r', encoding='utf-8') as fh:
                return parse_config_lines(fh)
        except OSError as exc:
            self.logger.error("Failed to read config %s: %s", config_path, exc)
            return {}

    def _recompute(self) -> frozenset:
        merged = {**self._file_values, **self._explicit_values}
        changed = frozenset(
            key for key in set(merged) | set(self._values)
            if merged.get(key, _MISSING) != self._values.get(key, _MISSING)
        )
        self._values = merged
        if changed:
            self.logger.debug("Configuration changed: %s", ", ".join(sorted(changed)))
            self._change_emitter.fire(changed)
        return changed

    def dispose(self) -> None:
        self._change_emitter.dispose()


__all__ = ["ConfigStore", "SettingKey", "parse_config_lines", "setting_name"]
