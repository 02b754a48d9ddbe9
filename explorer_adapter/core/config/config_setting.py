"""Names of the settings read from a project's configuration store."""

from enum import Enum


class GeneralConfigSetting(str, Enum):
    LOG_LEVEL = "log_level"


class InternalConfigSetting(str, Enum):
    PROJECT_PATH = "project_path"


class ProjectConfigSetting(str, Enum):
    RUNNER_LOG_LEVEL = "runner_log_level"
    TEST_FILES = "test_files"
    EXCLUDE_FILES = "exclude_files"
    TEST_COMMAND = "test_command"
    DEBUG_COMMAND = "debug_command"
    DEBUGGER_PORT = "debugger_port"
    TEST_TIMEOUT = "test_timeout"
    WATCH_INTERVAL = "watch_interval"
    RELOAD_ON_CHANGED_FILES = "reload_on_changed_files"


PROJECT_SETTINGS = frozenset(setting.value for setting in ProjectConfigSetting)
