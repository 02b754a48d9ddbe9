from .config_setting import (
    GeneralConfigSetting,
    InternalConfigSetting,
    PROJECT_SETTINGS,
    ProjectConfigSetting,
)
from .config_store import ConfigStore
from .extension_config import ExtensionConfig

__all__ = [
    'ConfigStore',
    'ExtensionConfig',
    'GeneralConfigSetting',
    'InternalConfigSetting',
    'PROJECT_SETTINGS',
    'ProjectConfigSetting',
]
