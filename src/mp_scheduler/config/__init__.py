"""Config – 12-factor settings for the scheduling core."""
from mp_scheduler.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    SchedulerSettings,
    Settings,
    SettingsLoader,
)
from mp_scheduler.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "SchedulerSettings",
    "Settings",
    "SettingsLoader",
]
