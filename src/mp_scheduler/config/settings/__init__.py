"""Config settings – env-based configuration."""
from mp_scheduler.config.settings.base import Settings
from mp_scheduler.config.settings.loaders import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    SettingsLoader,
)
from mp_scheduler.config.settings.scheduler import SchedulerSettings

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SchedulerSettings", "Settings", "SettingsLoader"]
