"""Config settings – 12-factor env-based configuration."""
from fundly_events.config.settings.base import Settings
from fundly_events.config.settings.event_system import EventSystemSettings
from fundly_events.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "EventSystemSettings", "Settings", "SettingsLoader"]
