"""Configuration for padlink."""

from .provider import (
    ActuatorConfig,
    ConfigProvider,
    EnvConfigProvider,
    LoggingSettings,
    TokenStoreConfig,
    YamlConfigProvider,
)

__all__ = [
    "ActuatorConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "LoggingSettings",
    "TokenStoreConfig",
    "YamlConfigProvider",
]
