"""Configuration providers for padlink."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

import yaml

TOKEN_BACKENDS = ("file", "redis")


@dataclass
class TokenStoreConfig:
    """Token store configuration."""
    backend: str
    path: str
    redis_url: str
    redis_key: str
    expiry_days: float
    flush_interval_seconds: float
    background_flush: bool

    @property
    def expiry_window_ms(self) -> int:
        """Expiry window in milliseconds."""
        return int(self.expiry_days * 24 * 60 * 60 * 1000)

    @property
    def flush_interval_ms(self) -> int:
        """Debounce interval for touch-driven writes in milliseconds."""
        return int(self.flush_interval_seconds * 1000)


@dataclass
class ActuatorConfig:
    """Pointer actuator configuration."""
    enabled: bool
    command: str
    timeout_seconds: float
    start_position: Tuple[int, int]


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_token_store_config(self) -> TokenStoreConfig:
        """Get token store configuration."""
        ...

    def get_actuator_config(self) -> ActuatorConfig:
        """Get pointer actuator configuration."""
        ...

    def get_logging_settings(self) -> LoggingSettings:
        """Get logging configuration."""
        ...


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _parse_positive(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if number <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return number


def _parse_position(name: str, value: Any) -> Tuple[int, int]:
    if isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        parts = str(value).split(",")
    if len(parts) != 2:
        raise ValueError(f"{name} must be 'x,y', got {value!r}")
    try:
        return int(parts[0]), int(parts[1])
    except (TypeError, ValueError):
        raise ValueError(f"{name} must contain integers, got {value!r}")


def _build_token_store_config(values: Mapping[str, Any]) -> TokenStoreConfig:
    backend = str(values["backend"]).strip().lower()
    if backend not in TOKEN_BACKENDS:
        raise ValueError(
            f"Unknown token backend {backend!r}. Expected one of: {', '.join(TOKEN_BACKENDS)}"
        )

    return TokenStoreConfig(
        backend=backend,
        path=str(values["path"]),
        redis_url=str(values["redis_url"]),
        redis_key=str(values["redis_key"]),
        expiry_days=_parse_positive("token expiry_days", values["expiry_days"]),
        flush_interval_seconds=_parse_positive(
            "token flush_interval_seconds", values["flush_interval_seconds"]
        ),
        background_flush=_parse_bool(values["background_flush"]),
    )


def _build_actuator_config(values: Mapping[str, Any]) -> ActuatorConfig:
    return ActuatorConfig(
        enabled=_parse_bool(values["enabled"]),
        command=str(values["command"]),
        timeout_seconds=_parse_positive("actuator timeout_seconds", values["timeout_seconds"]),
        start_position=_parse_position("actuator start_position", values["start_position"]),
    )


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def _get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._environ.get(name, default)

    def token_store_values(self) -> Dict[str, Any]:
        """Raw token store values before validation."""
        return {
            "backend": self._get("PADLINK_TOKEN_BACKEND", "file"),
            "path": self._get("PADLINK_TOKENS_FILE", "./tokens.json"),
            "redis_url": self._get("PADLINK_REDIS_URL")
            or self._get("REDIS_URL", "redis://localhost:6379/0"),
            "redis_key": self._get("PADLINK_REDIS_KEY", "padlink:tokens"),
            "expiry_days": self._get("PADLINK_TOKEN_EXPIRY_DAYS", "10"),
            "flush_interval_seconds": self._get("PADLINK_TOKEN_FLUSH_SECONDS", "60"),
            "background_flush": self._get("PADLINK_TOKEN_BACKGROUND_FLUSH", "true"),
        }

    def actuator_values(self) -> Dict[str, Any]:
        """Raw actuator values before validation."""
        return {
            "enabled": self._get("PADLINK_ACTUATOR_ENABLED", "true"),
            "command": self._get("PADLINK_ACTUATOR_COMMAND", "ydotool"),
            "timeout_seconds": self._get("PADLINK_ACTUATOR_TIMEOUT", "1"),
            "start_position": self._get("PADLINK_ACTUATOR_START", "0,0"),
        }

    def get_token_store_config(self) -> TokenStoreConfig:
        """Get token store configuration from environment variables."""
        return _build_token_store_config(self.token_store_values())

    def get_actuator_config(self) -> ActuatorConfig:
        """Get actuator configuration from environment variables."""
        return _build_actuator_config(self.actuator_values())

    def get_logging_settings(self) -> LoggingSettings:
        """Get logging configuration from environment variables."""
        return LoggingSettings(level=self._get("PADLINK_LOG_LEVEL", "INFO").upper())


class YamlConfigProvider:
    """
    YAML file configuration provider.

    Expected layout (every key optional, missing keys fall back to the
    environment provider)::

        tokens:
          backend: file
          path: /var/lib/padlink/tokens.json
          expiry_days: 10
        actuator:
          enabled: true
        logging:
          level: DEBUG
    """

    def __init__(self, config_path: str, environ: Optional[Mapping[str, str]] = None):
        self.config_path = Path(config_path)
        self._fallback = EnvConfigProvider(environ)
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        with open(self.config_path, "r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {self.config_path} must contain a mapping")
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Config section {name!r} must be a mapping")
        return section

    def get_token_store_config(self) -> TokenStoreConfig:
        values = self._fallback.token_store_values()
        values.update(self._section("tokens"))
        return _build_token_store_config(values)

    def get_actuator_config(self) -> ActuatorConfig:
        values = self._fallback.actuator_values()
        values.update(self._section("actuator"))
        return _build_actuator_config(values)

    def get_logging_settings(self) -> LoggingSettings:
        level = self._section("logging").get("level")
        if level is None:
            return self._fallback.get_logging_settings()
        return LoggingSettings(level=str(level).upper())
