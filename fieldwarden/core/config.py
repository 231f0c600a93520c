"""
Configuration management for fieldwarden.

Loads configuration from:
1. Environment variables (FIELDWARDEN_*, highest priority)
2. A ``.env`` file in the working directory
3. A YAML configuration file (fieldwarden.yaml)
4. Defaults (lowest priority)
"""

from typing import Optional, Dict, Any, Type, TypeVar
from enum import Enum
from pathlib import Path
from functools import lru_cache
import logging

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldwarden.core.exceptions import ConfigurationError
from fieldwarden.schema.types import OperationMode, VisibilityScope

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("fieldwarden.yaml")

E = TypeVar("E", bound=Enum)


def coerce_setting(enum_cls: Type[E], value: Any, setting: str) -> E:
    """Convert a configuration value to an enum member or raise ConfigurationError."""
    if value is None:
        raise ConfigurationError(f"{setting} must be set", {setting: None})
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    raise ConfigurationError(
        f"Invalid {setting}: {value!r}",
        {setting: repr(value), "allowed": [m.value for m in enum_cls]}
    )


class AccessControlConfig(BaseSettings):
    """Engine configuration."""

    scope: VisibilityScope = Field(VisibilityScope.RESTRICTED, description="Active visibility scope")
    mode: OperationMode = Field(OperationMode.ALL_OR_NONE, description="Field filtering policy")

    # Audit
    audit_enabled: bool = Field(True, description="Record mediated operations in the audit log")
    audit_max_records: int = Field(10000, ge=1, description="Max audit records kept in memory")

    # Observability
    metrics_enabled: bool = Field(True, description="Enable Prometheus metrics")
    log_level: str = Field("INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="FIELDWARDEN_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    @field_validator("scope", "mode", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AccessControlConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            AccessControlConfig instance

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid
        """
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)}
            )

        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}",
                {"path": str(config_path)},
                cause=e
            ) from e

        if not config_data:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping",
                {"path": str(config_path)}
            )

        return cls.from_values(config_data, source=str(config_path))

    @classmethod
    def from_values(cls, values: Dict[str, Any], source: str = "values") -> "AccessControlConfig":
        """
        Build configuration from a dictionary.

        Raises:
            ConfigurationError: If any value is invalid
        """
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e.error_count()} error(s)",
                {"source": source, "errors": [err["loc"] for err in e.errors()]},
                cause=e
            ) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json")

    def save_to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save configuration
        """
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, "w") as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save configuration: {e}",
                {"path": str(config_path)},
                cause=e
            ) from e

        logger.info(f"Configuration saved to {config_path}")


# Global configuration instance
_global_config: Optional[AccessControlConfig] = None


@lru_cache(maxsize=1)
def get_config() -> AccessControlConfig:
    """
    Get global configuration instance (singleton).

    Returns:
        AccessControlConfig instance
    """
    global _global_config

    if _global_config is None:
        if DEFAULT_CONFIG_FILE.exists():
            _global_config = AccessControlConfig.load_from_file(DEFAULT_CONFIG_FILE)
        else:
            _global_config = AccessControlConfig.from_values({}, source="environment")

        logger.info(
            "Configuration loaded",
            extra={
                "scope": _global_config.scope.value,
                "mode": _global_config.mode.value
            }
        )

    return _global_config


def reset_config() -> None:
    """Reset global configuration (for testing)."""
    global _global_config
    _global_config = None
    get_config.cache_clear()
