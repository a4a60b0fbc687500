"""
Configuration system for shadowsync using Pydantic.
"""

import logging as _logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


DEFAULT_SHADOW_SUFFIX = "_shadow"
DEFAULT_LOGFILE = "mysql-shadow.log"

LOG_LEVELS: Dict[str, int] = {
    "fatal": _logging.CRITICAL,
    "error": _logging.ERROR,
    "warn": _logging.WARNING,
    "info": _logging.INFO,
    "debug": _logging.DEBUG,
}


class DatabaseConnection(BaseModel):
    """MySQL connection configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(3306, description="Database port")
    user: str = Field("root", description="Database user")
    password: str = Field("", description="Database password (required)")
    database: str = Field("", description="Database schema to shadow (required)")
    connect_timeout: int = Field(30, description="Connection timeout in seconds")
    charset: str = Field("utf8mb4", description="Connection character set")

    def to_connection_kwargs(self) -> Dict[str, Any]:
        """Convert to mysql.connector connection kwargs."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "connection_timeout": self.connect_timeout,
            "charset": self.charset,
            "autocommit": True,
        }

    def masked(self) -> Dict[str, Any]:
        """Connection settings safe to write to a log."""
        data = self.model_dump()
        if data.get("password"):
            data["password"] = "***"
        return data


class ShadowConfig(BaseModel):
    """Shadow table naming and run mode."""

    suffix: str = Field(
        DEFAULT_SHADOW_SUFFIX, description="Table name suffix that denotes a shadow table"
    )
    dry_run: bool = Field(
        False, description="Log the statements that would run without executing them"
    )

    @field_validator("suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v:
            raise ValueError("Shadow suffix must not be empty")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["fatal", "error", "warn", "info", "debug"] = Field(
        "info", description="Log verbosity level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(DEFAULT_LOGFILE, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")

    @property
    def python_level(self) -> int:
        """The standard library logging level for ``level``."""
        return LOG_LEVELS[self.level]


class ShadowSyncConfig(BaseSettings):
    """Main shadowsync configuration."""

    connection: DatabaseConnection = Field(
        default_factory=DatabaseConnection, description="Database connection"
    )
    shadow: ShadowConfig = Field(
        default_factory=ShadowConfig, description="Shadow table settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHADOWSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def schema_name(self) -> str:
        """The schema being shadowed."""
        return self.connection.database

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ShadowSyncConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # Expand environment variables in the data
            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def with_overrides(self, **overrides: Any) -> "ShadowSyncConfig":
        """
        Return a copy with command-line values applied.

        Keys are ``section__field`` (``connection__host``); ``None`` values
        are ignored so unset options keep the file or environment value.
        """
        sections: Dict[str, Dict[str, Any]] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            section, _, field = key.partition("__")
            sections.setdefault(section, {})[field] = value

        try:
            updates = {
                section: getattr(self, section).model_copy(update=values)
                for section, values in sections.items()
            }
            merged = self.model_copy(update=updates)
            # model_copy skips validation
            return type(self).model_validate(merged.model_dump())
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def validate_config(self) -> None:
        """Check that the values required to connect are present."""
        missing = []
        if not self.connection.database.strip():
            missing.append("database")
        if not self.connection.password:
            missing.append("password")
        if missing:
            raise ConfigurationError(
                f"Missing required connection parameter(s): {', '.join(missing)}"
            )

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True), f, default_flow_style=False, indent=2
            )
