"""
Configuration Management for crudflow

🔧 Environment-Aware Settings:
Dataclass-based configuration for logging and the SQL adapter, with presets
per environment and overrides from dictionaries or ``CRUDFLOW_*`` environment
variables.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class SQLConnectionConfig:
    """SQL database connection configuration"""
    database_url: str = "sqlite:///crudflow.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600
    connect_args: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def sqlite(cls, database_path: str = ":memory:", async_driver: bool = False,
               **kwargs) -> "SQLConnectionConfig":
        """SQLite connection; ``async_driver`` selects ``aiosqlite``."""
        scheme = "sqlite+aiosqlite" if async_driver else "sqlite"
        return cls(database_url=f"{scheme}:///{database_path}", **kwargs)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine`` / ``create_async_engine``."""
        options: Dict[str, Any] = {"echo": self.echo, "connect_args": dict(self.connect_args)}
        # SQLite pools do not take sizing arguments
        if not self.is_sqlite:
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_recycle=self.pool_recycle,
            )
        return options


@dataclass
class CrudflowConfig:
    """Complete crudflow configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    sql: SQLConnectionConfig = field(default_factory=SQLConnectionConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> "CrudflowConfig":
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"
            config.sql.echo = True

        elif environment == Environment.TESTING:
            config.sql.database_url = "sqlite:///:memory:"
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"
            config.logging.file_path = "/var/log/crudflow/crudflow.log"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "CrudflowConfig":
        """Create configuration from dictionary; unknown keys are ignored."""
        if "environment" in config_dict:
            config = cls.for_environment(Environment(config_dict["environment"]))
        else:
            config = cls()

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("logging", "sql"):
            target = getattr(config, section)
            for key, value in config_dict.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)

        return config

    @classmethod
    def from_environment(cls) -> "CrudflowConfig":
        """Create configuration from environment variables"""
        env_name = os.getenv("CRUDFLOW_ENV", "development")
        config = cls.for_environment(Environment(env_name))

        if os.getenv("CRUDFLOW_DEBUG"):
            config.debug = os.getenv("CRUDFLOW_DEBUG").lower() == "true"

        if os.getenv("CRUDFLOW_DATABASE_URL"):
            config.sql.database_url = os.getenv("CRUDFLOW_DATABASE_URL")

        if os.getenv("CRUDFLOW_SQL_ECHO"):
            config.sql.echo = os.getenv("CRUDFLOW_SQL_ECHO").lower() == "true"

        if os.getenv("CRUDFLOW_LOG_LEVEL"):
            config.logging.level = os.getenv("CRUDFLOW_LOG_LEVEL").upper()

        if os.getenv("CRUDFLOW_LOG_FILE"):
            config.logging.file_path = os.getenv("CRUDFLOW_LOG_FILE")

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count,
            },
            "sql": {
                "database_url": self.sql.database_url,
                "echo": self.sql.echo,
                "pool_size": self.sql.pool_size,
                "max_overflow": self.sql.max_overflow,
                "pool_timeout": self.sql.pool_timeout,
                "pool_recycle": self.sql.pool_recycle,
                "connect_args": dict(self.sql.connect_args),
            },
        }


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the ``crudflow`` logger.

    Installs a stream handler, or a ``RotatingFileHandler`` when
    ``config.file_path`` is set. Calling it again replaces the handler
    installed by the previous call.
    """
    config = config or LoggingConfig()
    root = logging.getLogger("crudflow")
    root.setLevel(config.level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_crudflow_handler", False):
            root.removeHandler(handler)
            handler.close()

    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(config.format))
    handler._crudflow_handler = True
    root.addHandler(handler)
    return root


__all__ = [
    "Environment", "LoggingConfig", "SQLConnectionConfig", "CrudflowConfig", "configure_logging"
]
