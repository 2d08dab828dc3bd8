"""
Configuration Management for vidshare
Standalone configuration system with environment variable overrides
"""

import os
import yaml
import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ============================================================================
# Core Configuration Classes
# ============================================================================


class DatabaseConfig(BaseSettings):
    """Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(
        default="sqlite+aiosqlite:///./vidshare.db", description="Database URL"
    )
    echo: bool = Field(default=False, description="Echo SQL queries")
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class PaginationConfig(BaseSettings):
    """Feed pagination bounds"""

    model_config = SettingsConfigDict(env_prefix="PAGINATION_")

    default_limit: int = Field(default=10, description="Page size when none given")
    max_limit: int = Field(default=100, description="Largest page size allowed")

    @field_validator("default_limit", "max_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Page limits must be at least 1")
        return v


class QueryConfig(BaseSettings):
    """Aggregation execution settings"""

    model_config = SettingsConfigDict(env_prefix="QUERY_")

    max_execution_seconds: float = Field(
        default=10.0, description="Upper bound for a single aggregation read"
    )
    search_index: str = Field(
        default="search-videos", description="Text search index name for videos"
    )

    @field_validator("max_execution_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("max_execution_seconds must be positive")
        return v


class CascadeConfig(BaseSettings):
    """Cascade delete settings"""

    model_config = SettingsConfigDict(env_prefix="CASCADE_")

    sweep_after_delete: bool = Field(
        default=True,
        description="Re-run dependent cleanup once the parent is gone",
    )


class LoggingConfig(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file_path: Optional[str] = Field(
        default="./logs/vidshare.log", description="Log file path"
    )


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Main Application Configuration
    Aggregates all configuration modules with unified access
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize application configuration

        Args:
            config_path: Optional YAML config file path
        """
        self.config_path = config_path or "configs/app.yaml"
        self.yaml_config = self._load_yaml_config()

        self.database = self._section(DatabaseConfig, "database")
        self.pagination = self._section(PaginationConfig, "pagination")
        self.query = self._section(QueryConfig, "query")
        self.cascade = self._section(CascadeConfig, "cascade")
        self.logging = self._section(LoggingConfig, "logging")

    def _section(self, settings_cls, name: str):
        """Build a settings section from its YAML block; env vars still win"""
        values = self.yaml_config.get(name) or {}
        prefix = settings_cls.model_config.get("env_prefix", "")
        from_file = {
            key: value
            for key, value in values.items()
            if f"{prefix}{key}".upper() not in os.environ
        }
        return settings_cls(**from_file)

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load YAML configuration file"""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.debug(f"Config file not found: {config_file}, using defaults")
            return {}

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config: {e}")
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot notation key"""
        keys = key.split(".")
        value = self.yaml_config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def to_dict(self) -> Dict[str, Any]:
        """Export full configuration as dictionary"""
        return {
            "database": self.database.model_dump(),
            "pagination": self.pagination.model_dump(),
            "query": self.query.model_dump(),
            "cascade": self.cascade.model_dump(),
            "logging": self.logging.model_dump(),
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary"""
        return {
            "app": self.yaml_config.get("app", {}),
            "database": {
                "url": self.database.url,
                "sqlite": self.database.is_sqlite,
            },
            "pagination": {
                "default_limit": self.pagination.default_limit,
                "max_limit": self.pagination.max_limit,
            },
            "query": {
                "max_execution_seconds": self.query.max_execution_seconds,
                "search_index": self.query.search_index,
            },
            "cascade": {
                "sweep_after_delete": self.cascade.sweep_after_delete,
            },
        }


# ============================================================================
# Global Configuration Instance (Singleton)
# ============================================================================

_config: Optional[Config] = None
_config_lock = threading.Lock()


@lru_cache()
def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get or create global configuration instance (Thread-safe singleton)

    Args:
        config_path: Optional path to config file

    Returns:
        Config instance
    """
    global _config

    if _config is None:
        with _config_lock:
            if _config is None:
                _config = Config(config_path)
                logger.info("✅ Configuration initialized")

    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """Force reload configuration"""
    global _config

    with _config_lock:
        get_config.cache_clear()
        _config = Config(config_path)
        logger.info("🔄 Configuration reloaded")

    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)"""
    global _config

    with _config_lock:
        get_config.cache_clear()
        _config = None
        logger.info("🗑️ Configuration reset")


# ============================================================================
# Configuration Validation
# ============================================================================


def validate_config(config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Validate configuration

    Args:
        config: Config instance (uses global if None)

    Returns:
        Validation result with errors and warnings
    """
    if config is None:
        config = get_config()

    errors = []
    warnings = []

    if not config.database.url:
        errors.append("Database URL not configured")
    elif config.database.is_sqlite and "aiosqlite" not in config.database.url:
        errors.append("SQLite URLs must use the async driver (sqlite+aiosqlite)")

    if config.pagination.default_limit > config.pagination.max_limit:
        errors.append(
            f"pagination.default_limit ({config.pagination.default_limit}) "
            f"exceeds pagination.max_limit ({config.pagination.max_limit})"
        )

    if config.query.max_execution_seconds > 60:
        warnings.append(
            "query.max_execution_seconds above 60s lets a single feed read hold "
            "a pooled connection for a long time"
        )

    if not config.cascade.sweep_after_delete:
        warnings.append(
            "Orphan sweep disabled - dependents written during a delete will "
            "only be removed by an external reconciliation job"
        )

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        if not log_path.parent.exists():
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create log directory: {e}")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


# ============================================================================
# Convenience Functions
# ============================================================================


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Setup logging based on configuration

    Args:
        config: Config instance (uses global if None)
    """
    import logging.handlers

    if config is None:
        config = get_config()

    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(config.logging.format))
    root_logger.addHandler(console_handler)

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(config.logging.format))
        root_logger.addHandler(file_handler)

    logger.info(f"📝 Logging configured: level={config.logging.level}")
