"""
Configuration Management for StarStorage

🔧 Storage Configuration:
Dataclass-based settings for binding policy, context write behavior and
logging, with environment presets and environment-variable overrides.
"""

import logging
import logging.handlers
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
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
class StorageConfig:
    """Complete storage configuration"""
    environment: Environment = Environment.DEVELOPMENT

    # Raise ContextNotBoundError instead of logging when no context is bound
    strict_binding: bool = False

    # SQLModelContext commits after every write
    autosave: bool = True

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'StorageConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.strict_binding = True
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'StorageConfig':
        """Create configuration from dictionary"""
        if "environment" in config_dict:
            config = cls.for_environment(Environment(config_dict["environment"]))
        else:
            config = cls()

        for key in ("strict_binding", "autosave"):
            if key in config_dict:
                setattr(config, key, bool(config_dict[key]))

        if "logging" in config_dict:
            for key, value in config_dict["logging"].items():
                if hasattr(config.logging, key):
                    setattr(config.logging, key, value)

        return config

    @classmethod
    def from_environment(cls) -> 'StorageConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('STARSTORAGE_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('STARSTORAGE_STRICT'):
            config.strict_binding = os.getenv('STARSTORAGE_STRICT').lower() == 'true'

        if os.getenv('STARSTORAGE_AUTOSAVE'):
            config.autosave = os.getenv('STARSTORAGE_AUTOSAVE').lower() == 'true'

        if os.getenv('STARSTORAGE_LOG_LEVEL'):
            config.logging.level = os.getenv('STARSTORAGE_LOG_LEVEL').upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "strict_binding": self.strict_binding,
            "autosave": self.autosave,
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count
            }
        }

def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Attach a handler to the ``starstorage`` logger.

    Args:
        config: Logging settings, defaults to the global configuration's

    Returns:
        The configured package logger
    """
    config = config or get_config().logging
    logger = logging.getLogger("starstorage")
    logger.setLevel(config.level)

    if config.file_path:
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    return logger

# Global configuration management
_current_config: Optional[StorageConfig] = None

def set_config(config: Optional[StorageConfig]):
    """Set the global configuration (``None`` resets to environment defaults)"""
    global _current_config
    _current_config = config

def get_config() -> StorageConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        # Auto-create from environment if not set
        _current_config = StorageConfig.from_environment()

    return _current_config

def configure_from_dict(config_dict: Dict[str, Any]) -> StorageConfig:
    """Configure storage from dictionary"""
    config = StorageConfig.from_dict(config_dict)
    set_config(config)
    return config

__all__ = [
    "StorageConfig", "Environment", "LoggingConfig",
    "set_config", "get_config", "configure_from_dict", "configure_logging"
]
