"""Centralized logging configuration.

Provides consistent, configurable logging with settings-based control over
verbosity, format and noisy third-party loggers.
"""

import logging
import logging.config
from enum import Enum
from typing import Any, Dict, Optional

from .settings import AppSettings, get_app_settings


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Configured log level
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


def get_log_level(verbosity: str, log_level: str) -> str:
    """Resolve the effective level from verbosity and the configured level."""
    try:
        mode = LogVerbosity(verbosity.upper())
    except ValueError:
        mode = LogVerbosity.NORMAL

    if mode == LogVerbosity.QUIET:
        return LogLevel.ERROR.value
    if mode == LogVerbosity.VERBOSE:
        return LogLevel.INFO.value
    if mode == LogVerbosity.DEBUG:
        return LogLevel.DEBUG.value
    try:
        return LogLevel(log_level.upper()).value
    except ValueError:
        return LogLevel.INFO.value


FORMATS = {
    "json": '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    "simple": "%(asctime)s - %(levelname)s - %(message)s",
}


class LoggingConfig:
    """Centralized logging configuration manager."""

    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "httpx",
        "httpcore",
        "asyncio",
        "redis",
    ]

    @classmethod
    def build(cls, settings: AppSettings) -> Dict[str, Any]:
        """Build a dictConfig mapping from settings."""
        level = get_log_level(settings.log_verbosity, settings.log_level)
        format_string = FORMATS.get(settings.log_format, FORMATS["simple"])

        config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                "bnpl_security": {
                    "level": level,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.ERROR_ONLY_MODULES:
            config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }

        return config

    @classmethod
    def configure(cls, settings: Optional[AppSettings] = None) -> None:
        """Configure logging from settings (environment when omitted)."""
        settings = settings or get_app_settings()
        logging.config.dictConfig(cls.build(settings))
        logging.getLogger(__name__).debug(
            "Logging configured: level=%s format=%s",
            get_log_level(settings.log_verbosity, settings.log_level),
            settings.log_format,
        )
