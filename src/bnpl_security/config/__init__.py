"""Configuration and logging setup."""

from .settings import (
    AppSettings,
    SCASettings,
    SecuritySettings,
    get_app_settings,
    get_sca_settings,
    get_security_settings,
)
from .logging_config import LoggingConfig

__all__ = [
    "AppSettings",
    "SCASettings",
    "SecuritySettings",
    "get_app_settings",
    "get_sca_settings",
    "get_security_settings",
    "LoggingConfig",
]
