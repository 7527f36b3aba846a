"""Configuration management for GlobalMe."""

from globalme.core.config.loader import (
    detect_format,
    get_api_key,
    load_app_config,
    load_config,
)
from globalme.core.config.models import (
    AppConfig,
    GenerationConfig,
    IntakeConfig,
    LoggingConfig,
)

__all__ = [
    "AppConfig",
    "GenerationConfig",
    "IntakeConfig",
    "LoggingConfig",
    "detect_format",
    "get_api_key",
    "load_app_config",
    "load_config",
]
