"""
Configuration management with environment variable support.
"""

from lambda_kit.config.durations import format_duration, parse_duration
from lambda_kit.config.env_vars import (
    VALID_LOG_FORMATS,
    VALID_LOG_LEVELS,
    ConfigError,
    Settings,
    get_settings,
    load,
    must_load,
)

__all__ = [
    'ConfigError',
    'Settings',
    'VALID_LOG_FORMATS',
    'VALID_LOG_LEVELS',
    'format_duration',
    'get_settings',
    'load',
    'must_load',
    'parse_duration',
]
