"""
Environment variable models for type-safe configuration.

This module defines the pydantic settings model every Lambda function reads
at start-up. Settings are parsed once from the process environment, validated
immediately and never mutated afterwards.
"""

import os
from datetime import timedelta
from typing import Annotated, Mapping, Optional

from aws_lambda_env_modeler import BaseModel, get_environment_variables
from pydantic import BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from lambda_kit.config.durations import parse_duration

VALID_LOG_LEVELS = ('debug', 'info', 'warn', 'error', 'fatal', 'panic')
VALID_LOG_FORMATS = ('json', 'console')

Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


class ConfigError(Exception):
    """Raised when the environment does not describe a valid configuration."""


class Settings(BaseModel):
    """Process-wide configuration read from environment variables."""

    model_config = ConfigDict(frozen=True)

    # Service information
    SERVICE_NAME: Annotated[str, Field(
        description='Service name attached to logs and traces'
    )] = 'lambda-service'

    SERVICE_VERSION: Annotated[str, Field(
        description='Service version attached to logs and traces'
    )] = '1.0.0'

    ENVIRONMENT: Annotated[str, Field(
        description='Deployment environment name'
    )] = 'development'

    # Logging configuration
    LOG_LEVEL: Annotated[str, Field(
        description='One of debug, info, warn, error, fatal, panic'
    )] = 'info'

    LOG_FORMAT: Annotated[str, Field(
        description='json or console'
    )] = 'json'

    # AWS Lambda specific, populated by the runtime
    AWS_LAMBDA_FUNCTION_NAME: Annotated[str, Field(
        description='Lambda function name'
    )] = ''

    AWS_LAMBDA_FUNCTION_VERSION: Annotated[str, Field(
        description='Lambda function version'
    )] = ''

    AWS_REGION: Annotated[str, Field(
        description='AWS region for service deployment'
    )] = 'us-east-1'

    # HTTP configuration
    REQUEST_TIMEOUT: Annotated[Duration, Field(
        description='Overall request budget, e.g. 30s'
    )] = timedelta(seconds=30)

    RESPONSE_TIMEOUT: Annotated[Duration, Field(
        description='Handler deadline, must be shorter than REQUEST_TIMEOUT'
    )] = timedelta(seconds=29)

    # Observability
    ENABLE_TRACING: Annotated[bool, Field(
        description='Enable X-Ray tracing'
    )] = True

    ENABLE_METRICS: Annotated[bool, Field(
        description='Enable CloudWatch EMF metrics'
    )] = True

    METRICS_NAMESPACE: Annotated[str, Field(
        description='Namespace for CloudWatch metrics'
    )] = 'LambdaTemplate'

    # Cache configuration
    CACHE_MAX_AGE: Annotated[int, Field(
        description='Cache-Control max-age in seconds'
    )] = 300

    # Data access
    USERS_TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table with users; empty selects the in-memory store'
    )] = ''

    @model_validator(mode='after')
    def check_constraints(self) -> 'Settings':
        if not self.SERVICE_NAME:
            raise ValueError('service name cannot be empty')

        if not self.SERVICE_VERSION:
            raise ValueError('service version cannot be empty')

        if self.REQUEST_TIMEOUT <= timedelta(0):
            raise ValueError('request timeout must be positive')

        if self.RESPONSE_TIMEOUT <= timedelta(0):
            raise ValueError('response timeout must be positive')

        if self.RESPONSE_TIMEOUT >= self.REQUEST_TIMEOUT:
            raise ValueError('response timeout must be less than request timeout')

        if self.CACHE_MAX_AGE < 0:
            raise ValueError('cache max age cannot be negative')

        if self.LOG_LEVEL not in VALID_LOG_LEVELS:
            raise ValueError(f'invalid log level: {self.LOG_LEVEL}')

        if self.LOG_FORMAT not in VALID_LOG_FORMATS:
            raise ValueError(f'invalid log format: {self.LOG_FORMAT}')

        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT in ('production', 'prod')

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT in ('development', 'dev')

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT in ('test', 'testing')

    @property
    def cache_max_age(self) -> timedelta:
        return timedelta(seconds=self.CACHE_MAX_AGE)

    @property
    def tracing_enabled(self) -> bool:
        return self.ENABLE_TRACING

    @property
    def metrics_enabled(self) -> bool:
        return self.ENABLE_METRICS


def _describe(exc: ValidationError) -> str:
    """Flatten pydantic errors into ``field: message`` text."""
    parts = []
    for error in exc.errors():
        message = error['msg'].removeprefix('Value error, ')
        location = '.'.join(str(item) for item in error['loc'])
        parts.append(f'{location}: {message}' if location else message)
    return '; '.join(parts)


def load(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Validated settings

    Raises:
        ConfigError: If a value cannot be parsed or a validation rule fails
    """
    source = os.environ if environ is None else environ
    try:
        return Settings.model_validate(dict(source))
    except ValidationError as exc:
        if any(error['type'] == 'value_error' and not error['loc'] for error in exc.errors()):
            raise ConfigError(f'configuration validation failed: {_describe(exc)}') from exc
        raise ConfigError(f'failed to load configuration: {_describe(exc)}') from exc


def must_load() -> Settings:
    """
    Load settings or terminate the process.

    Intended for module initialisation only, where a function cannot run with
    invalid settings.
    """
    try:
        return load()
    except ConfigError as exc:
        raise SystemExit(f'Failed to load configuration: {exc}') from exc


def get_settings() -> Settings:
    """Get the cached process-wide settings instance."""
    try:
        return get_environment_variables(model=Settings)
    except ValueError as exc:
        raise ConfigError(f'failed to load configuration: {exc}') from exc
