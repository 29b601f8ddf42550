"""Application configuration helpers."""

from __future__ import annotations

from .dataverse import DataverseConfig, get_dataverse_config
from .env import load_env_file, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .settings import (
    DateFilterOption,
    MoverSettings,
    WebsiteIdMapping,
    apply_overrides,
    load_settings,
    resolve_settings,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DataverseConfig",
    "DateFilterOption",
    "MissingConfigurationError",
    "MoverSettings",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "WebsiteIdMapping",
    "apply_overrides",
    "configure_logging",
    "get_dataverse_config",
    "load_env_file",
    "load_settings",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
    "resolve_settings",
]
