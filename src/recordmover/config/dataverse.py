"""Dataverse Web API configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from .env import optional_env_var, require_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

DATAVERSE_API_VERSION: Final[str] = "v9.2"
DATAVERSE_TIMEOUT_SECONDS: Final[float] = 60.0
SOURCE_TOKEN_ENV_VAR: Final[str] = "RECORDMOVER_SOURCE_TOKEN"
TARGET_TOKEN_ENV_VAR: Final[str] = "RECORDMOVER_TARGET_TOKEN"
HTTP_CACHE_ENV_VAR: Final[str] = "RECORDMOVER_HTTP_CACHE"

type EnvironmentRole = Literal["source", "target"]


@dataclass(frozen=True)
class DataverseConfig:
    """Connection values for one Dataverse environment."""

    environment_url: str
    access_token: str
    resilience: ResilienceConfig
    api_version: str = DATAVERSE_API_VERSION

    @property
    def api_url(self) -> str:
        return f"{self.environment_url.rstrip('/')}/api/data/{self.api_version}/"


def default_resilience(
    environment_url: str, *, cache_path: str | None = None
) -> ResilienceConfig:
    """Throttled, retrying client settings; GET responses are cached when ``cache_path`` is set."""

    api_url = f"{environment_url.rstrip('/')}/api/data/{DATAVERSE_API_VERSION}/"
    return ResilienceConfig(
        name="dataverse",
        base_url=api_url,
        timeout_seconds=DATAVERSE_TIMEOUT_SECONDS,
        ratelimit=RateLimit(),
        cache=CacheConfig(backend="sqlite", sqlite_path=cache_path) if cache_path else None,
    )


def get_dataverse_config(
    environment_url: str,
    *,
    role: EnvironmentRole,
    resilience: ResilienceConfig | None = None,
) -> DataverseConfig:
    """Build the config for ``environment_url``; the bearer token comes from the environment."""

    token_var = SOURCE_TOKEN_ENV_VAR if role == "source" else TARGET_TOKEN_ENV_VAR
    return DataverseConfig(
        environment_url=environment_url,
        access_token=require_env_var(token_var),
        resilience=resilience
        or default_resilience(environment_url, cache_path=optional_env_var(HTTP_CACHE_ENV_VAR)),
    )
