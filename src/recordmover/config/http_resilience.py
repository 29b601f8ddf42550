"""Retry, throttling and cache settings for Dataverse Web API traffic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

# Service protection limit breaches come back as 429 with a Retry-After header.
THROTTLED_STATUS: Final[int] = 429

# Per user and per web server: 6000 requests in a sliding five minute window.
SERVICE_PROTECTION_CALLS: Final[int] = 6000
SERVICE_PROTECTION_WINDOW_SECONDS: Final[float] = 300.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 5
    backoff_factor: float = 1.0
    max_backoff_wait: float = 300.0
    backoff_jitter: float = 1.0
    respect_retry_after_header: bool = True
    # upserts, $ref posts and deletes are all keyed by record id
    allowed_methods: frozenset[str] = frozenset({"DELETE", "GET", "PATCH", "POST"})
    status_forcelist: frozenset[int] = frozenset({THROTTLED_STATUS, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int = SERVICE_PROTECTION_CALLS
    per_seconds: float = SERVICE_PROTECTION_WINDOW_SECONDS


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Response cache for read-only traffic such as entity metadata."""

    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = 3600.0


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 60.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
