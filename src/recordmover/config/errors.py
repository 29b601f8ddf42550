"""Errors raised while resolving settings and environment connections."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Settings, overrides or environment locations that cannot be used for a run."""


class MissingConfigurationError(ConfigurationError):
    """Required environment variables, typically access tokens, are not set."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing environment variables: {', '.join(self.names)}")
