"""Environment variables for secrets that stay out of the settings file."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


def load_env_file(path: Path | None = None) -> bool:
    """Load a ``.env`` file; variables already set in the process win."""

    if path is None:
        return load_dotenv(override=False)
    return load_dotenv(path, override=False)


def optional_env_var(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the named variables or raise listing every missing/blank one."""

    values: dict[str, str] = {}
    missing: list[str] = []
    for name in names:
        value = optional_env_var(name)
        if value is None:
            missing.append(name)
        else:
            values[name] = value
    if missing:
        raise MissingConfigurationError(missing)
    return values


def require_env_var(name: str) -> str:
    return require_env_vars([name])[name]
