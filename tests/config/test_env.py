from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from recordmover.config import (
    MissingConfigurationError,
    get_dataverse_config,
    require_env_var,
    require_env_vars,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.delenv("MISSING_B", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_dataverse_config_uses_role_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECORDMOVER_SOURCE_TOKEN", "source-token")
    monkeypatch.setenv("RECORDMOVER_TARGET_TOKEN", "target-token")

    source = get_dataverse_config("https://source.crm.dynamics.com/", role="source")
    target = get_dataverse_config("https://target.crm.dynamics.com", role="target")

    assert source.access_token == "source-token"
    assert target.access_token == "target-token"
    assert source.api_url == "https://source.crm.dynamics.com/api/data/v9.2/"
    assert source.resilience.base_url == source.api_url
    assert source.resilience.ratelimit is not None


def test_dataverse_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RECORDMOVER_TARGET_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError, match="RECORDMOVER_TARGET_TOKEN"):
        get_dataverse_config("https://target.crm.dynamics.com", role="target")


def test_dataverse_config_caches_when_requested(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("RECORDMOVER_SOURCE_TOKEN", "source-token")
    monkeypatch.setenv("RECORDMOVER_HTTP_CACHE", str(tmp_path / "http-cache.db"))

    config = get_dataverse_config("https://source.crm.dynamics.com", role="source")

    assert config.resilience.cache is not None
    assert config.resilience.cache.sqlite_path == str(tmp_path / "http-cache.db")


def test_dataverse_config_without_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECORDMOVER_SOURCE_TOKEN", "source-token")
    monkeypatch.delenv("RECORDMOVER_HTTP_CACHE", raising=False)

    config = get_dataverse_config("https://source.crm.dynamics.com", role="source")

    assert config.resilience.cache is None
