from __future__ import annotations

import json
from datetime import date
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from recordmover.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from recordmover.config import MoverSettings


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[MoverSettings]:
    calls: list[MoverSettings] = []

    def fake_run_mover(settings: MoverSettings) -> None:
        calls.append(settings)

    monkeypatch.setattr(cli, "run_mover", fake_run_mover)
    return calls


@pytest.fixture
def no_settings_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "settings.json"
    monkeypatch.setenv("RECORDMOVER_SETTINGS", str(path))
    return path


def test_import_flags(captured: list[MoverSettings], no_settings_file: Path) -> None:
    del no_settings_file

    cli.main(
        [
            "--import-file",
            "portal.json",
            "--target-env",
            "sqlite:///target.db",
            "--no-clean-web-files",
        ]
    )

    (settings,) = captured
    assert settings.import_filename == "portal.json"
    assert settings.target_environment == "sqlite:///target.db"
    assert settings.clean_web_files is False
    assert not settings.exports


def test_export_flags(captured: list[MoverSettings], no_settings_file: Path) -> None:
    del no_settings_file
    website_id = uuid4()

    cli.main(
        [
            "--export-file",
            "portal_{date:%Y}.zip",
            "--source-env",
            "https://source.crm.dynamics.com",
            "--website",
            str(website_id),
            "--created-on",
            "2024-01-01",
            "--modified-on",
            "2024-02-01",
            "--date-filter-options",
            "modify_only",
            "--selected-entities",
            "adx_webpage, adx_webfile,",
            "--batch-count",
            "3",
            "--active-only",
            "--export-in-folder-structure",
        ]
    )

    (settings,) = captured
    assert settings.website_filter == website_id
    assert settings.create_filter is None
    assert settings.modify_filter == date(2024, 2, 1)
    assert settings.selected_entities == ["adx_webpage", "adx_webfile"]
    assert settings.batch_count == 3
    assert settings.active_items_only is True
    assert settings.export_in_folder_structure is True
    assert settings.export_filename == f"portal_{date.today():%Y}.zip"  # noqa: DTZ011


def test_flags_override_settings_file(tmp_path: Path, captured: list[MoverSettings]) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "import_filename": "from_file.json",
                "target_environment": "sqlite:///file.db",
                "batch_count": 7,
            }
        ),
        encoding="utf-8",
    )

    cli.main(["--settings", str(path), "--target-env", "sqlite:///flag.db"])

    (settings,) = captured
    assert settings.import_filename == "from_file.json"
    assert settings.target_environment == "sqlite:///flag.db"
    assert settings.batch_count == 7


def test_missing_files_exit_with_usage_error(
    captured: list[MoverSettings], no_settings_file: Path
) -> None:
    del no_settings_file

    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2
    assert captured == []


def test_invalid_date_exits_with_usage_error(
    captured: list[MoverSettings], no_settings_file: Path
) -> None:
    del no_settings_file

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--import-file", "a.json", "--target-env", "sqlite://", "--created-on", "soon"])

    assert excinfo.value.code == 2
    assert captured == []


def test_failed_run_exits_with_error(
    monkeypatch: pytest.MonkeyPatch, no_settings_file: Path
) -> None:
    del no_settings_file

    def failing_run_mover(settings: MoverSettings) -> None:
        del settings
        raise RuntimeError("target unavailable")

    monkeypatch.setattr(cli, "run_mover", failing_run_mover)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--import-file", "a.json", "--target-env", "sqlite://"])

    assert excinfo.value.code == 1


def test_version_flag_exits_cleanly(captured: list[MoverSettings]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert captured == []
