"""Mover settings: JSON settings file plus command line overrides."""

from __future__ import annotations

import os
from datetime import date, timedelta
from enum import StrEnum
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

DEFAULT_SETTINGS_FILENAME: Final[str] = "settings.json"
SETTINGS_ENV_VAR: Final[str] = "RECORDMOVER_SETTINGS"


class DateFilterOption(StrEnum):
    CREATE_ONLY = "create_only"
    MODIFY_ONLY = "modify_only"
    CREATE_AND_MODIFY = "create_and_modify"


class WebsiteIdMapping(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source_id: UUID
    target_id: UUID


class MoverSettings(BaseModel):
    """Settings of one export and/or import run."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    active_items_only: bool = False
    create_filter: date | None = None
    modify_filter: date | None = None
    prior_days_to_retrieve: int | None = Field(default=None, ge=0)
    date_filter_options: DateFilterOption = DateFilterOption.CREATE_AND_MODIFY
    website_filter: UUID | None = None
    website_id_mapping: list[WebsiteIdMapping] = Field(default_factory=list[WebsiteIdMapping])
    export_filename: str | None = None
    import_filename: str | None = None
    source_environment: str | None = None
    target_environment: str | None = None
    selected_entities: list[str] = Field(default_factory=list[str])
    clean_web_files: bool = True
    export_in_folder_structure: bool = False
    batch_count: int = Field(default=10, ge=1)
    log_file: str | None = None

    @field_validator(
        "export_filename",
        "import_filename",
        "source_environment",
        "target_environment",
        "log_file",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @property
    def exports(self) -> bool:
        return self.export_filename is not None

    @property
    def imports(self) -> bool:
        return self.import_filename is not None

    def summary(self) -> str:
        """Human-readable summary for the log (never includes credentials)."""

        selected = ", ".join(self.selected_entities) if self.selected_entities else "<ALL>"
        lines = [
            f"ActiveItemsOnly: {self.active_items_only}",
            f"CreateFilter: {self.create_filter}",
            f"ModifyFilter: {self.modify_filter}",
            f"DateFilterOptions: {self.date_filter_options}",
            f"WebsiteFilter: {self.website_filter}",
            f"ImportFilename: {self.import_filename}",
            f"ExportFilename: {self.export_filename}",
            f"PriorDaysToRetrieve: {self.prior_days_to_retrieve}",
            f"SourceEnvironment: {self.source_environment}",
            f"TargetEnvironment: {self.target_environment}",
            f"SelectedEntities: {selected}",
        ]
        return "\n".join(lines)


def default_settings_path() -> Path:
    return Path(os.getenv(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_FILENAME)


def load_settings(path: Path | None = None) -> MoverSettings:
    """Load settings from ``path``; a missing file yields default settings."""

    settings_path = path or default_settings_path()
    if not settings_path.exists():
        log.info(
            "Unable to locate the configuration file %s. Using command line arguments only.",
            settings_path,
        )
        return MoverSettings()
    try:
        return MoverSettings.model_validate_json(settings_path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings file {settings_path}: {exc}") from exc


def apply_overrides(settings: MoverSettings, overrides: Mapping[str, object]) -> MoverSettings:
    """Return a copy of ``settings`` with every non-``None`` override applied."""

    values = settings.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return MoverSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid setting override: {exc}") from exc


def resolve_settings(settings: MoverSettings, *, today: date | None = None) -> MoverSettings:
    """Apply relative date settings and file name masks, then validate the result."""

    current_day = today or date.today()  # noqa: DTZ011
    values = settings.model_dump()

    if settings.prior_days_to_retrieve is not None:
        start = current_day - timedelta(days=settings.prior_days_to_retrieve)
        values["create_filter"] = start
        values["modify_filter"] = start

    if settings.date_filter_options is DateFilterOption.MODIFY_ONLY:
        values["create_filter"] = None
    if settings.date_filter_options is DateFilterOption.CREATE_ONLY:
        values["modify_filter"] = None

    for key in ("export_filename", "import_filename", "log_file"):
        if values[key] is not None:
            values[key] = _format_filename(values[key], current_day)

    resolved = MoverSettings.model_validate(values)
    _validate(resolved)
    return resolved


def _format_filename(template: str, current_day: date) -> str:
    try:
        return template.format(date=current_day)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(f"Invalid file name mask: {template}") from exc


def _validate(settings: MoverSettings) -> None:
    if not settings.exports and not settings.imports:
        raise ConfigurationError("Either an import or an export file name must be specified")

    if settings.imports and settings.target_environment is None:
        raise ConfigurationError("A target environment must be specified for import")

    if settings.exports:
        if settings.source_environment is None:
            raise ConfigurationError("A source environment must be specified for export")
        if settings.website_filter is None:
            raise ConfigurationError("A website filter must be specified for export")
        if settings.create_filter is None and settings.modify_filter is None:
            raise ConfigurationError("Either a create or a modify date filter must be specified")
