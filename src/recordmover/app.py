"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from recordmover.adapters.dataverse import DataverseRecordStore, DataverseSchemaProvider
from recordmover.adapters.files import read_records, write_records
from recordmover.adapters.sqlalchemy import (
    SqlAlchemyRecordStore,
    SqlAlchemySchemaProvider,
    connect,
)
from recordmover.config.dataverse import get_dataverse_config
from recordmover.config.errors import ConfigurationError
from recordmover.domain.export import ExportCriteria, Exporter, ExportResult
from recordmover.domain.ports.store import RecordQuery, RemoteStore
from recordmover.domain.preparation import WebsiteIdMap, prepare_batch
from recordmover.domain.reconciliation import (
    CompositeProgressSink,
    FatalInputError,
    ImportEngine,
    ImportOptions,
    ImportResult,
    LoggingProgressSink,
)

if TYPE_CHECKING:
    from recordmover.config.dataverse import EnvironmentRole
    from recordmover.config.settings import MoverSettings
    from recordmover.domain.ports.metadata import SchemaCatalogProvider
    from recordmover.domain.ports.progress import ProgressSink

log = getLogger(__name__)


class Store(RecordQuery, RemoteStore, Protocol):
    """A store usable both as export source and import target."""


type Environment = tuple[Store, SchemaCatalogProvider]
type EnvironmentOpener = Callable[[str, EnvironmentRole], AbstractContextManager[Environment]]


@contextmanager
def open_environment(environment: str, role: EnvironmentRole) -> Iterator[Environment]:
    """Connect to ``environment``: an https Dataverse URL or a SQLAlchemy database URI."""

    if environment.startswith("https://"):
        with DataverseRecordStore(get_dataverse_config(environment, role=role)) as store:
            yield store, DataverseSchemaProvider(store)
        return

    if "://" not in environment:
        raise ConfigurationError(f"Unsupported {role} environment: {environment}")
    engine = connect(environment)
    try:
        yield SqlAlchemyRecordStore(engine), SqlAlchemySchemaProvider(engine)
    finally:
        engine.dispose()


@dataclass(slots=True)
class MoverRun:
    exported: ExportResult | None = None
    imported: ImportResult | None = None


def export_criteria(settings: MoverSettings) -> ExportCriteria:
    return ExportCriteria(
        create_filter=settings.create_filter,
        modify_filter=settings.modify_filter,
        website_filter=settings.website_filter,
        active_items_only=settings.active_items_only,
        selected_entities=tuple(settings.selected_entities),
        batch_count=settings.batch_count,
    )


def export_records(
    settings: MoverSettings,
    *,
    open_store: EnvironmentOpener = open_environment,
) -> ExportResult:
    """Extract records from the source environment and write them to the export file."""

    if settings.source_environment is None or settings.export_filename is None:
        raise ConfigurationError("Export requires a source environment and an export file name")

    log.info("Connecting to source environment")
    with open_store(settings.source_environment, "source") as (store, provider):
        catalog = provider.load_catalog()
        result = Exporter(store, catalog, export_criteria(settings)).export()

    for entity_type, count in sorted(result.counts.items()):
        log.info("Exported %s: %d", entity_type, count)

    written = write_records(
        result.records,
        Path(settings.export_filename),
        folder_structure=settings.export_in_folder_structure,
    )
    log.info("Export of %d records to %s complete", len(result.records), written)
    return result


def import_records(
    settings: MoverSettings,
    *,
    open_store: EnvironmentOpener = open_environment,
    sink: ProgressSink | None = None,
) -> ImportResult:
    """Read the import file and commit its records into the target environment."""

    if settings.target_environment is None or settings.import_filename is None:
        raise ConfigurationError("Import requires a target environment and an import file name")

    records = read_records(Path(settings.import_filename))
    if not records:
        raise FatalInputError("No entities available to import")
    log.info("Read %d records from %s", len(records), settings.import_filename)

    mappings = [
        WebsiteIdMap(mapping.source_id, mapping.target_id)
        for mapping in settings.website_id_mapping
    ]
    with open_store(settings.target_environment, "target") as (store, provider):
        catalog = provider.load_catalog()
        prepare_batch(records, store, mappings)
        engine = ImportEngine(
            store,
            catalog,
            sink=_progress_sink(sink),
            options=ImportOptions(clean_orphan_annotations=settings.clean_web_files),
        )
        result = engine.run(records)

    _log_import_summary(result)
    return result


def _progress_sink(sink: ProgressSink | None) -> ProgressSink:
    if sink is None:
        return LoggingProgressSink()
    return CompositeProgressSink((LoggingProgressSink(), sink))


def _log_import_summary(result: ImportResult) -> None:
    for progress in result.progress:
        log.info(
            "%s: total=%d, processed=%d, succeeded=%d/%d, failed=%d/%d, deactivated=%d",
            progress.display_name,
            progress.total_count,
            progress.processed_count,
            progress.succeeded_phase1,
            progress.succeeded_phase2,
            progress.failed_phase1,
            progress.failed_phase2,
            progress.succeeded_deactivation,
        )
    for ref in result.schema_missing:
        log.warning("Not imported, type missing from target schema: %s", ref)
    log.info(
        "Import complete: %d records deferred whole, %d reference sets deferred, "
        "%d deactivations, %d failures",
        len(result.deferred_whole),
        result.deferred_fragments,
        result.deactivations,
        result.failed,
    )


def run_mover(
    settings: MoverSettings,
    *,
    open_store: EnvironmentOpener = open_environment,
    sink: ProgressSink | None = None,
) -> MoverRun:
    """Export and/or import according to ``settings`` (export runs first)."""

    log.info("Settings:\n%s", settings.summary())
    run = MoverRun()
    if settings.exports:
        run.exported = export_records(settings, open_store=open_store)
    if settings.imports:
        run.imported = import_records(settings, open_store=open_store, sink=sink)
    return run
