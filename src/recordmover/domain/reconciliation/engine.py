"""Import reconciliation engine.

Commits an unordered batch of records into a target store in three passes:

1. commit phase: reverse scan over the batch; records with references to
   records that are still pending are split so that their reference
   attributes are written later, records that share a bare identifier with a
   pending record are postponed as a whole
2. deferred phase: commit whole postponed records, write back postponed
   references, then create many-to-many associations
3. deactivation phase: mark records that were inactive in the source as
   inactive again

Every commit is a blocking call to the store, in scan order. Errors on single
records are counted and reported; they never abort the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from recordmover.domain.model import Condition, ConditionOperator, QueryFilter, Record, Scalar
from recordmover.domain.ports.progress import ImportPhase, ProgressEntry, ProgressLevel
from recordmover.domain.ports.store import Associated, AssociationFailed

from .batch import DeactivationSet, DeferredSet, IdUnion, ImportBatch
from .dependencies import forward_reference_names, is_association_shaped, shares_bare_identifier
from .errors import FatalInputError, RecordImportError
from .events import LoggingProgressSink
from .progress import EntityProgress, ProgressTracker

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from recordmover.domain.model import RecordRef, SchemaCatalog, ScalarType
    from recordmover.domain.ports.progress import ProgressSink
    from recordmover.domain.ports.store import AssociationResult, RemoteStore

    from .batch import DeferredRecord
    from .dependencies import BareIdentifierDependency


@dataclass(frozen=True, slots=True)
class ImportOptions:
    """Attribute conventions of the target store and optional behaviours."""

    owner_attribute: str = "ownerid"
    state_attribute: str = "statecode"
    status_attribute: str | None = "statuscode"
    inactive_state: ScalarType = 1
    inactive_status: ScalarType = -1
    annotation_type: str = "annotation"
    annotation_id_attribute: str = "annotationid"
    annotation_parent_attribute: str = "objectid"
    file_parent_types: frozenset[str] = frozenset({"adx_webfile"})
    clean_orphan_annotations: bool = True


@dataclass(slots=True)
class ImportResult:
    """Outcome of one engine invocation."""

    progress: tuple[EntityProgress, ...]
    remaining: tuple[Record, ...]
    schema_missing: tuple[RecordRef, ...]
    deferred_whole: tuple[RecordRef, ...]
    deferred_fragments: int
    deactivations: int

    @property
    def succeeded_phase1(self) -> int:
        return sum(entry.succeeded_phase1 for entry in self.progress)

    @property
    def failed_phase1(self) -> int:
        return sum(entry.failed_phase1 for entry in self.progress)

    @property
    def succeeded_phase2(self) -> int:
        return sum(entry.succeeded_phase2 for entry in self.progress)

    @property
    def failed_phase2(self) -> int:
        return sum(entry.failed_phase2 for entry in self.progress)

    @property
    def failed(self) -> int:
        return sum(entry.failed for entry in self.progress) + len(self.schema_missing)

    def for_type(self, entity_type: str) -> EntityProgress | None:
        return next((entry for entry in self.progress if entry.entity_type == entity_type), None)


@dataclass(slots=True)
class _Run:
    batch: ImportBatch
    tracker: ProgressTracker
    deferred: DeferredSet = field(default_factory=DeferredSet)
    deactivations: DeactivationSet = field(default_factory=DeactivationSet)
    schema_missing: list[RecordRef] = field(default_factory=list["RecordRef"])
    deferred_whole: list[RecordRef] = field(default_factory=list["RecordRef"])
    postponed_ids: set[UUID] = field(default_factory=set["UUID"])
    fragments: int = 0


@dataclass(slots=True)
class ImportEngine:
    """Dependency resolver and committer for one target store."""

    store: RemoteStore
    catalog: SchemaCatalog
    sink: ProgressSink = field(default_factory=LoggingProgressSink)
    options: ImportOptions = field(default_factory=ImportOptions)
    bare_identifier_dependency: BareIdentifierDependency = shares_bare_identifier

    def run(self, records: Iterable[Record]) -> ImportResult:
        """Import ``records``; the input records are mutated while committing."""

        items = list(records)
        if not items:
            raise FatalInputError("No records available to import")

        run = _Run(
            batch=ImportBatch.ordered(items, annotation_type=self.options.annotation_type),
            tracker=ProgressTracker.for_batch(self.catalog, items),
        )
        self._commit_phase(run)
        self._deferred_phase(run)
        self._deactivation_phase(run)

        return ImportResult(
            progress=run.tracker.entities,
            remaining=tuple(run.batch),
            schema_missing=tuple(run.schema_missing),
            deferred_whole=tuple(run.deferred_whole),
            deferred_fragments=run.fragments,
            deactivations=len(run.deactivations),
        )

    # -- commit phase -----------------------------------------------------------------

    def _commit_phase(self, run: _Run) -> None:
        batch = run.batch
        for index in range(len(batch) - 1, -1, -1):
            record = batch.visit(index)
            record.remove(self.options.owner_attribute)

            progress = self._progress_for(record, run, ImportPhase.COMMIT)
            if progress is None:
                continue

            if record.entity_type != self.options.annotation_type:
                pending = batch.pending_ids
                self._split_forward_references(
                    record, IdUnion((pending, run.postponed_ids, {record.id})), run
                )
                if is_association_shaped(record) or self.bare_identifier_dependency(
                    record, pending
                ):
                    batch.pop(index)
                    run.deferred.defer_whole(record)
                    run.deferred_whole.append(record.ref)
                    run.postponed_ids.add(record.id)
                    self._report(
                        f"Record {record.ref} depends on records of this batch: "
                        "postponed to the deferred phase",
                        ImportPhase.COMMIT,
                        record=record.ref,
                    )
                    continue

            self._commit(record, progress, run)
            batch.pop(index)

    def _split_forward_references(self, record: Record, pending: IdUnion, run: _Run) -> None:
        if record.ref in run.deferred or not forward_reference_names(record, pending):
            return
        fragment = record.detach([name for name, _reference in record.references()])
        run.deferred.defer_fragment(fragment)
        run.fragments += 1

    def _commit(self, record: Record, progress: EntityProgress, run: _Run) -> None:
        label = self._label(record)
        deactivate = self._strip_inactive_state(record)
        if deactivate:
            self._report(
                f"Record {label} is inactive: added for deactivation step",
                ImportPhase.COMMIT,
                record=record.ref,
            )

        try:
            outcome = self.store.upsert(record)
        except Exception as exc:  # noqa: BLE001
            progress.failed_phase1 += 1
            self._report(
                f"{label}: {exc}",
                ImportPhase.COMMIT,
                level=ProgressLevel.ERROR,
                record=record.ref,
            )
        else:
            progress.succeeded_phase1 += 1
            self._report(
                f"Record {label} {outcome}",
                ImportPhase.COMMIT,
                record=record.ref,
            )
            if deactivate:
                run.deactivations.add(record.ref)
            self._clean_orphan_annotations(record)
        finally:
            progress.processed_count += 1

    def _strip_inactive_state(self, record: Record) -> bool:
        options = self.options
        if options.state_attribute not in record:
            return False
        if record.scalar(options.state_attribute) != options.inactive_state:
            return False
        record.remove(options.state_attribute)
        if options.status_attribute is not None:
            record.remove(options.status_attribute)
        return True

    def _clean_orphan_annotations(self, record: Record) -> None:
        """Delete other annotations of a file-bearing parent to avoid duplicate files."""

        options = self.options
        if not options.clean_orphan_annotations or record.entity_type != options.annotation_type:
            return
        parent = record.reference(options.annotation_parent_attribute)
        if parent is None or parent.target_type not in options.file_parent_types:
            return

        self._report(
            f"Searching for extra annotations of {parent.target}",
            ImportPhase.COMMIT,
            record=record.ref,
        )
        try:
            extras = self.store.query(self._orphan_annotation_query(record, parent.target_id))
            for extra in extras:
                self._report(
                    f"Deleting extra annotation {extra.ref}",
                    ImportPhase.COMMIT,
                    record=extra.ref,
                )
                self.store.delete(extra.entity_type, extra.id)
        except Exception as exc:  # noqa: BLE001
            self._report(
                f"Could not clean annotations of {parent.target}: {exc}",
                ImportPhase.COMMIT,
                level=ProgressLevel.WARNING,
                record=record.ref,
            )

    def _orphan_annotation_query(self, record: Record, parent_id: UUID) -> QueryFilter:
        options = self.options
        return QueryFilter.where(
            options.annotation_type,
            Condition(options.annotation_id_attribute, ConditionOperator.NOT_EQUAL, record.id),
            Condition(options.annotation_parent_attribute, ConditionOperator.EQUAL, parent_id),
        )

    # -- deferred phase ---------------------------------------------------------------

    def _deferred_phase(self, run: _Run) -> None:
        if not len(run.deferred):
            return
        self._report(
            "Updating records to add references and processing many-to-many relationships",
            ImportPhase.DEFERRED,
        )
        whole: list[DeferredRecord] = []
        fragments: list[DeferredRecord] = []
        associations: list[DeferredRecord] = []
        for entry in run.deferred:
            entry.record.remove(self.options.owner_attribute)
            if is_association_shaped(entry.record):
                associations.append(entry)
            elif entry.whole:
                whole.append(entry)
            else:
                fragments.append(entry)

        # whole records were deferred in reverse batch order; referenced ones go first
        for entry in reversed(whole):
            progress = self._progress_for(entry.record, run, ImportPhase.DEFERRED)
            if progress is not None:
                progress.processed_count += 1
                self._commit_whole(entry, progress, run)
        for entry in fragments:
            progress = self._progress_for(entry.record, run, ImportPhase.DEFERRED)
            if progress is not None:
                self._write_references(entry.record, progress)
        for entry in associations:
            progress = self._progress_for(entry.record, run, ImportPhase.DEFERRED)
            if progress is not None:
                progress.processed_count += 1
                self._associate(entry.record, progress)

    def _associate(self, record: Record, progress: EntityProgress) -> None:
        result = self._request_association(record)
        if isinstance(result, AssociationFailed):
            progress.failed_phase2 += 1
            self._report(
                f"Association {progress.display_name} ({record.id}) failed: {result.reason}",
                ImportPhase.DEFERRED,
                level=ProgressLevel.ERROR,
                record=record.ref,
            )
            return

        progress.succeeded_phase2 += 1
        verb = "created" if isinstance(result, Associated) else "already exists"
        self._report(
            f"Association {progress.display_name} ({record.id}) {verb}",
            ImportPhase.DEFERRED,
            record=record.ref,
        )

    def _request_association(self, record: Record) -> AssociationResult:
        relationship = self.catalog.relationship_for_intersect(record.entity_type)
        if relationship is None:
            return AssociationFailed(f"no many-to-many relationship uses {record.entity_type}")
        side1_id = record.identifier(relationship.side1_id_attribute)
        side2_id = record.identifier(relationship.side2_id_attribute)
        if side1_id is None or side2_id is None:
            return AssociationFailed(f"{record.ref} does not carry both sides of {relationship.name}")
        try:
            return self.store.associate(
                relationship.side1_type,
                side1_id,
                relationship.name,
                relationship.side2_type,
                side2_id,
            )
        except Exception as exc:  # noqa: BLE001
            return AssociationFailed(str(exc))

    def _commit_whole(self, entry: DeferredRecord, progress: EntityProgress, run: _Run) -> None:
        record = entry.record
        label = self._label(record)
        deactivate = self._strip_inactive_state(record)
        try:
            outcome = self.store.upsert(record)
        except Exception as exc:  # noqa: BLE001
            progress.failed_phase2 += 1
            self._report(
                f"{label}: {exc}", ImportPhase.DEFERRED, level=ProgressLevel.ERROR, record=record.ref
            )
            return
        progress.succeeded_phase2 += 1
        if deactivate:
            run.deactivations.add(record.ref)
        self._report(f"Record {label} {outcome}", ImportPhase.DEFERRED, record=record.ref)

    def _write_references(self, record: Record, progress: EntityProgress) -> None:
        self._report(f"Updating record {record.ref}", ImportPhase.DEFERRED, record=record.ref)
        try:
            self.store.update(record)
        except Exception as exc:  # noqa: BLE001
            progress.failed_phase2 += 1
            self._report(
                f"An error occurred while updating {record.ref}: {exc}",
                ImportPhase.DEFERRED,
                level=ProgressLevel.ERROR,
                record=record.ref,
            )
            return
        progress.succeeded_phase2 += 1

    # -- deactivation phase -----------------------------------------------------------

    def _deactivation_phase(self, run: _Run) -> None:
        if not len(run.deactivations):
            return
        self._report("Deactivating records", ImportPhase.DEACTIVATION)

        options = self.options
        for ref in run.deactivations:
            progress = run.tracker.get(ref.entity_type)
            if progress is None:
                msg = f"Deactivation queued for untracked type {ref.entity_type}"
                raise RecordImportError(msg)
            update = Record(
                ref.entity_type,
                ref.id,
                {options.state_attribute: Scalar(options.inactive_state)},
            )
            if options.status_attribute is not None:
                update.attributes[options.status_attribute] = Scalar(options.inactive_status)

            self._report(f"Deactivating record {ref}", ImportPhase.DEACTIVATION, record=ref)
            try:
                self.store.update(update)
            except Exception as exc:  # noqa: BLE001
                progress.failed_deactivation += 1
                self._report(
                    f"Could not deactivate {ref}: {exc}",
                    ImportPhase.DEACTIVATION,
                    level=ProgressLevel.ERROR,
                    record=ref,
                )
            else:
                progress.succeeded_deactivation += 1

    # -- helpers ----------------------------------------------------------------------

    def _progress_for(self, record: Record, run: _Run, phase: ImportPhase) -> EntityProgress | None:
        progress = run.tracker.get_or_create(record.entity_type)
        if progress is None:
            if record.ref not in run.schema_missing:
                run.schema_missing.append(record.ref)
            self._report(
                f"Entity type {record.entity_type} for id {record.id} "
                "not found in the target metadata",
                phase,
                level=ProgressLevel.WARNING,
                record=record.ref,
            )
        return progress

    def _label(self, record: Record) -> str:
        descriptor = self.catalog.get(record.entity_type)
        return record.label(descriptor.primary_name_attribute if descriptor else None)

    def _report(
        self,
        message: str,
        phase: ImportPhase,
        *,
        level: ProgressLevel = ProgressLevel.INFO,
        record: RecordRef | None = None,
    ) -> None:
        self.sink.record(ProgressEntry(message=message, phase=phase, level=level, record=record))
