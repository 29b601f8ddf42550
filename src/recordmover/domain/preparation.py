"""Checks and rewrites applied to a batch before it reaches the import engine."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from recordmover.domain.model import QueryFilter, Reference
from recordmover.domain.reconciliation.errors import FatalInputError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from recordmover.domain.model import Record
    from recordmover.domain.ports.store import RecordQuery

log = getLogger(__name__)

DEFAULT_WEBSITE_TYPE = "adx_website"


@dataclass(frozen=True, slots=True)
class WebsiteIdMap:
    """Maps a website id of the source instance to the one of the target."""

    source_id: UUID
    target_id: UUID


def referenced_website_ids(
    records: Iterable[Record], *, website_type: str = DEFAULT_WEBSITE_TYPE
) -> set[UUID]:
    return {
        reference.target_id
        for record in records
        for _name, reference in record.references()
        if reference.target_type == website_type
    }


def remap_website_references(records: Iterable[Record], mappings: Sequence[WebsiteIdMap]) -> int:
    """Point references at mapped target ids; return how many were rewritten.

    Any reference whose id matches a source website id is rewritten, whatever
    its target type.
    """

    targets = {mapping.source_id: mapping.target_id for mapping in mappings}
    rewritten = 0
    for record in records:
        for name, reference in list(record.references()):
            if reference.target_id not in targets:
                continue
            record.attributes[name] = Reference(reference.target_type, targets[reference.target_id])
            rewritten += 1
    return rewritten


def missing_website_ids(
    records: Sequence[Record],
    target: RecordQuery,
    *,
    website_type: str = DEFAULT_WEBSITE_TYPE,
) -> set[UUID]:
    referenced = referenced_website_ids(records, website_type=website_type)
    if not referenced:
        return set()
    existing = {website.id for website in target.query(QueryFilter(website_type))}
    return referenced - existing


def prepare_batch(
    records: Sequence[Record],
    target: RecordQuery,
    mappings: Sequence[WebsiteIdMap] = (),
    *,
    website_type: str = DEFAULT_WEBSITE_TYPE,
) -> None:
    """Make sure every referenced website exists in the target.

    Mappings are only applied when some website is missing. Raises
    :class:`FatalInputError` when websites are still missing afterwards.
    """

    missing = missing_website_ids(records, target, website_type=website_type)
    if not missing:
        return

    log.info("Websites %s not found in target, applying %d id mappings", missing, len(mappings))
    rewritten = remap_website_references(records, mappings)
    log.info("Rewrote %d website references", rewritten)

    missing = missing_website_ids(records, target, website_type=website_type)
    if missing:
        missing_list = ", ".join(sorted(str(website_id) for website_id in missing))
        raise FatalInputError(
            f"Records selected for import do not map to websites in the target system: "
            f"{missing_list}"
        )
