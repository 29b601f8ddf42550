"""Dependency detection between records of one batch.

Both predicates only look at identifiers; they cannot tell whether a bare
UUID really points at another record, which makes the bare-identifier check a
heuristic. Keep it here so callers can swap it out.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Container
    from uuid import UUID

    from recordmover.domain.model import Record


type BareIdentifierDependency = Callable[[Record, Container[UUID]], bool]


def forward_reference_names(record: Record, pending_ids: Container[UUID]) -> list[str]:
    """Names of Reference attributes of ``record`` whose target is still pending."""

    return [name for name, reference in record.references() if reference.target_id in pending_ids]


def shares_bare_identifier(record: Record, other_ids: Container[UUID]) -> bool:
    """Whether a bare identifier of ``record`` matches another pending record id.

    ``other_ids`` must not contain ``record.id`` itself.
    """

    return any(value in other_ids for _name, value in record.bare_identifiers())


def is_association_shaped(record: Record) -> bool:
    """Canonical shape of an intersect record: its own id plus both side ids."""

    return len(record) == 3 and all(
        record.identifier(name) is not None for name in record.attributes
    )
