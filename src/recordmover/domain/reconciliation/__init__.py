"""Import reconciliation core.

Layered flow of one run:
1) order the batch so annotations commit last
2) commit records in reverse order, splitting off references to pending records
3) write deferred references and many-to-many associations
4) deactivate records that were inactive in the source
"""

from __future__ import annotations

from .batch import DeactivationSet, DeferredRecord, DeferredSet, IdUnion, ImportBatch
from .dependencies import (
    BareIdentifierDependency,
    forward_reference_names,
    is_association_shaped,
    shares_bare_identifier,
)
from .engine import ImportEngine, ImportOptions, ImportResult
from .errors import FatalInputError, RecordImportError
from .events import CollectingProgressSink, CompositeProgressSink, LoggingProgressSink
from .progress import EntityProgress, ProgressTracker

__all__ = [
    "BareIdentifierDependency",
    "CollectingProgressSink",
    "CompositeProgressSink",
    "DeactivationSet",
    "DeferredRecord",
    "DeferredSet",
    "EntityProgress",
    "FatalInputError",
    "IdUnion",
    "ImportBatch",
    "ImportEngine",
    "ImportOptions",
    "ImportResult",
    "LoggingProgressSink",
    "ProgressTracker",
    "RecordImportError",
    "forward_reference_names",
    "is_association_shaped",
    "shares_bare_identifier",
]
