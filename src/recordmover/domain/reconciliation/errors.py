"""Error types raised by the import reconciliation engine."""

from __future__ import annotations


class RecordImportError(RuntimeError):
    """Base class for import failures that abort a run."""


class FatalInputError(RecordImportError):
    """Raised before any commit when the input batch cannot be imported."""
