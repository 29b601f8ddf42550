"""Batch file adapter."""

from __future__ import annotations

from .manager import BatchFileError, read_records, write_records

__all__ = ["BatchFileError", "read_records", "write_records"]
