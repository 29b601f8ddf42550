"""Reading and writing record batches on disk.

Three layouts are supported:

- a single ``.json`` document holding the whole batch
- a folder tree with one document per record
  (``<entity_type>/<sequence>_<id>.json``)
- a ``.zip`` archive of such a folder tree
"""

from __future__ import annotations

import tempfile
import zipfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from recordmover.adapters.payloads import dump_batch, dump_record, load_batch, load_record

if TYPE_CHECKING:
    from collections.abc import Sequence

    from recordmover.domain.model import Record

log = getLogger(__name__)

BATCH_SUFFIX = ".json"
ARCHIVE_SUFFIX = ".zip"


class BatchFileError(RuntimeError):
    """Raised when a batch cannot be read from or written to disk."""


def read_records(path: Path) -> list[Record]:
    """Load every record stored at ``path``."""

    suffix = path.suffix.lower()
    if suffix == BATCH_SUFFIX:
        if not path.is_file():
            raise BatchFileError(f"The file {path} does not exist!")
        return _read_batch_file(path)

    if suffix == ARCHIVE_SUFFIX:
        if not path.is_file():
            raise BatchFileError(f"The file {path} does not exist!")
        with tempfile.TemporaryDirectory(prefix="recordmover-") as temp_dir:
            try:
                with zipfile.ZipFile(path) as archive:
                    archive.extractall(temp_dir)
            except zipfile.BadZipFile as exc:
                raise BatchFileError(f"The file {path} is not a valid archive") from exc
            return _read_folder(Path(temp_dir))

    if not path.is_dir():
        raise BatchFileError(f"The directory {path} does not exist!")
    return _read_folder(path)


def write_records(
    records: Sequence[Record], path: Path, *, folder_structure: bool = False
) -> Path:
    """Store ``records`` at ``path`` and return the location written.

    With ``folder_structure`` the batch is written as one document per record,
    zipped when ``path`` ends in ``.zip``.
    """

    if not folder_structure:
        target = path if path.suffix else path.with_suffix(BATCH_SUFFIX)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(dump_batch(list(records)), encoding="utf-8")
        log.info("Wrote %d records to %s", len(records), target)
        return target

    if path.suffix.lower() == ARCHIVE_SUFFIX:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for index, record in enumerate(records):
                archive.writestr(_record_path(index, record).as_posix(), dump_record(record))
        log.info("Wrote %d records to archive %s", len(records), path)
        return path

    for index, record in enumerate(records):
        target = path / _record_path(index, record)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(dump_record(record), encoding="utf-8")
    log.info("Wrote %d records to folder %s", len(records), path)
    return path


def _record_path(index: int, record: Record) -> Path:
    # the index prefix keeps the batch order when the tree is read back
    return Path(record.entity_type) / f"{index:06d}_{record.id}{BATCH_SUFFIX}"


def _read_batch_file(path: Path) -> list[Record]:
    try:
        return load_batch(path.read_bytes())
    except ValidationError as exc:
        raise BatchFileError(f"The file {path} is not a valid record batch: {exc}") from exc


def _read_folder(path: Path) -> list[Record]:
    files = sorted(path.rglob(f"*{BATCH_SUFFIX}"), key=lambda file: (file.name, file.as_posix()))
    records: list[Record] = []
    for file in files:
        try:
            records.append(load_record(file.read_bytes()))
        except ValidationError as exc:
            raise BatchFileError(f"The file {file} is not a valid record: {exc}") from exc
    log.info("Read %d records from %s", len(records), path)
    return records
