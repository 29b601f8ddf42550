from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from recordmover import __version__
from recordmover.app import run_mover
from recordmover.config import (
    ConfigurationError,
    DateFilterOption,
    apply_overrides,
    configure_logging,
    load_env_file,
    load_settings,
    resolve_settings,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from recordmover.config import MoverSettings

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Move portal records between environments through export/import files"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        type=Path,
        help="JSON settings file (defaults to $RECORDMOVER_SETTINGS or settings.json)",
    )
    parser.add_argument("--export-file", dest="export_filename", help="File to export to")
    parser.add_argument("--import-file", dest="import_filename", help="File to import from")
    parser.add_argument(
        "--created-on",
        dest="create_filter",
        help="Export records created on or after this date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--modified-on",
        dest="modify_filter",
        help="Export records modified on or after this date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--prior-days",
        dest="prior_days_to_retrieve",
        type=int,
        help="Export records created/modified within this many days (overrides dates)",
    )
    parser.add_argument(
        "--date-filter-options",
        choices=[option.value for option in DateFilterOption],
        help="Which date filters apply",
    )
    parser.add_argument("--website", dest="website_filter", help="Website id to export")
    parser.add_argument(
        "--active-only",
        dest="active_items_only",
        action="store_true",
        default=None,
        help="Export active records only",
    )
    parser.add_argument(
        "--source-env",
        dest="source_environment",
        help="Source environment (https Dataverse URL or database URI)",
    )
    parser.add_argument(
        "--target-env",
        dest="target_environment",
        help="Target environment (https Dataverse URL or database URI)",
    )
    parser.add_argument(
        "--clean-web-files",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Delete other annotations of imported web files",
    )
    parser.add_argument(
        "--export-in-folder-structure",
        action="store_true",
        default=None,
        help="Write one file per record instead of a single document",
    )
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument(
        "--selected-entities",
        type=_parse_entity_list,
        help="Comma separated logical names of the record types to export",
    )
    parser.add_argument(
        "--batch-count",
        type=int,
        help="Number of record types queried per batch during export",
    )
    return parser.parse_args(list(argv))


def _parse_entity_list(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def build_settings(args: argparse.Namespace) -> MoverSettings:
    settings = load_settings(args.settings)
    overrides = {key: value for key, value in vars(args).items() if key != "settings"}
    return resolve_settings(apply_overrides(settings, overrides))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        settings = build_settings(_parse_args(args_list))
    except (ConfigurationError, ValueError):
        log.exception("CLI validation error")
        sys.exit(2)

    if settings.log_file is not None:
        configure_logging(force=True, log_file=Path(settings.log_file))

    try:
        run_mover(settings)
    except Exception:
        log.exception("Fatal error during move")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_env_file()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
