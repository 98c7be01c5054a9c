from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console

from .config import Settings
from .errors import ConfigError, Json2DbError
from .ingest import run_load
from .logging_utils import setup_logging

console = Console(stderr=True)
LOGGER = logging.getLogger("json2db")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="json2db",
        description="Load JSON documents into database tables as described by a mapping file.",
        add_help=False,
    )
    parser.add_argument("mapping_file", type=Path, help="Path to the mapping file")
    parser.add_argument(
        "load_id",
        nargs="?",
        default=None,
        help="Identifier stored with every record of this run",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        # Usage errors exit with 1 like every other failure.
        return 0 if exc.code in (0, None) else 1

    load_dotenv()
    settings = Settings.from_env()
    setup_logging(settings.log_level, console=console)

    load_id = args.load_id or settings.load_id or uuid.uuid4().hex
    try:
        if not args.mapping_file.exists():
            raise ConfigError(
                f"The specified mapping file does not exist: {args.mapping_file}"
            )
        file_count = run_load(settings, args.mapping_file, load_id, console=console)
    except Json2DbError as exc:
        LOGGER.debug("Load %s failed", load_id, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - guard for CLI usage
        LOGGER.exception("Load %s failed", load_id)
        print(f"Load failed: {exc}", file=sys.stderr)
        return 1

    print(f"Total files processed: {file_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
