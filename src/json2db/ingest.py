"""Runs one load from a mapping file."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from rich.console import Console

from .config import Settings
from .loader import Loader
from .logging_utils import get_logger
from .mapping_parser import load_mapping_file

logger = get_logger(__name__)


def run_load(
    settings: Settings,
    mapping_file: Union[str, Path],
    load_id: str,
    console: Optional[Console] = None,
) -> int:
    mappings = load_mapping_file(mapping_file)
    logger.info("Loaded %s mappings from %s", len(mappings), mapping_file)
    loader = Loader(options=settings.loader_options(), console=console)
    return loader.load(mappings, load_id)
