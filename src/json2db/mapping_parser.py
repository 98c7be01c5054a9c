"""Reading and validating mapping definition files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .models import Mapping, MappingDocument

LOGGER = logging.getLogger("json2db.mappings")

YAML_SUFFIXES = {".yaml", ".yml"}


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location or '<document>'}: {error.get('msg')}")
    return "; ".join(problems)


def read_mapping_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON (or YAML) mapping file into a plain dictionary."""
    file_path = Path(path)
    LOGGER.info("Parsing mapping file: %s", file_path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to open mapping file: {file_path}") from exc

    try:
        if file_path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(
            f"Failed to parse mapping data from file {file_path}: {exc}"
        ) from exc

    if data is None:
        raise ConfigError(f"Mapping file is empty: {file_path}")
    return data


def parse_mappings(document: Any) -> List[Mapping]:
    """Validate a parsed configuration document into ordered mappings."""
    if not isinstance(document, dict):
        raise ConfigError("Invalid mapping data: expected a JSON object at the top level")
    if document.get("mappings") is None:
        raise ConfigError("Invalid mapping data: missing 'mappings' key")

    try:
        parsed = MappingDocument.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid mapping data: {_format_validation_error(exc)}"
        ) from exc

    for mapping in parsed.mappings:
        LOGGER.debug(
            "Parsed mapping %s -> %s (id expression %r)",
            mapping.source,
            mapping.destination_table,
            mapping.id_expr,
        )
    LOGGER.info("Successfully parsed %s mappings", len(parsed.mappings))
    return list(parsed.mappings)


def load_mapping_file(path: Union[str, Path]) -> List[Mapping]:
    return parse_mappings(read_mapping_file(path))
