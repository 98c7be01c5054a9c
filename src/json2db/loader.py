from __future__ import annotations

import json
import logging
import os
import stat
from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from rich.console import Console
from rich.status import Status

from .db_connector import ConnectionFactory, Session
from .errors import (DocumentParseError, IdExpressionError,
                     InvalidDocumentShapeError, LoadError, QueryError,
                     SourceNotFoundError, StoreConnectionError,
                     UnsupportedSourceTypeError, WriteError)
from .id_expr import evaluate
from .models import JSON_SUFFIX, LoaderOptions, Mapping
from .persistence import build_record

LOGGER = logging.getLogger("json2db.loader")


@dataclass
class _Run:
    """State scoped to a single :meth:`Loader.load` call."""

    load_id: str
    connections: ConnectionFactory
    status: Optional[Status] = None
    ensured_tables: Set[Tuple[str, str]] = field(default_factory=set)


def _stat_source(path: Path) -> os.stat_result:
    try:
        return path.stat()
    except FileNotFoundError as exc:
        raise SourceNotFoundError(f"Source path does not exist: {path}") from exc
    except OSError as exc:
        raise UnsupportedSourceTypeError(
            f"Cannot resolve source path {path}: {exc.strerror or exc}"
        ) from exc


def _is_regular_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError as exc:
        LOGGER.debug("Skipping unreadable entry %s: %s", entry.path, exc)
        return False


def _count_regular_files(directory: Path) -> int:
    try:
        with os.scandir(directory) as entries:
            return sum(1 for entry in entries if _is_regular_file(entry))
    except OSError as exc:
        raise LoadError(f"Unable to list directory {directory}: {exc}") from exc


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (ValueError, RecursionError) as exc:
        raise DocumentParseError(f"Invalid JSON in file {path}: {exc}") from exc
    except OSError as exc:
        raise LoadError(f"Unable to open file: {path}") from exc


class Loader:
    """Walk mapping sources and write one record per JSON document.

    The loader keeps no per-run state, so one instance can serve any number
    of :meth:`load` calls. Every run opens its own connection factory and
    releases all sessions when it ends, including on errors.
    """

    def __init__(
        self,
        options: Optional[LoaderOptions] = None,
        session_factory: Callable[[], ConnectionFactory] = ConnectionFactory,
        console: Optional[Console] = None,
    ) -> None:
        self._options = options or LoaderOptions()
        self._session_factory = session_factory
        self._console = console

    def load(self, mappings: Sequence[Mapping], load_id: str) -> int:
        """Load every mapping in order and return the number of files attempted."""
        total = len(mappings)
        LOGGER.info(
            "Starting data loading process for %s mappings (load id %s)", total, load_id
        )
        status_cm = (
            self._console.status("Loading documents...")
            if self._console is not None
            else nullcontext()
        )

        processed_files = 0
        with self._session_factory() as connections, status_cm as status:
            run = _Run(load_id=load_id, connections=connections, status=status)
            for index, mapping in enumerate(mappings, start=1):
                LOGGER.info(
                    "Processing mapping %s of %s: loading %s into table %s "
                    "(id expression %r)",
                    index,
                    total,
                    mapping.source,
                    mapping.destination_table,
                    mapping.id_expr,
                )
                processed_files += self._load_mapping(run, mapping)

        LOGGER.info("Total files processed: %s", processed_files)
        return processed_files

    def _load_mapping(self, run: _Run, mapping: Mapping) -> int:
        source = Path(mapping.source)
        try:
            mode = _stat_source(source).st_mode
        except LoadError as exc:
            exc.with_context(mapping=mapping.label)
            raise

        if stat.S_ISDIR(mode):
            try:
                file_count = _count_regular_files(source)
            except LoadError as exc:
                exc.with_context(mapping=mapping.label)
                raise
            LOGGER.info(
                "Processing directory: %s with %s files", source.name, file_count
            )
            file_index = 0
            with os.scandir(source) as entries:
                for entry in entries:
                    if not _is_regular_file(entry):
                        LOGGER.debug("Skipping non-regular entry %s", entry.name)
                        continue
                    file_index += 1
                    LOGGER.info(
                        "Processing file %s of %s: %s", file_index, file_count, entry.name
                    )
                    self._load_file(run, mapping, Path(entry.path))
            return file_count

        if stat.S_ISREG(mode):
            self._load_file(run, mapping, source)
            return 1

        raise UnsupportedSourceTypeError(
            f"Unknown file system object type: {source}"
        ).with_context(mapping=mapping.label)

    def _load_file(self, run: _Run, mapping: Mapping, path: Path) -> None:
        if run.status is not None:
            run.status.update(f"Loading {path.name} into {mapping.destination_table}")

        if path.suffix != JSON_SUFFIX:
            if self._options.strict_extension_check:
                LOGGER.warning(
                    "The file %s does not have a %s extension. Skipping it...",
                    path.name,
                    JSON_SUFFIX,
                )
                return
            LOGGER.warning(
                "The file %s does not have a %s extension. Parsing it anyway.",
                path.name,
                JSON_SUFFIX,
            )

        try:
            data = _read_json(path)
        except LoadError as exc:
            exc.with_context(mapping=mapping.label, path=str(path))
            raise

        if isinstance(data, dict):
            documents: List[Any] = [data]
            numbered = False
        elif isinstance(data, list):
            LOGGER.info("Parsed JSON array with %s elements", len(data))
            documents = data
            numbered = True
        else:
            raise InvalidDocumentShapeError(
                f"Invalid JSON data: Expected object or array, got {type(data).__name__}"
            ).with_context(mapping=mapping.label, path=str(path))

        if not documents:
            LOGGER.info("No documents in %s", path.name)
            return

        if self._options.transaction_per_file:
            with self._session(run, mapping).transaction():
                self._save_all(run, mapping, path, documents, numbered)
        else:
            self._save_all(run, mapping, path, documents, numbered)

    def _save_all(
        self,
        run: _Run,
        mapping: Mapping,
        path: Path,
        documents: List[Any],
        numbered: bool,
    ) -> None:
        count = len(documents)
        for index, document in enumerate(documents, start=1):
            if numbered:
                LOGGER.debug("Processing element %s of %s", index, count)
            self._save(run, mapping, path, document, index if numbered else None)

    def _save(
        self,
        run: _Run,
        mapping: Mapping,
        path: Path,
        document: Any,
        index: Optional[int],
    ) -> None:
        context = {"mapping": mapping.label, "path": str(path), "index": index}
        if not isinstance(document, dict):
            raise InvalidDocumentShapeError(
                f"Invalid JSON data: Expected object, got {type(document).__name__}"
            ).with_context(**context)

        try:
            record_id = evaluate(mapping.id_expr, document)
        except IdExpressionError as exc:
            exc.with_context(**context)
            raise

        try:
            record = build_record(
                mapping.destination_table, record_id, document, run.load_id
            )
        except UnicodeEncodeError as exc:
            raise InvalidDocumentShapeError(
                f"Document cannot be encoded as UTF-8 text: {exc.reason}"
            ).with_context(**context) from exc
        session = self._session(run, mapping)
        LOGGER.debug(
            "Saving record %s from %s to table %s",
            record_id,
            path.name,
            mapping.destination_table,
        )
        try:
            session.execute(record)
        except QueryError as exc:
            raise WriteError(
                f"Failed to write record {record_id!r} into "
                f"{mapping.destination_table}: {exc.message}"
            ).with_context(**context) from exc

    def _session(self, run: _Run, mapping: Mapping) -> Session:
        try:
            session = run.connections.get_session(mapping.connection)
            key = (mapping.connection, mapping.destination_table)
            if self._options.create_tables and key not in run.ensured_tables:
                session.ensure_table(mapping.destination_table)
                run.ensured_tables.add(key)
        except (StoreConnectionError, QueryError) as exc:
            exc.with_context(mapping=mapping.label)
            raise
        return session
