from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, List

import pytest

from json2db.db_connector import ConnectionFactory
from json2db.models import Mapping


class RecordingSession:
    """Stand-in for a database session that remembers every insert."""

    def __init__(self, connection_string: str, writes: List[Any]) -> None:
        self.connection_string = connection_string
        self.records: List[Any] = []
        self.ensured: List[str] = []
        self.transactions = 0
        self.closed = False
        self._writes = writes

    def execute(self, record) -> None:
        self.records.append(record)
        self._writes.append(record)

    def ensure_table(self, name: str) -> None:
        self.ensured.append(name)

    @contextmanager
    def transaction(self):
        self.transactions += 1
        yield self

    def close(self) -> None:
        self.closed = True


class Recorder:
    def __init__(self) -> None:
        self.sessions: List[RecordingSession] = []
        self.writes: List[Any] = []

    def _make_session(self, connection_string: str) -> RecordingSession:
        session = RecordingSession(connection_string, self.writes)
        self.sessions.append(session)
        return session

    def factory(self) -> ConnectionFactory:
        return ConnectionFactory(session_cls=self._make_session)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_mapping():
    def _make(source, **overrides) -> Mapping:
        values = {
            "description": "test mapping",
            "source": str(source),
            "destination_table": "records",
            "id_expr": "${id}",
            "connection": "sqlite://",
        }
        values.update(overrides)
        return Mapping(**values)

    return _make
