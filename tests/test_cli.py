import json

import pytest
from sqlalchemy import create_engine, text

import json2db.__main__ as cli
from json2db.config import Settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "LOG_LEVEL",
        "JSON2DB_STRICT_EXTENSION_CHECK",
        "JSON2DB_TRANSACTION_PER_FILE",
        "JSON2DB_CREATE_TABLES",
        "JSON2DB_LOAD_ID",
    ):
        monkeypatch.delenv(name, raising=False)


def _mapping_file(tmp_path, source, connection):
    path = tmp_path / "mapping.json"
    path.write_text(
        json.dumps(
            {
                "mappings": [
                    {
                        "description": "people",
                        "source": str(source),
                        "destination_table": "people",
                        "id_expr": "person-${id}",
                        "connection": connection,
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_main_loads_and_reports_file_count(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("JSON2DB_CREATE_TABLES", "true")
    url = f"sqlite:///{tmp_path / 'dest.db'}"
    source = tmp_path / "people.json"
    source.write_text(json.dumps([{"id": 1}, {"id": 2}]), encoding="utf-8")

    rc = cli.main([str(_mapping_file(tmp_path, source, url)), "load-42"])

    assert rc == 0
    assert "Total files processed: 1" in capsys.readouterr().out
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            rows = conn.execute(text("SELECT id, load_id FROM people ORDER BY rowid")).all()
    finally:
        engine.dispose()
    assert [tuple(row) for row in rows] == [("person-1", "load-42"), ("person-2", "load-42")]


def test_main_uses_env_load_id(tmp_path, monkeypatch):
    captured = {}

    def fake_run_load(settings, mapping_file, load_id, console=None):
        captured["load_id"] = load_id
        return 0

    monkeypatch.setenv("JSON2DB_LOAD_ID", "from-env")
    monkeypatch.setattr(cli, "run_load", fake_run_load)
    mapping = _mapping_file(tmp_path, tmp_path, "sqlite://")

    assert cli.main([str(mapping)]) == 0
    assert captured["load_id"] == "from-env"


def test_main_returns_1_for_missing_mapping_file(tmp_path, capsys):
    rc = cli.main([str(tmp_path / "absent.json"), "run"])

    assert rc == 1
    assert "does not exist" in capsys.readouterr().err


def test_main_returns_1_for_missing_source(tmp_path, capsys):
    mapping = _mapping_file(tmp_path, tmp_path / "nowhere", "sqlite://")

    assert cli.main([str(mapping), "run"]) == 1
    assert "Source path does not exist" in capsys.readouterr().err


def test_main_returns_1_without_arguments():
    assert cli.main([]) == 1


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("JSON2DB_STRICT_EXTENSION_CHECK", "off")
    monkeypatch.setenv("JSON2DB_TRANSACTION_PER_FILE", "YES")
    monkeypatch.setenv("JSON2DB_CREATE_TABLES", "maybe")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()
    options = settings.loader_options()

    assert settings.log_level == "DEBUG"
    assert options.strict_extension_check is False
    assert options.transaction_per_file is True
    assert options.create_tables is False


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_main_rejects_flags(flag):
    assert cli.main([flag]) == 1
