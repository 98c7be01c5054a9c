import json

import pytest
from pydantic import ValidationError

from json2db.errors import ConfigError
from json2db.mapping_parser import (load_mapping_file, parse_mappings,
                                    read_mapping_file)


def _entry(**overrides):
    entry = {
        "description": "people",
        "source": "data/people",
        "destination_table": "people",
        "id_expr": "${id}",
        "connection": "postgresql://loader@localhost/db",
    }
    entry.update(overrides)
    return entry


def test_parse_preserves_fields_and_order():
    entries = [
        _entry(source="a", destination_table="t1", id_expr="${x}", connection="c1"),
        _entry(source="b", destination_table="t2", id_expr="${y}-${z}", connection="c2"),
    ]
    mappings = parse_mappings({"mappings": entries})

    assert [m.source for m in mappings] == ["a", "b"]
    assert [m.destination_table for m in mappings] == ["t1", "t2"]
    assert [m.id_expr for m in mappings] == ["${x}", "${y}-${z}"]
    assert [m.connection for m in mappings] == ["c1", "c2"]


def test_description_is_optional():
    entry = _entry()
    del entry["description"]
    mapping = parse_mappings({"mappings": [entry, _entry(description=None)]})

    assert mapping[0].description == ""
    assert mapping[1].description == ""


@pytest.mark.parametrize("document", [{}, {"mappings": None}, {"other": []}, [], None])
def test_missing_mappings_key_is_rejected(document):
    with pytest.raises(ConfigError):
        parse_mappings(document)


@pytest.mark.parametrize("field", ["source", "destination_table"])
def test_empty_source_or_destination_is_rejected(field):
    entries = [_entry(), _entry(**{field: ""})]
    with pytest.raises(ConfigError) as excinfo:
        parse_mappings({"mappings": entries})
    assert field in str(excinfo.value)


@pytest.mark.parametrize("field", ["source", "destination_table", "id_expr", "connection"])
def test_required_fields_must_be_present(field):
    entry = _entry()
    del entry[field]
    with pytest.raises(ConfigError):
        parse_mappings({"mappings": [entry]})


def test_required_fields_must_be_strings():
    with pytest.raises(ConfigError):
        parse_mappings({"mappings": [_entry(id_expr=42)]})


def test_mappings_are_frozen():
    mapping = parse_mappings({"mappings": [_entry()]})[0]
    with pytest.raises(ValidationError):
        mapping.source = "elsewhere"


def test_load_json_mapping_file(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps({"mappings": [_entry()]}), encoding="utf-8")

    mappings = load_mapping_file(path)

    assert len(mappings) == 1
    assert mappings[0].destination_table == "people"


def test_load_yaml_mapping_file(tmp_path):
    path = tmp_path / "mapping.yaml"
    path.write_text(
        "mappings:\n"
        "  - source: data/orders\n"
        "    destination_table: orders\n"
        "    id_expr: \"${order_id}\"\n"
        "    connection: sqlite://\n",
        encoding="utf-8",
    )

    mappings = load_mapping_file(path)

    assert mappings[0].id_expr == "${order_id}"
    assert mappings[0].description == ""


def test_unreadable_or_invalid_files(tmp_path):
    with pytest.raises(ConfigError, match="Unable to open"):
        read_mapping_file(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to parse"):
        read_mapping_file(broken)

    empty = tmp_path / "empty.yml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError, match="empty"):
        read_mapping_file(empty)


def test_whitespace_source_is_kept_verbatim():
    mapping = parse_mappings({"mappings": [_entry(source="  ")]})[0]
    assert mapping.source == "  "
