"""SQLAlchemy description of the record table every mapping writes into."""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy import Column, DateTime, MetaData, Table, Text

RECORD_COLUMNS = ("id", "data", "hash", "load_id", "created_at", "updated_at")


def split_table_name(name: str) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` into its parts; bare names have no schema."""
    schema, _, table = name.rpartition(".")
    return (schema or None), table


def record_table(name: str, metadata: Optional[MetaData] = None) -> Table:
    schema, table_name = split_table_name(name)
    return Table(
        table_name,
        metadata if metadata is not None else MetaData(),
        Column("id", Text, primary_key=True),
        Column("data", Text, nullable=False),
        Column("hash", Text, nullable=False),
        Column("load_id", Text, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        schema=schema,
    )
