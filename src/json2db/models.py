from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from pydantic import BaseModel, ConfigDict, StrictStr, field_validator

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_STRICT_EXTENSION_CHECK = True
DEFAULT_TRANSACTION_PER_FILE = False
DEFAULT_CREATE_TABLES = False
JSON_SUFFIX = ".json"


class Mapping(BaseModel):
    """One rule binding a source location to a destination table."""

    description: StrictStr = ""
    source: StrictStr
    destination_table: StrictStr
    id_expr: StrictStr
    connection: StrictStr

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("source", "destination_table")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def label(self) -> str:
        return self.description or self.destination_table


class MappingDocument(BaseModel):
    mappings: List[Mapping]

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True)
class LoaderOptions:
    strict_extension_check: bool = DEFAULT_STRICT_EXTENSION_CHECK
    transaction_per_file: bool = DEFAULT_TRANSACTION_PER_FILE
    create_tables: bool = DEFAULT_CREATE_TABLES
