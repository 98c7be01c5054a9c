"""Configuration loading for the json2db loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .models import (DEFAULT_CREATE_TABLES, DEFAULT_LOG_LEVEL,
                     DEFAULT_STRICT_EXTENSION_CHECK,
                     DEFAULT_TRANSACTION_PER_FILE, LoaderOptions)

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def _bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    strict_extension_check: bool = DEFAULT_STRICT_EXTENSION_CHECK
    transaction_per_file: bool = DEFAULT_TRANSACTION_PER_FILE
    create_tables: bool = DEFAULT_CREATE_TABLES
    load_id: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper(),
            strict_extension_check=_bool(
                os.getenv("JSON2DB_STRICT_EXTENSION_CHECK"),
                DEFAULT_STRICT_EXTENSION_CHECK,
            ),
            transaction_per_file=_bool(
                os.getenv("JSON2DB_TRANSACTION_PER_FILE"), DEFAULT_TRANSACTION_PER_FILE
            ),
            create_tables=_bool(
                os.getenv("JSON2DB_CREATE_TABLES"), DEFAULT_CREATE_TABLES
            ),
            load_id=os.getenv("JSON2DB_LOAD_ID") or None,
        )

    def loader_options(self) -> LoaderOptions:
        return LoaderOptions(
            strict_extension_check=self.strict_extension_check,
            transaction_per_file=self.transaction_per_file,
            create_tables=self.create_tables,
        )
