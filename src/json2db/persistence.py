from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from hashlib import blake2b
from typing import Any, Dict, Optional


def canonical_json(document: Any) -> str:
    """Serialize ``document`` to a stable compact text form."""
    return json.dumps(
        document, sort_keys=True, ensure_ascii=False, separators=(",", ":")
    )


def content_hash(data: str) -> str:
    return blake2b(data.encode("utf-8"), digest_size=32).hexdigest()


@dataclass(frozen=True)
class RecordSpec:
    """Structured insert for one document; the session binds every value."""

    table: str
    id: str
    data: str
    hash: str
    load_id: str
    created_at: datetime
    updated_at: datetime

    def values(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "data": self.data,
            "hash": self.hash,
            "load_id": self.load_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def build_record(
    table: str,
    record_id: str,
    document: Any,
    load_id: str,
    now: Optional[datetime] = None,
) -> RecordSpec:
    data = canonical_json(document)
    stamp = now or datetime.now(timezone.utc)
    return RecordSpec(
        table=table,
        id=record_id,
        data=data,
        hash=content_hash(data),
        load_id=load_id,
        created_at=stamp,
        updated_at=stamp,
    )
