from __future__ import annotations

import json
from typing import Dict

from pydantic import BaseModel, Field


class PrefsTable(BaseModel):
    """
    The host preference table as persisted by file and S3 backends.

    Fields
    - version: schema version of the serialized table.
    - entries: raw string values by preference key. Values written through
      `SecurePrefs` are base64 ciphertext; the installation fragment is stored
      here in clear text under its reserved key.
    """

    version: int = Field(default=1, description="Serialized table schema version")
    entries: Dict[str, str] = Field(
        default_factory=dict,
        description="Map of preference keys to stored string values",
    )

    @classmethod
    def empty(cls) -> "PrefsTable":
        """Convenience constructor for a fresh, empty table."""
        return cls()


def dump_table_json(table: PrefsTable) -> bytes:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(
        table.model_dump(), separators=(",", ":"), sort_keys=True
    ).encode("utf-8")


def load_table_json(data: bytes) -> PrefsTable:
    raw = json.loads(data.decode("utf-8"))
    return PrefsTable.model_validate(raw)
