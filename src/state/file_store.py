from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from prefs.errors import BackendError

from .backend import TableBackend
from .models import PrefsTable, dump_table_json, load_table_json


logger = logging.getLogger(__name__)

DEFAULT_PREFS_FILE_ENV = "PREFS_FILE"


def _default_prefs_file() -> Path:
    # Prefer explicit env var, else project-local .prefs folder
    path = os.environ.get(DEFAULT_PREFS_FILE_ENV)
    if path:
        return Path(path)
    return Path(".prefs") / "prefs.json"


class JsonFileBackend(TableBackend):
    """
    Preference table persisted to a single JSON file.

    - File format: {"version": 1, "entries": {key: value, ...}}
    - Loaded lazily; a missing file is an empty table.
    - A corrupt or unreadable file is logged and treated as empty, so the next
      `save()` replaces it.
    - `save()` writes to a sibling temp file and renames it over the target.
    """

    def __init__(self, path: Optional[os.PathLike[str] | str] = None) -> None:
        super().__init__()
        self._path = Path(path) if path else _default_prefs_file()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> PrefsTable:
        if not self._path.exists():
            return PrefsTable.empty()
        try:
            return load_table_json(self._path.read_bytes())
        except (OSError, ValueError, ValidationError) as ex:
            logger.warning("Ignoring unreadable preferences file %s: %s", self._path, ex)
            return PrefsTable.empty()

    def _store(self, table: PrefsTable) -> None:
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(dump_table_json(table))
            os.replace(tmp, self._path)
        except OSError as ex:
            raise BackendError(f"Failed to write preferences file {self._path}") from ex
