from __future__ import annotations

from typing import Dict, Optional, Protocol, runtime_checkable

from .models import PrefsTable


@runtime_checkable
class PrefsBackend(Protocol):
    """
    A host key-value preference store holding string values.

    Mirrors what a game-engine preferences API provides: get/set by string key,
    presence checks, deletion, and an explicit save that makes writes durable.
    """

    def get_string(self, key: str) -> Optional[str]: ...

    def set_string(self, key: str, value: str) -> None: ...

    def has_key(self, key: str) -> bool: ...

    def delete_key(self, key: str) -> None: ...

    def delete_all(self) -> None: ...

    def save(self) -> None: ...


class MemoryBackend:
    """Dict-backed store; nothing survives the process. `save()` only counts calls."""

    def __init__(self, entries: Optional[Dict[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})
        self.save_count = 0

    def get_string(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def set_string(self, key: str, value: str) -> None:
        self._entries[key] = value

    def has_key(self, key: str) -> bool:
        return key in self._entries

    def delete_key(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_all(self) -> None:
        self._entries.clear()

    def save(self) -> None:
        self.save_count += 1

    def snapshot(self) -> Dict[str, str]:
        return dict(self._entries)


class TableBackend:
    """
    Base for stores that keep the whole `PrefsTable` in memory.

    - The table is loaded lazily on first access via `_load()`.
    - Mutations stay in memory until `save()` calls `_store()`.
    """

    def __init__(self) -> None:
        self._table: Optional[PrefsTable] = None
        self._dirty = False

    # -------- Subclass hooks --------
    def _load(self) -> PrefsTable:
        raise NotImplementedError

    def _store(self, table: PrefsTable) -> None:
        raise NotImplementedError

    # -------- Internals --------
    def _entries(self) -> Dict[str, str]:
        if self._table is None:
            self._table = self._load()
        return self._table.entries

    # -------- PrefsBackend --------
    def get_string(self, key: str) -> Optional[str]:
        return self._entries().get(key)

    def set_string(self, key: str, value: str) -> None:
        self._entries()[key] = value
        self._dirty = True

    def has_key(self, key: str) -> bool:
        return key in self._entries()

    def delete_key(self, key: str) -> None:
        if self._entries().pop(key, None) is not None:
            self._dirty = True

    def delete_all(self) -> None:
        entries = self._entries()
        if entries:
            entries.clear()
            self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def save(self) -> None:
        if not self._dirty:
            return
        self._store(self._table or PrefsTable.empty())
        self._dirty = False
