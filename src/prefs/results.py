from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class LookupStatus(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    BACKEND_FAILED = "backend_failed"
    DECRYPT_FAILED = "decrypt_failed"
    PARSE_FAILED = "parse_failed"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """
    Outcome of reading one encrypted preference.

    - `status` tells apart a missing key, a store that could not be read, a
      value that failed to decrypt, and a value that decrypted but did not
      parse as the requested type.
    - `value` is set only when `status` is FOUND.
    - `error` carries the exception for the failure statuses.
    """

    key: str
    status: LookupStatus
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def value_or(self, default: T) -> T:
        if self.status is LookupStatus.FOUND:
            return self.value  # type: ignore[return-value]
        return default
