"""
Encrypted typed preferences layered over a host key-value store.

Values are encrypted with DES/ECB under a key built from compiled-in
fragments and a per-installation number, then stored as base64 text.
"""

from .errors import (
    BackendError,
    CipherError,
    DecodingError,
    DecryptError,
    EncodingError,
    NotInitializedError,
    OptimisticLockError,
    ParseError,
    PrefsError,
    ReservedKeyError,
)
from .results import Lookup, LookupStatus
from .secure import RAND_KEY, SecurePrefs

__all__ = [
    "BackendError",
    "CipherError",
    "DecodingError",
    "DecryptError",
    "EncodingError",
    "Lookup",
    "LookupStatus",
    "NotInitializedError",
    "OptimisticLockError",
    "ParseError",
    "PrefsError",
    "RAND_KEY",
    "ReservedKeyError",
    "SecurePrefs",
]
