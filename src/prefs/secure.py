from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Optional, TypeVar

from common.config import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_KEY_SUFFIX,
    PrefsSettings,
    build_backend,
)
from state.backend import PrefsBackend

from .cipher import DesEcbCipher
from .errors import (
    BackendError,
    CipherError,
    NotInitializedError,
    ParseError,
    ReservedKeyError,
)
from .results import Lookup, LookupStatus


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Store key holding the per-installation fragment in clear text.
RAND_KEY = "a9Gjj5R2eM9LkOIU45o6"

FRAGMENT_MIN = 100
FRAGMENT_MAX = 999  # exclusive


def _parse_int(text: str) -> int:
    try:
        return int(text)
    except ValueError as ex:
        raise ParseError(f"Not an integer: {text!r}") from ex


def _parse_float(text: str) -> float:
    try:
        return float(text)
    except ValueError as ex:
        raise ParseError(f"Not a float: {text!r}") from ex


class SecurePrefs:
    """
    Encrypted typed accessors over a host preference store.

    Usage
    - `SecurePrefs.open(backend)` derives the key and returns a ready instance.
    - `set_int("score", 1234)` stores base64 DES ciphertext of "1234".
    - `get_int("score", -1)` returns the value, or the default when the key is
      missing, fails to decrypt, or does not parse. `lookup_int` returns a
      `Lookup` that tells those cases apart.

    Key material
    - `prefix + fragment + suffix`, where the fragment is a 3-digit number
      generated once per installation and kept in clear text under `RAND_KEY`.
      The secrecy rests on the prefix/suffix only; this is obfuscation, not
      protection against someone who has the program.

    Threading
    - `initialize()` is serialized by a lock. Accessors are not; the backend
      is expected to have a single writer per process.
    """

    def __init__(
        self,
        backend: PrefsBackend,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        key_suffix: str = DEFAULT_KEY_SUFFIX,
        log_errors: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._backend = backend
        self._prefix = key_prefix
        self._suffix = key_suffix
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._cipher: Optional[DesEcbCipher] = None
        self._fragment: Optional[str] = None
        self.logging_enabled = log_errors

    # -------- Construction helpers --------
    @classmethod
    def open(cls, backend: PrefsBackend, **kwargs) -> "SecurePrefs":
        """Construct and initialize in one step."""
        return cls(backend, **kwargs).initialize()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[PrefsSettings] = None,
        *,
        backend: Optional[PrefsBackend] = None,
        rng: Optional[random.Random] = None,
    ) -> "SecurePrefs":
        """Build an initialized instance from settings (read from env when omitted)."""
        settings = settings or PrefsSettings.from_env()
        return cls.open(
            backend or build_backend(settings),
            key_prefix=settings.key_prefix,
            key_suffix=settings.key_suffix,
            log_errors=settings.log_errors,
            rng=rng,
        )

    # -------- Initialization --------
    def initialize(self) -> "SecurePrefs":
        """Load or generate the installation fragment and derive the key.

        Raises CipherError if the assembled key is not a usable DES key.
        """
        with self._lock:
            fragment = self._backend.get_string(RAND_KEY) if self._backend.has_key(RAND_KEY) else None
            if fragment is None:
                fragment = str(self._rng.randrange(FRAGMENT_MIN, FRAGMENT_MAX))
                self._backend.set_string(RAND_KEY, fragment)
                logger.info("Generated new installation key fragment")
            self._cipher = DesEcbCipher(self._prefix + fragment + self._suffix)
            self._fragment = fragment
        return self

    def is_initialized(self) -> bool:
        return self._cipher is not None

    def set_logging_enabled(self, enabled: bool) -> None:
        self.logging_enabled = bool(enabled)

    # -------- Cipher primitives --------
    def _require_cipher(self) -> DesEcbCipher:
        if self._cipher is None:
            raise NotInitializedError("SecurePrefs.initialize() has not been called")
        return self._cipher

    def encrypt(self, plaintext: str) -> str:
        return self._require_cipher().encrypt(plaintext)

    def decrypt(self, ciphertext: str) -> str:
        return self._require_cipher().decrypt(ciphertext)

    # -------- Lookups --------
    def _lookup(self, key: str, parse: Callable[[str], T]) -> Lookup[T]:
        try:
            stored = self._backend.get_string(key)
        except BackendError as ex:
            return Lookup(key=key, status=LookupStatus.BACKEND_FAILED, error=ex)
        if not stored:
            return Lookup(key=key, status=LookupStatus.ABSENT)
        try:
            text = self.decrypt(stored)
        except CipherError as ex:
            return Lookup(key=key, status=LookupStatus.DECRYPT_FAILED, error=ex)
        try:
            value = parse(text)
        except ParseError as ex:
            return Lookup(key=key, status=LookupStatus.PARSE_FAILED, error=ex)
        return Lookup(key=key, status=LookupStatus.FOUND, value=value)

    def lookup_string(self, key: str) -> Lookup[str]:
        return self._lookup(key, str)

    def lookup_int(self, key: str) -> Lookup[int]:
        return self._lookup(key, _parse_int)

    def lookup_float(self, key: str) -> Lookup[float]:
        return self._lookup(key, _parse_float)

    def lookup_bool(self, key: str) -> Lookup[bool]:
        """Read through the int path; FOUND carries `value == 1`."""
        result = self.lookup_int(key)
        if not result.found:
            return Lookup(key=key, status=result.status, error=result.error)
        return Lookup(key=key, status=LookupStatus.FOUND, value=result.value == 1)

    # -------- Typed getters (never raise) --------
    def _collapse(self, result: Lookup[T], default: T) -> T:
        if result.error is not None and self.logging_enabled:
            logger.warning(
                "Could not read preference %r (%s)",
                result.key,
                result.status.value,
                exc_info=result.error,
            )
        return result.value_or(default)

    def get_string(self, key: str, default: str = "") -> str:
        return self._collapse(self.lookup_string(key), default)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._collapse(self.lookup_int(key), default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._collapse(self.lookup_float(key), default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Stored 1 reads as True; anything else (including a stored 0) yields `default`."""
        if self._collapse(self.lookup_int(key), 0) == 1:
            return True
        return default

    # -------- Typed setters --------
    def _check_writable(self, key: str) -> None:
        if key == RAND_KEY:
            raise ReservedKeyError(f"{RAND_KEY!r} is reserved for the installation key fragment")

    def set_string(self, key: str, value: str) -> None:
        self._check_writable(key)
        self._backend.set_string(key, self.encrypt(value))

    def set_int(self, key: str, value: int) -> None:
        if not isinstance(value, int):
            raise TypeError(f"set_int expects an int, got {type(value).__name__}")
        self.set_string(key, str(int(value)))

    def set_float(self, key: str, value: float) -> None:
        self.set_string(key, repr(float(value)))

    def set_bool(self, key: str, value: bool) -> None:
        self.set_int(key, 1 if value else 0)

    # -------- Pass-throughs --------
    def has_key(self, key: str) -> bool:
        return self._backend.has_key(key)

    def delete_key(self, key: str) -> None:
        self._check_writable(key)
        self._backend.delete_key(key)

    def delete_all(self) -> None:
        """Remove every preference except the installation fragment.

        Once initialized, the reserved fragment key is written back after the
        wipe, so `has_key(RAND_KEY)` stays true and values set afterwards remain
        readable after a restart. Before initialization the store is emptied.
        """
        self._backend.delete_all()
        if self._fragment is not None:
            self._backend.set_string(RAND_KEY, self._fragment)

    def flush(self) -> None:
        self._backend.save()
