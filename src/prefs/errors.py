from __future__ import annotations


class PrefsError(RuntimeError):
    """Base error for secure preferences."""


class CipherError(PrefsError):
    """The cipher rejected the key or failed to process data."""


class NotInitializedError(CipherError):
    """Encryption was attempted before the key material was derived."""


class DecryptError(CipherError):
    """Ciphertext could not be decrypted (bad length, padding, or text)."""


class DecodingError(DecryptError):
    """Stored value is not valid base64."""


class EncodingError(PrefsError):
    """Plaintext could not be encoded to bytes."""


class ParseError(PrefsError, ValueError):
    """Decrypted text is not a valid value for the requested type."""


class ReservedKeyError(PrefsError, ValueError):
    """Raised when a caller tries to overwrite or delete the reserved fragment key."""


class BackendError(PrefsError):
    """The underlying preference store failed to load or save."""


class OptimisticLockError(BackendError):
    """Raised when an ETag precondition fails during a conditional write."""
