from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

from state.backend import MemoryBackend, PrefsBackend


# Environment variable names
ENV_BACKEND = "PREFS_BACKEND"
ENV_FILE = "PREFS_FILE"
ENV_BUCKET = "PREFS_BUCKET"
ENV_OBJECT_KEY = "PREFS_OBJECT_KEY"  # optional; defaults to "prefs.json"
ENV_REGION = "PREFS_REGION"
ENV_S3_OPTIMISTIC = "PREFS_S3_OPTIMISTIC"
ENV_KEY_PREFIX = "PREFS_KEY_PREFIX"
ENV_KEY_SUFFIX = "PREFS_KEY_SUFFIX"
ENV_LOG_ERRORS = "PREFS_LOG_ERRORS"

DEFAULT_KEY_PREFIX = "1uc"
DEFAULT_KEY_SUFFIX = "d0"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _parse_flag(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    norm = raw.strip().lower()
    if norm in _TRUE:
        return True
    if norm in _FALSE:
        return False
    raise RuntimeError(f"Invalid boolean for {name}: {raw!r}")


class PrefsSettings(BaseModel):
    """
    Configuration for a `SecurePrefs` instance and its backing store.

    The key prefix and suffix are compiled-in secrets in spirit: they are not
    stored anywhere, so changing them makes every existing value unreadable.
    Together with the 3-digit installation fragment they must make 8 ASCII
    characters.
    """

    backend: Literal["memory", "file", "s3"] = Field(default="memory")
    file_path: Optional[str] = Field(default=None, description="JSON file for the file backend")
    bucket: Optional[str] = Field(default=None, description="S3 bucket for the s3 backend")
    object_key: str = Field(default="prefs.json", description="S3 object key for the s3 backend")
    region_name: Optional[str] = None
    s3_optimistic: bool = Field(default=False, description="Fail flush on a concurrent S3 write")
    key_prefix: str = DEFAULT_KEY_PREFIX
    key_suffix: str = DEFAULT_KEY_SUFFIX
    log_errors: bool = True

    @classmethod
    def from_env(cls) -> "PrefsSettings":
        backend = _getenv(ENV_BACKEND, "memory")
        if backend not in ("memory", "file", "s3"):
            raise RuntimeError(f"Unsupported {ENV_BACKEND}: {backend!r}")
        bucket = _getenv(ENV_BUCKET)
        if backend == "s3" and not bucket:
            raise RuntimeError(
                f"Missing required environment variables for S3 preferences: {ENV_BUCKET}"
            )
        return cls(
            backend=backend,
            file_path=_getenv(ENV_FILE),
            bucket=bucket,
            object_key=_getenv(ENV_OBJECT_KEY, "prefs.json"),
            region_name=_getenv(ENV_REGION),
            s3_optimistic=_parse_flag(ENV_S3_OPTIMISTIC, _getenv(ENV_S3_OPTIMISTIC), False),
            key_prefix=_getenv(ENV_KEY_PREFIX, DEFAULT_KEY_PREFIX),
            key_suffix=_getenv(ENV_KEY_SUFFIX, DEFAULT_KEY_SUFFIX),
            log_errors=_parse_flag(ENV_LOG_ERRORS, _getenv(ENV_LOG_ERRORS), True),
        )


def build_backend(settings: PrefsSettings, *, s3: Optional[object] = None) -> PrefsBackend:
    """Construct the store named by `settings.backend`."""
    if settings.backend == "file":
        from state.file_store import JsonFileBackend

        return JsonFileBackend(settings.file_path)
    if settings.backend == "s3":
        from state.s3_store import S3Backend

        if not settings.bucket:
            raise RuntimeError("Missing required configuration: bucket")
        return S3Backend(
            s3=s3,
            bucket=settings.bucket,
            key=settings.object_key,
            region_name=settings.region_name,
            optimistic=settings.s3_optimistic,
        )
    return MemoryBackend()
