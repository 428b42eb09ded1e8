from __future__ import annotations

import pytest

from common.config import PrefsSettings, build_backend
from prefs import SecurePrefs
from state.backend import MemoryBackend
from state.file_store import JsonFileBackend
from state.s3_store import S3Backend


_ENV = (
    "PREFS_BACKEND",
    "PREFS_FILE",
    "PREFS_BUCKET",
    "PREFS_OBJECT_KEY",
    "PREFS_REGION",
    "PREFS_S3_OPTIMISTIC",
    "PREFS_KEY_PREFIX",
    "PREFS_KEY_SUFFIX",
    "PREFS_LOG_ERRORS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = PrefsSettings.from_env()
    assert settings.backend == "memory"
    assert settings.key_prefix == "1uc"
    assert settings.key_suffix == "d0"
    assert settings.object_key == "prefs.json"
    assert settings.log_errors is True
    assert isinstance(build_backend(settings), MemoryBackend)


def test_file_backend_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("PREFS_BACKEND", "file")
    monkeypatch.setenv("PREFS_FILE", str(tmp_path / "p.json"))
    backend = build_backend(PrefsSettings.from_env())
    assert isinstance(backend, JsonFileBackend)
    assert backend.path == tmp_path / "p.json"


def test_s3_backend_requires_bucket(monkeypatch):
    monkeypatch.setenv("PREFS_BACKEND", "s3")
    with pytest.raises(RuntimeError):
        PrefsSettings.from_env()


def test_s3_backend_from_env(monkeypatch):
    monkeypatch.setenv("PREFS_BACKEND", "s3")
    monkeypatch.setenv("PREFS_BUCKET", "bucket")
    monkeypatch.setenv("PREFS_OBJECT_KEY", "game/prefs.json")
    settings = PrefsSettings.from_env()
    assert settings.bucket == "bucket"
    assert isinstance(build_backend(settings, s3=object()), S3Backend)


def test_unknown_backend_rejected(monkeypatch):
    monkeypatch.setenv("PREFS_BACKEND", "redis")
    with pytest.raises(RuntimeError):
        PrefsSettings.from_env()


@pytest.mark.parametrize("raw,expected", [("0", False), ("off", False), ("YES", True), ("true", True)])
def test_log_errors_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("PREFS_LOG_ERRORS", raw)
    assert PrefsSettings.from_env().log_errors is expected


def test_invalid_log_errors_flag(monkeypatch):
    monkeypatch.setenv("PREFS_LOG_ERRORS", "maybe")
    with pytest.raises(RuntimeError):
        PrefsSettings.from_env()


def test_from_settings_applies_key_fragments_and_logging(monkeypatch):
    monkeypatch.setenv("PREFS_KEY_PREFIX", "ab")
    monkeypatch.setenv("PREFS_KEY_SUFFIX", "xyz")
    monkeypatch.setenv("PREFS_LOG_ERRORS", "0")
    prefs = SecurePrefs.from_settings()
    assert prefs.is_initialized()
    assert prefs.logging_enabled is False
    prefs.set_int("n", 3)
    assert prefs.get_int("n", 0) == 3


def test_from_settings_with_bad_key_fragments_raises(monkeypatch):
    from prefs import CipherError

    monkeypatch.setenv("PREFS_KEY_SUFFIX", "d0n")
    with pytest.raises(CipherError):
        SecurePrefs.from_settings(backend=MemoryBackend())


def test_s3_optimistic_defaults_off(monkeypatch):
    assert PrefsSettings.from_env().s3_optimistic is False
    monkeypatch.setenv("PREFS_S3_OPTIMISTIC", "nope")
    with pytest.raises(RuntimeError):
        PrefsSettings.from_env()
