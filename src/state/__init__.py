"""
Host preference stores.

Each backend holds plain string values by key and knows nothing about
encryption; `prefs.SecurePrefs` encrypts before values reach them.
"""

from .backend import MemoryBackend, PrefsBackend, TableBackend
from .models import PrefsTable

__all__ = ["MemoryBackend", "PrefsBackend", "PrefsTable", "TableBackend"]
