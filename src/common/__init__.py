"""
Common utilities for secure-prefs.

Modules:
- config: environment-driven settings and backend construction
"""

__all__ = [
    "config",
]
