"""
Configuration for the sync core: settings, validation and storage backends.
"""

from .environment import SyncSettings, EnvironmentLoader, DEFAULT_REDIRECT_URI
from .validation import ConfigValidator
from .store import ConfigStore, MemoryConfigStore
from .sqlite import SQLiteConfigStore

__all__ = [
    "SyncSettings",
    "EnvironmentLoader",
    "DEFAULT_REDIRECT_URI",
    "ConfigValidator",
    "ConfigStore",
    "MemoryConfigStore",
    "SQLiteConfigStore",
]
