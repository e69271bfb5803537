"""
Data models for the sync core.
"""

from .sync import SYNC_FILENAME, ProviderType, SyncMeta, SyncPayload
from .state import SyncConfig, SyncStatus
from .app_data import AppData

__all__ = [
    "SYNC_FILENAME",
    "ProviderType",
    "SyncMeta",
    "SyncPayload",
    "SyncConfig",
    "SyncStatus",
    "AppData",
]
