"""
Subly cloud sync core.

Keeps the Subly dataset in sync across devices through a single JSON
snapshot stored on iCloud, Google Drive, Dropbox, OneDrive or WebDAV.
"""

from .manager import SyncManager
from .callback_server import OAuthCallbackServer
from .collaborators import (
    LocalDataStore,
    CallbackDataStore,
    Validator,
    AppDataValidator,
    BrowserOpener,
    WebBrowserOpener,
)
from .config import (
    SyncSettings,
    EnvironmentLoader,
    ConfigValidator,
    ConfigStore,
    MemoryConfigStore,
    SQLiteConfigStore,
)
from .exceptions import (
    SublySyncError,
    TransportError,
    NotAuthenticatedError,
    ConfigurationError,
)
from .log_setup import setup_logging
from .models import ProviderType, SyncMeta, SyncPayload, SyncConfig, SyncStatus
from .tokens import TokenStore

__version__ = "1.0.0"

__all__ = [
    "SyncManager",
    "OAuthCallbackServer",
    "LocalDataStore",
    "CallbackDataStore",
    "Validator",
    "AppDataValidator",
    "BrowserOpener",
    "WebBrowserOpener",
    "SyncSettings",
    "EnvironmentLoader",
    "ConfigValidator",
    "ConfigStore",
    "MemoryConfigStore",
    "SQLiteConfigStore",
    "SublySyncError",
    "TransportError",
    "NotAuthenticatedError",
    "ConfigurationError",
    "setup_logging",
    "ProviderType",
    "SyncMeta",
    "SyncPayload",
    "SyncConfig",
    "SyncStatus",
    "TokenStore",
]
