"""
Remote storage providers.

One adapter per ProviderType; ``build_providers`` returns the complete,
exhaustive mapping used by SyncManager.
"""

from typing import Dict, Optional

import httpx

from ..collaborators import BrowserOpener
from ..config.environment import SyncSettings
from ..models.sync import ProviderType
from ..tokens import TokenStore
from .base import FetchFailure, ProviderAdapter, RemoteFetch
from .oauth import OAuthProviderAdapter, OAuthTokens
from .google_drive import GoogleDriveProvider
from .dropbox import DropboxProvider
from .onedrive import OneDriveProvider
from .webdav import WebDAVProvider
from .icloud import ICloudDriveHost, ICloudHost, ICloudProvider


def build_providers(
    settings: SyncSettings,
    token_store: TokenStore,
    browser: BrowserOpener,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    icloud_host: Optional[ICloudHost] = None,
) -> Dict[ProviderType, ProviderAdapter]:
    """Create one adapter per provider type."""
    oauth_kwargs = {
        "token_store": token_store,
        "browser": browser,
        "redirect_uri": settings.redirect_uri,
        "transport": transport,
        "timeout": settings.http_timeout_seconds,
    }

    providers: Dict[ProviderType, ProviderAdapter] = {
        ProviderType.ICLOUD: ICloudProvider(
            icloud_host or ICloudDriveHost(container=settings.icloud_container)
        ),
        ProviderType.GDRIVE: GoogleDriveProvider(**oauth_kwargs),
        ProviderType.DROPBOX: DropboxProvider(**oauth_kwargs),
        ProviderType.ONEDRIVE: OneDriveProvider(**oauth_kwargs),
        ProviderType.WEBDAV: WebDAVProvider(
            transport=transport,
            timeout=settings.http_timeout_seconds,
        ),
    }

    missing = set(ProviderType) - set(providers)
    if missing:
        raise RuntimeError(f"No adapter for provider types: {sorted(p.value for p in missing)}")

    return providers


__all__ = [
    "FetchFailure",
    "ProviderAdapter",
    "RemoteFetch",
    "OAuthProviderAdapter",
    "OAuthTokens",
    "GoogleDriveProvider",
    "DropboxProvider",
    "OneDriveProvider",
    "WebDAVProvider",
    "ICloudDriveHost",
    "ICloudHost",
    "ICloudProvider",
    "build_providers",
]
