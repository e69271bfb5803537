"""
Persisted sync configuration and the UI-facing status record.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .sync import ProviderType


@dataclass
class SyncConfig:
    """Process-wide sync configuration (stored under the ``sync_config`` key)."""
    provider: Optional[ProviderType] = None
    enabled: bool = False
    last_synced: int = 0
    local_updated_at: int = 0
    device_id: str = ""
    gdrive_client_id: str = ""
    gdrive_client_secret: str = ""
    dropbox_app_key: str = ""
    dropbox_app_secret: str = ""
    onedrive_client_id: str = ""
    webdav_url: str = ""
    webdav_username: str = ""
    webdav_password: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value if self.provider else None,
            "enabled": self.enabled,
            "lastSynced": self.last_synced,
            "localUpdatedAt": self.local_updated_at,
            "deviceId": self.device_id,
            "gdriveClientId": self.gdrive_client_id,
            "gdriveClientSecret": self.gdrive_client_secret,
            "dropboxAppKey": self.dropbox_app_key,
            "dropboxAppSecret": self.dropbox_app_secret,
            "onedriveClientId": self.onedrive_client_id,
            "webdavUrl": self.webdav_url,
            "webdavUsername": self.webdav_username,
            "webdavPassword": self.webdav_password,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        provider = None
        if data.get("provider"):
            try:
                provider = ProviderType(data["provider"])
            except ValueError:
                provider = None

        return cls(
            provider=provider,
            enabled=bool(data.get("enabled", False)),
            last_synced=int(data.get("lastSynced") or 0),
            local_updated_at=int(data.get("localUpdatedAt") or 0),
            device_id=data.get("deviceId") or "",
            gdrive_client_id=data.get("gdriveClientId", ""),
            gdrive_client_secret=data.get("gdriveClientSecret", ""),
            dropbox_app_key=data.get("dropboxAppKey", ""),
            dropbox_app_secret=data.get("dropboxAppSecret", ""),
            onedrive_client_id=data.get("onedriveClientId", ""),
            webdav_url=data.get("webdavUrl", ""),
            webdav_username=data.get("webdavUsername", ""),
            webdav_password=data.get("webdavPassword", ""),
        )


@dataclass
class SyncStatus:
    """Observable state consumed by the UI. Never persisted."""
    provider: Optional[ProviderType] = None
    enabled: bool = False
    last_synced: int = 0
    syncing: bool = False
    error: Optional[str] = None
    remote_updated_at: int = 0
    local_updated_at: int = 0
    pending_update: bool = False

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SyncStatus":
        return cls(
            provider=config.provider,
            enabled=config.enabled,
            last_synced=config.last_synced,
            local_updated_at=config.local_updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["provider"] = self.provider.value if self.provider else None
        return data
