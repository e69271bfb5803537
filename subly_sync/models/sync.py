"""
Wire models for the remote sync snapshot.

The remote file is a single JSON document shared by every device:

    {"data": {...}, "meta": {"lastSyncedAt": ..., "updatedAt": ..., "deviceId": "dev_..."}}
"""

import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

SYNC_FILENAME = "subly-sync.json"


class ProviderType(str, Enum):
    """Supported remote storage backends."""
    ICLOUD = "icloud"
    GDRIVE = "gdrive"
    DROPBOX = "dropbox"
    ONEDRIVE = "onedrive"
    WEBDAV = "webdav"


class SyncMeta(BaseModel):
    """Metadata block written alongside every snapshot."""
    last_synced_at: Optional[int] = Field(default=0, alias="lastSyncedAt")  # wall clock at write
    updated_at: Optional[int] = Field(default=0, alias="updatedAt")  # writer's logical clock
    device_id: str = Field(default="", alias="deviceId")

    class Config:
        """Pydantic config."""
        populate_by_name = True

    def effective_timestamp(self) -> int:
        """
        Freshness marker used for comparisons.

        Payloads written before ``updatedAt`` existed only carry
        ``lastSyncedAt``; that value is used as a fallback even though it is a
        different clock.
        """
        return self.updated_at or self.last_synced_at or 0


class SyncPayload(BaseModel):
    """The unit exchanged with remote storage."""
    data: Any = None
    meta: SyncMeta = Field(default_factory=SyncMeta)

    def to_json(self) -> str:
        """Serialize to compact JSON with camelCase meta keys."""
        return json.dumps(
            self.model_dump(by_alias=True),
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "SyncPayload":
        return cls.model_validate_json(raw)
