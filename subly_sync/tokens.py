"""
Persistence boundary for OAuth token material.

Tokens are stored through the ConfigStore under one key per provider.
When an encryption key is configured they are encrypted at rest using
Fernet symmetric encryption.
"""

import base64
import hashlib
import json
import logging
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

from .config.store import ConfigStore

logger = logging.getLogger(__name__)

GDRIVE_TOKEN_KEY = "gdrive_tokens"
DROPBOX_TOKEN_KEY = "dropbox_tokens"
ONEDRIVE_TOKEN_KEY = "onedrive_tokens"


def cipher_from_key(key: str) -> Fernet:
    """
    Build a Fernet cipher from key material.

    A valid Fernet key (44 chars, base64) is used as is; any other string is
    stretched with SHA-256 into one.
    """
    if len(key) != 44:
        key = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest()).decode()
    return Fernet(key.encode())


class TokenStore:
    """Thin get/set/delete over ConfigStore. No validation, no locking, no caching."""

    def __init__(self, config_store: ConfigStore, cipher: Optional[Fernet] = None):
        """
        Initialize token store.

        Args:
            config_store: Backing key/value store
            cipher: Optional cipher for at-rest encryption
        """
        self.config_store = config_store
        self._cipher = cipher

    @classmethod
    def from_settings(cls, config_store: ConfigStore, encryption_key: Optional[str]) -> "TokenStore":
        cipher = cipher_from_key(encryption_key) if encryption_key else None
        return cls(config_store, cipher)

    @property
    def encrypted(self) -> bool:
        return self._cipher is not None

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.config_store.get(key)
        if raw is None:
            return None

        if self._cipher is None:
            return raw

        try:
            decrypted = self._cipher.decrypt(str(raw).encode())
            return json.loads(decrypted.decode())
        except (InvalidToken, ValueError) as e:
            logger.error(f"Failed to decrypt tokens for {key}: {type(e).__name__}")
            return None

    async def set(self, key: str, value: Any) -> None:
        if self._cipher is None:
            await self.config_store.set(key, value)
            return

        encrypted = self._cipher.encrypt(json.dumps(value).encode())
        await self.config_store.set(key, encrypted.decode())

    async def delete(self, key: str) -> None:
        if await self.config_store.delete(key):
            logger.info(f"Deleted tokens for {key}")
