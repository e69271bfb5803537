"""
Tests for token persistence.
"""

import pytest
from cryptography.fernet import Fernet

from subly_sync.config import MemoryConfigStore
from subly_sync.tokens import DROPBOX_TOKEN_KEY, TokenStore, cipher_from_key

TOKENS = {"access_token": "secret-access", "refresh_token": "secret-refresh", "expires_at": 123}


class TestTokenStore:
    """Tests for TokenStore."""

    @pytest.mark.asyncio
    async def test_plain_round_trip(self):
        config_store = MemoryConfigStore()
        store = TokenStore(config_store)

        await store.set(DROPBOX_TOKEN_KEY, TOKENS)

        assert store.encrypted is False
        assert await store.get(DROPBOX_TOKEN_KEY) == TOKENS
        assert await config_store.get(DROPBOX_TOKEN_KEY) == TOKENS

    @pytest.mark.asyncio
    async def test_missing_key(self):
        assert await TokenStore(MemoryConfigStore()).get("gdrive_tokens") is None

    @pytest.mark.asyncio
    async def test_encrypted_at_rest(self):
        config_store = MemoryConfigStore()
        store = TokenStore.from_settings(config_store, Fernet.generate_key().decode())

        await store.set(DROPBOX_TOKEN_KEY, TOKENS)
        stored = await config_store.get(DROPBOX_TOKEN_KEY)

        assert store.encrypted is True
        assert isinstance(stored, str)
        assert "secret-access" not in stored
        assert await store.get(DROPBOX_TOKEN_KEY) == TOKENS

    @pytest.mark.asyncio
    async def test_passphrase_key(self):
        config_store = MemoryConfigStore()
        await TokenStore.from_settings(config_store, "correct horse").set(DROPBOX_TOKEN_KEY, TOKENS)

        reopened = TokenStore.from_settings(config_store, "correct horse")
        assert await reopened.get(DROPBOX_TOKEN_KEY) == TOKENS

    @pytest.mark.asyncio
    async def test_wrong_key_reads_as_none(self):
        config_store = MemoryConfigStore()
        await TokenStore.from_settings(config_store, "key-one").set(DROPBOX_TOKEN_KEY, TOKENS)

        assert await TokenStore.from_settings(config_store, "key-two").get(DROPBOX_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_plaintext_value_with_cipher_reads_as_none(self):
        config_store = MemoryConfigStore({DROPBOX_TOKEN_KEY: TOKENS})
        store = TokenStore(config_store, cipher_from_key("any"))

        assert await store.get(DROPBOX_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_delete(self):
        config_store = MemoryConfigStore()
        store = TokenStore(config_store)
        await store.set(DROPBOX_TOKEN_KEY, TOKENS)

        await store.delete(DROPBOX_TOKEN_KEY)
        await store.delete(DROPBOX_TOKEN_KEY)

        assert await store.get(DROPBOX_TOKEN_KEY) is None
