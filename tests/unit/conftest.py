"""
Shared fixtures for sync core tests.
"""

from typing import Optional

import pytest
import pytest_asyncio

from subly_sync.config import MemoryConfigStore, SyncSettings
from subly_sync.manager import SYNC_CONFIG_KEY, SyncManager
from tests.unit.fakes import FakeLocalStore, FakeProvider, FakeRemote, PassthroughValidator, RecordingBrowser


@pytest.fixture
def settings():
    return SyncSettings(poll_interval_seconds=120, upload_debounce_seconds=60)


@pytest.fixture
def remote():
    return FakeRemote()


@pytest_asyncio.fixture
async def make_device(settings):
    """Build initialized managers sharing whatever remote they are given."""
    created = []

    async def factory(
        remote: FakeRemote,
        device_id: str,
        data: Optional[dict] = None,
        enabled: bool = True,
        provider: Optional[FakeProvider] = None,
        local_updated_at: int = 0,
        config_store: Optional[MemoryConfigStore] = None,
        **kwargs,
    ) -> SyncManager:
        provider = provider or FakeProvider(remote)
        saved = {"deviceId": device_id, "localUpdatedAt": local_updated_at}
        if enabled:
            saved.update({"provider": provider.type.value, "enabled": True})

        store = config_store or MemoryConfigStore()
        await store.set(SYNC_CONFIG_KEY, saved)

        manager = SyncManager(
            config_store=store,
            local_store=FakeLocalStore(data),
            validator=PassthroughValidator(),
            browser=RecordingBrowser(),
            settings=settings,
            providers={provider.type: provider},
            **kwargs,
        )
        await manager.init_sync()
        created.append(manager)
        return manager

    yield factory

    for manager in created:
        await manager.close()
