"""
iCloud provider.

iCloud has no web API for third-party app data; the snapshot is a file in the
app's ubiquity container, which the OS keeps in sync. Access goes through an
ICloudHost so the container can be swapped out.
"""

import asyncio
import logging
import os
import sys
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..config.environment import DEFAULT_ICLOUD_CONTAINER
from ..exceptions import TransportError
from ..models.sync import SYNC_FILENAME, ProviderType, SyncPayload
from .base import FetchFailure, ProviderAdapter, RemoteFetch

logger = logging.getLogger(__name__)


class ICloudHost(ABC):
    """Host capability exposing the iCloud container."""

    @abstractmethod
    async def container_url(self) -> Optional[str]:
        """Location of the container, or None if iCloud is unavailable."""
        pass

    @abstractmethod
    async def read_file(self, filename: str) -> Optional[str]:
        """Contents of a file in the container, or None if it does not exist."""
        pass

    @abstractmethod
    async def write_file(self, filename: str, contents: str) -> None:
        """Replace a file in the container."""
        pass


class ICloudDriveHost(ICloudHost):
    """
    iCloud Drive container on macOS.

    Files live in ``~/Library/Mobile Documents/<container>/Documents``; the
    container directory exists only when the user is signed in to iCloud with
    iCloud Drive enabled.
    """

    def __init__(
        self,
        container: str = DEFAULT_ICLOUD_CONTAINER,
        documents_dir: Optional[Path] = None,
        platform: Optional[str] = None,
    ):
        self.platform = platform or sys.platform
        self.documents_dir = documents_dir or (
            Path.home() / "Library" / "Mobile Documents" / container / "Documents"
        )

    def _supported(self) -> bool:
        return self.platform in ("darwin", "ios")

    async def container_url(self) -> Optional[str]:
        if not self._supported():
            return None
        if not await asyncio.to_thread(self.documents_dir.is_dir):
            return None
        return self.documents_dir.as_uri()

    async def read_file(self, filename: str) -> Optional[str]:
        path = self.documents_dir / filename
        if not await asyncio.to_thread(path.exists):
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def write_file(self, filename: str, contents: str) -> None:
        await asyncio.to_thread(self._write_atomic, self.documents_dir / filename, contents)

    @staticmethod
    def _write_atomic(path: Path, contents: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(contents)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise


class ICloudProvider(ProviderAdapter):
    """iCloud sync provider."""

    type = ProviderType.ICLOUD
    name = "iCloud"
    icon = "/assets/icloud.svg"

    def __init__(self, host: Optional[ICloudHost] = None):
        super().__init__()
        self.host = host or ICloudDriveHost()

    async def is_available(self) -> bool:
        try:
            return await self.host.container_url() is not None
        except Exception as e:
            logger.debug(f"iCloud container lookup failed: {e}")
            return False

    async def is_authenticated(self) -> bool:
        return await self.is_available()

    async def authenticate(self) -> bool:
        return await self.is_available()

    async def disconnect(self) -> None:
        # iCloud is system-level, nothing to disconnect
        return None

    async def upload(self, payload: SyncPayload) -> None:
        try:
            await self.host.write_file(SYNC_FILENAME, payload.to_json())
        except OSError as e:
            raise TransportError(f"iCloud upload failed: {e}", provider=self.type.value) from e

    async def _fetch(self) -> RemoteFetch:
        raw = await self.host.read_file(SYNC_FILENAME)
        if not raw:
            return RemoteFetch.failed(FetchFailure.NOT_FOUND, SYNC_FILENAME)
        return RemoteFetch.decode(raw)
