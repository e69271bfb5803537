"""
WebDAV provider.

Works with any WebDAV server (Nextcloud, ownCloud, NAS boxes). The snapshot
is stored at the root of the configured URL using HTTP Basic auth.
"""

import logging
from typing import Optional

import httpx

from ..models.sync import SYNC_FILENAME, ProviderType, SyncPayload
from .base import ProviderAdapter, RemoteFetch

logger = logging.getLogger(__name__)


class WebDAVProvider(ProviderAdapter):
    """WebDAV sync provider."""

    type = ProviderType.WEBDAV
    name = "WebDAV"
    icon = "/assets/webdav.svg"

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        super().__init__(transport=transport, timeout=timeout)
        self.server_url = ""
        self.username = ""
        self.password = ""

    def set_credentials(self, server_url: str, username: str, password: str) -> None:
        self.server_url = server_url.rstrip("/")
        self.username = username
        self.password = password

    @property
    def file_url(self) -> str:
        return f"{self.server_url}/{SYNC_FILENAME}"

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.password)

    async def is_available(self) -> bool:
        return bool(self.server_url and self.username)

    async def is_authenticated(self) -> bool:
        if not self.server_url or not self.username:
            return False

        try:
            async with self._client() as client:
                response = await client.request(
                    "PROPFIND",
                    self.server_url,
                    headers={"Depth": "0"},
                    auth=self._auth(),
                )
            return response.status_code in (200, 207)
        except Exception as e:
            logger.warning(f"WebDAV server unreachable: {e}")
            return False

    async def authenticate(self) -> bool:
        return await self.is_authenticated()

    async def disconnect(self) -> None:
        self.server_url = ""
        self.username = ""
        self.password = ""

    async def upload(self, payload: SyncPayload) -> None:
        async with self._client() as client:
            response = await client.put(
                self.file_url,
                headers={"Content-Type": "application/json"},
                content=payload.to_json().encode("utf-8"),
                auth=self._auth(),
            )

        self._raise_for_upload(response)

    async def _fetch(self) -> RemoteFetch:
        async with self._client() as client:
            response = await client.get(self.file_url, auth=self._auth())

        return RemoteFetch.from_response(response)
