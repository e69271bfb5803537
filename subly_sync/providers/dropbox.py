"""
Dropbox provider.

The snapshot is written to ``/Apps/Subly/subly-sync.json`` with overwrite
semantics, so there is no file id to track.
"""

import json
import logging
from typing import Dict

import httpx

from ..models.sync import SYNC_FILENAME, ProviderType, SyncPayload
from ..tokens import DROPBOX_TOKEN_KEY
from .base import FetchFailure, RemoteFetch
from .oauth import OAuthProviderAdapter, OAuthTokens

logger = logging.getLogger(__name__)

DROPBOX_PATH = f"/Apps/Subly/{SYNC_FILENAME}"
UPLOAD_URL = "https://content.dropboxapi.com/2/files/upload"
DOWNLOAD_URL = "https://content.dropboxapi.com/2/files/download"
REVOKE_URL = "https://api.dropboxapi.com/2/auth/token/revoke"


def _api_arg(arg: dict) -> str:
    return json.dumps(arg, separators=(",", ":"))


class DropboxProvider(OAuthProviderAdapter):
    """Dropbox sync provider."""

    type = ProviderType.DROPBOX
    name = "Dropbox"
    icon = "/assets/dropbox.svg"

    AUTH_URL = "https://www.dropbox.com/oauth2/authorize"
    TOKEN_URL = "https://api.dropbox.com/oauth2/token"
    TOKEN_KEY = DROPBOX_TOKEN_KEY

    def _authorize_params(self) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "token_access_type": "offline",
        }

    async def _revoke(self, client: httpx.AsyncClient, tokens: OAuthTokens) -> None:
        await client.post(REVOKE_URL, headers={"Authorization": f"Bearer {tokens.access_token}"})

    async def upload(self, payload: SyncPayload) -> None:
        await self._require_auth()

        headers = self._auth_headers()
        headers["Content-Type"] = "application/octet-stream"
        headers["Dropbox-API-Arg"] = _api_arg({
            "path": DROPBOX_PATH,
            "mode": "overwrite",
            "autorename": False,
            "mute": True,
        })

        async with self._client() as client:
            response = await client.post(
                UPLOAD_URL,
                headers=headers,
                content=payload.to_json().encode("utf-8"),
            )

        self._raise_for_upload(response)

    async def _fetch(self) -> RemoteFetch:
        if not await self._ensure_auth():
            return RemoteFetch.failed(FetchFailure.UNAUTHENTICATED, "no valid token")

        headers = self._auth_headers()
        headers["Dropbox-API-Arg"] = _api_arg({"path": DROPBOX_PATH})

        async with self._client() as client:
            response = await client.post(DOWNLOAD_URL, headers=headers)

        # Dropbox reports path/not_found as 409
        return RemoteFetch.from_response(response, not_found_statuses=(404, 409))
