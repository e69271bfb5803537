"""
OneDrive provider.

Uses the Microsoft Graph app folder (``special/approot``). OneDrive apps are
registered as public clients, so no client secret is sent, and the scope is
repeated on every token request.
"""

import logging
from typing import Dict

from ..models.sync import SYNC_FILENAME, ProviderType, SyncPayload
from ..tokens import ONEDRIVE_TOKEN_KEY
from .base import FetchFailure, RemoteFetch
from .oauth import OAuthProviderAdapter

logger = logging.getLogger(__name__)

ONEDRIVE_SCOPES = "Files.ReadWrite.AppFolder offline_access"
CONTENT_URL = f"https://graph.microsoft.com/v1.0/me/drive/special/approot:/{SYNC_FILENAME}:/content"


class OneDriveProvider(OAuthProviderAdapter):
    """OneDrive sync provider."""

    type = ProviderType.ONEDRIVE
    name = "OneDrive"
    icon = "/assets/onedrive.svg"

    AUTH_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
    TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
    TOKEN_KEY = ONEDRIVE_TOKEN_KEY

    def _authorize_params(self) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": ONEDRIVE_SCOPES,
        }

    def _code_exchange_params(self, code: str) -> Dict[str, str]:
        return {
            "code": code,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
            "scope": ONEDRIVE_SCOPES,
        }

    def _refresh_params(self, refresh_token: str) -> Dict[str, str]:
        return {
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "grant_type": "refresh_token",
            "scope": ONEDRIVE_SCOPES,
        }

    async def upload(self, payload: SyncPayload) -> None:
        await self._require_auth()

        headers = self._auth_headers()
        headers["Content-Type"] = "application/json"

        async with self._client() as client:
            response = await client.put(
                CONTENT_URL,
                headers=headers,
                content=payload.to_json().encode("utf-8"),
            )

        self._raise_for_upload(response)

    async def _fetch(self) -> RemoteFetch:
        if not await self._ensure_auth():
            return RemoteFetch.failed(FetchFailure.UNAUTHENTICATED, "no valid token")

        async with self._client() as client:
            # Graph answers the content request with a redirect to the download URL
            response = await client.get(CONTENT_URL, headers=self._auth_headers(), follow_redirects=True)

        return RemoteFetch.from_response(response)
