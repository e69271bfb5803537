"""
Google Drive provider.

The snapshot lives in the hidden ``appDataFolder`` space, which the
``drive.appdata`` scope can read and write without access to the user's files.
"""

import json
import logging
from typing import Dict, Optional

import httpx

from ..exceptions import TransportError
from ..models.sync import SYNC_FILENAME, ProviderType, SyncPayload
from ..tokens import GDRIVE_TOKEN_KEY
from ..utils import now_ms
from .base import FetchFailure, RemoteFetch
from .oauth import OAuthProviderAdapter

logger = logging.getLogger(__name__)

GDRIVE_SCOPES = "https://www.googleapis.com/auth/drive.appdata"
FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


class GoogleDriveProvider(OAuthProviderAdapter):
    """Google Drive sync provider."""

    type = ProviderType.GDRIVE
    name = "Google Drive"
    icon = "/assets/google-drive.svg"

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    TOKEN_KEY = GDRIVE_TOKEN_KEY

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._file_id: Optional[str] = None

    def _authorize_params(self) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": GDRIVE_SCOPES,
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Always show consent to get refresh token
        }

    async def disconnect(self) -> None:
        self._file_id = None
        await super().disconnect()

    async def _find_file_id(self, client: httpx.AsyncClient) -> Optional[str]:
        """
        Look up the snapshot file in appDataFolder.

        Returns:
            File ID, or None if the file does not exist

        Raises:
            TransportError: if the lookup itself failed
        """
        if self._file_id:
            return self._file_id

        response = await client.get(
            FILES_URL,
            params={
                "spaces": "appDataFolder",
                "q": f"name='{SYNC_FILENAME}'",
                "fields": "files(id)",
            },
            headers=self._auth_headers(),
        )
        if not response.is_success:
            raise TransportError(
                f"{self.name} file lookup failed: {response.status_code}",
                provider=self.type.value,
                status_code=response.status_code,
            )

        files = response.json().get("files") or []
        self._file_id = files[0]["id"] if files else None
        return self._file_id

    async def upload(self, payload: SyncPayload) -> None:
        await self._require_auth()

        async with self._client() as client:
            existing_id = await self._find_file_id(client)

            boundary = f"subly_boundary_{now_ms()}"
            metadata = {"name": SYNC_FILENAME}
            if not existing_id:
                metadata["parents"] = ["appDataFolder"]

            body = (
                f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n"
                f"{json.dumps(metadata, separators=(',', ':'))}\r\n"
                f"--{boundary}\r\nContent-Type: application/json\r\n\r\n"
                f"{payload.to_json()}\r\n"
                f"--{boundary}--"
            )

            headers = self._auth_headers()
            headers["Content-Type"] = f"multipart/related; boundary={boundary}"

            if existing_id:
                response = await client.patch(
                    f"{UPLOAD_URL}/{existing_id}",
                    params={"uploadType": "multipart"},
                    headers=headers,
                    content=body.encode("utf-8"),
                )
            else:
                response = await client.post(
                    UPLOAD_URL,
                    params={"uploadType": "multipart"},
                    headers=headers,
                    content=body.encode("utf-8"),
                )

        if response.status_code == 404:
            # Cached file was deleted remotely; look it up again next time
            self._file_id = None
        self._raise_for_upload(response)

        if not existing_id:
            try:
                self._file_id = response.json().get("id")
            except ValueError:
                self._file_id = None

    async def _fetch(self) -> RemoteFetch:
        if not await self._ensure_auth():
            return RemoteFetch.failed(FetchFailure.UNAUTHENTICATED, "no valid token")

        async with self._client() as client:
            try:
                file_id = await self._find_file_id(client)
            except TransportError as e:
                if e.status_code in (401, 403):
                    return RemoteFetch.failed(FetchFailure.UNAUTHENTICATED, str(e))
                return RemoteFetch.failed(FetchFailure.TRANSPORT, str(e))
            if not file_id:
                return RemoteFetch.failed(FetchFailure.NOT_FOUND, "no file in appDataFolder")

            response = await client.get(
                f"{FILES_URL}/{file_id}",
                params={"alt": "media"},
                headers=self._auth_headers(),
            )

        if response.status_code == 404:
            self._file_id = None
        return RemoteFetch.from_response(response)
