"""
OAuth 2.0 authorization-code flow shared by Google Drive, Dropbox and OneDrive.

The flow is split in two: ``authenticate()`` opens the provider's consent page
in the browser, and the code that arrives at the loopback redirect URI is
handed to ``handle_auth_code()``. Access tokens are refreshed lazily when an
authenticated call finds them expired.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from ..collaborators import BrowserOpener
from ..config.environment import DEFAULT_REDIRECT_URI
from ..exceptions import NotAuthenticatedError
from ..tokens import TokenStore
from ..utils import now_ms
from .base import ProviderAdapter

logger = logging.getLogger(__name__)


@dataclass
class OAuthTokens:
    """OAuth token material. ``expires_at`` is absolute epoch milliseconds."""
    access_token: str
    refresh_token: str = ""
    expires_at: int = 0

    def is_expired(self, now: Optional[int] = None) -> bool:
        return self.expires_at <= (now_ms() if now is None else now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OAuthTokens":
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or "",
            expires_at=int(data.get("expires_at") or 0),
        )

    @classmethod
    def from_token_response(
        cls,
        data: Dict[str, Any],
        previous: Optional["OAuthTokens"] = None,
    ) -> "OAuthTokens":
        """Build tokens from a token endpoint response, keeping the old refresh token if none is returned."""
        refresh_token = data.get("refresh_token") or (previous.refresh_token if previous else "")
        return cls(
            access_token=data["access_token"],
            refresh_token=refresh_token,
            expires_at=now_ms() + int(data.get("expires_in", 0)) * 1000,
        )


class OAuthProviderAdapter(ProviderAdapter):
    """Provider adapter for backends authorized through OAuth 2.0."""

    AUTH_URL: str = ""
    TOKEN_URL: str = ""
    TOKEN_KEY: str = ""

    def __init__(
        self,
        token_store: TokenStore,
        browser: BrowserOpener,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            token_store: Persistence for this provider's tokens
            browser: Opens the consent page
            redirect_uri: Loopback URI registered with the provider
            transport: Optional httpx transport
            timeout: Per-request timeout in seconds
        """
        super().__init__(transport=transport, timeout=timeout)
        self.token_store = token_store
        self.browser = browser
        self.redirect_uri = redirect_uri
        self.client_id = ""
        self.client_secret = ""
        self._tokens: Optional[OAuthTokens] = None

    def set_credentials(self, client_id: str, client_secret: str = "") -> None:
        self.client_id = client_id
        self.client_secret = client_secret

    # ==================== Provider-specific parameters ====================

    @abstractmethod
    def _authorize_params(self) -> Dict[str, str]:
        """Query parameters of the authorization URL, in order."""
        pass

    def _code_exchange_params(self, code: str) -> Dict[str, str]:
        return {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

    def _refresh_params(self, refresh_token: str) -> Dict[str, str]:
        return {
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }

    async def _revoke(self, client: httpx.AsyncClient, tokens: OAuthTokens) -> None:
        """Revoke the token remotely. Most providers only drop local state."""
        return None

    # ==================== Authentication ====================

    async def is_available(self) -> bool:
        return bool(self.client_id)

    async def is_authenticated(self) -> bool:
        try:
            return await self._ensure_auth()
        except Exception as e:
            logger.warning(f"{self.name}: authentication check failed: {e}")
            return False

    def authorization_url(self) -> str:
        return f"{self.AUTH_URL}?{urlencode(self._authorize_params(), quote_via=quote)}"

    async def authenticate(self) -> bool:
        if not self.client_id:
            return False

        try:
            await self.browser.open(self.authorization_url())
            return True
        except Exception as e:
            logger.warning(f"{self.name}: could not open browser for sign-in: {e}")
            return False

    async def handle_auth_code(self, code: str) -> bool:
        """
        Exchange an authorization code for tokens and persist them.

        Args:
            code: Authorization code from the redirect

        Returns:
            True if tokens were obtained
        """
        try:
            async with self._client() as client:
                response = await client.post(self.TOKEN_URL, data=self._code_exchange_params(code))

            if not response.is_success:
                logger.error(f"{self.name}: token exchange failed: {response.status_code}")
                return False

            self._tokens = OAuthTokens.from_token_response(response.json())
            await self._save_tokens()
            logger.info(f"{self.name}: connected")
            return True

        except Exception as e:
            logger.error(f"{self.name}: token exchange failed: {e}")
            return False

    async def disconnect(self) -> None:
        if self._tokens is None:
            await self._load_tokens()

        tokens = self._tokens
        if tokens and tokens.access_token:
            try:
                async with self._client() as client:
                    await self._revoke(client, tokens)
            except Exception as e:
                logger.debug(f"{self.name}: token revoke failed: {e}")

        self._tokens = None
        try:
            await self.token_store.delete(self.TOKEN_KEY)
        except Exception as e:
            logger.warning(f"{self.name}: failed to delete stored tokens: {e}")

    async def _ensure_auth(self) -> bool:
        """Make sure a non-expired access token is cached, refreshing at most once."""
        if self._tokens and not self._tokens.is_expired():
            return True

        await self._load_tokens()
        if not self._tokens:
            return False

        if self._tokens.is_expired():
            return await self._refresh_access_token()

        return True

    async def _refresh_access_token(self) -> bool:
        if not self._tokens or not self._tokens.refresh_token:
            return False

        try:
            async with self._client() as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=self._refresh_params(self._tokens.refresh_token),
                )

            if not response.is_success:
                logger.error(f"{self.name}: token refresh failed: {response.status_code}")
                return False

            self._tokens = OAuthTokens.from_token_response(response.json(), previous=self._tokens)
            await self._save_tokens()
            return True

        except Exception as e:
            logger.error(f"{self.name}: token refresh failed: {e}")
            return False

    async def _require_auth(self) -> OAuthTokens:
        if not await self._ensure_auth() or self._tokens is None:
            raise NotAuthenticatedError(self.type.value)
        return self._tokens

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._tokens.access_token}"}

    async def _load_tokens(self) -> None:
        try:
            data = await self.token_store.get(self.TOKEN_KEY)
            self._tokens = OAuthTokens.from_dict(data) if data else None
        except Exception as e:
            logger.warning(f"{self.name}: stored tokens unreadable: {e}")
            self._tokens = None

    async def _save_tokens(self) -> None:
        if not self._tokens:
            return
        await self.token_store.set(self.TOKEN_KEY, self._tokens.to_dict())
