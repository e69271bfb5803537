"""
Base provider adapter interface.

Every remote backend stores exactly one JSON snapshot (``subly-sync.json``)
in an app-private location and exposes the same capability surface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from pydantic import ValidationError

from ..exceptions import TransportError
from ..models.sync import ProviderType, SyncMeta, SyncPayload

logger = logging.getLogger(__name__)


class FetchFailure(Enum):
    """Why a remote read produced no payload."""
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    TRANSPORT = "transport"
    DECODE = "decode"


@dataclass
class RemoteFetch:
    """Outcome of reading the remote snapshot."""
    payload: Optional[SyncPayload] = None
    failure: Optional[FetchFailure] = None
    detail: str = ""

    @classmethod
    def found(cls, payload: SyncPayload) -> "RemoteFetch":
        return cls(payload=payload)

    @classmethod
    def failed(cls, failure: FetchFailure, detail: str = "") -> "RemoteFetch":
        return cls(failure=failure, detail=detail)

    @classmethod
    def from_response(cls, response: httpx.Response, not_found_statuses=(404,)) -> "RemoteFetch":
        """Classify an HTTP response and decode its body."""
        if response.status_code in not_found_statuses:
            return cls.failed(FetchFailure.NOT_FOUND, f"HTTP {response.status_code}")
        if response.status_code in (401, 403):
            return cls.failed(FetchFailure.UNAUTHENTICATED, f"HTTP {response.status_code}")
        if not response.is_success:
            return cls.failed(FetchFailure.TRANSPORT, f"HTTP {response.status_code}")
        return cls.decode(response.content)

    @classmethod
    def decode(cls, raw) -> "RemoteFetch":
        try:
            return cls.found(SyncPayload.from_json(raw))
        except ValidationError as e:
            return cls.failed(FetchFailure.DECODE, f"{e.error_count()} validation error(s)")


class ProviderAdapter(ABC):
    """Abstract base class for remote storage providers."""

    type: ProviderType
    name: str = ""
    icon: str = ""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            transport: Optional httpx transport (used to fake the network in tests)
            timeout: Per-request timeout in seconds
        """
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def describe(self) -> dict:
        return {"type": self.type.value, "name": self.name, "icon": self.icon}

    @abstractmethod
    async def is_available(self) -> bool:
        """True if the provider has enough configuration to attempt authentication."""
        pass

    @abstractmethod
    async def is_authenticated(self) -> bool:
        """True if usable credentials are cached or persisted. Never raises."""
        pass

    @abstractmethod
    async def authenticate(self) -> bool:
        """
        Start (or for local-capability providers, perform) authentication.

        Returns:
            True if the flow could be started
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Drop credentials. Best effort, never raises."""
        pass

    @abstractmethod
    async def upload(self, payload: SyncPayload) -> None:
        """
        Overwrite the remote snapshot.

        Raises:
            TransportError: on any non-success response
        """
        pass

    @abstractmethod
    async def _fetch(self) -> RemoteFetch:
        """Read the remote snapshot, classifying any failure."""
        pass

    async def download(self) -> Optional[SyncPayload]:
        """
        Fetch the remote snapshot.

        Returns:
            The payload, or None if it is absent or could not be read
        """
        try:
            result = await self._fetch()
        except Exception as e:
            result = RemoteFetch.failed(FetchFailure.TRANSPORT, str(e) or type(e).__name__)

        if result.failure is FetchFailure.NOT_FOUND:
            logger.debug(f"{self.name}: no remote snapshot ({result.detail})")
        elif result.failure is not None:
            logger.warning(f"{self.name}: download failed [{result.failure.value}] {result.detail}")

        return result.payload

    async def get_remote_meta(self) -> Optional[SyncMeta]:
        """Return just the meta block; there is no cheaper endpoint, so this downloads."""
        payload = await self.download()
        return payload.meta if payload else None

    def _raise_for_upload(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise TransportError(
                f"{self.name} upload failed: {response.status_code}",
                provider=self.type.value,
                status_code=response.status_code,
            )
