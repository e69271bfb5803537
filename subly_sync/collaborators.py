"""
Interfaces the sync core consumes from the host application.

Concrete defaults are provided for callback-based local data, the Subly
dataset schema and the system web browser.
"""

import asyncio
import inspect
import logging
import webbrowser
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import ValidationError

from .models.app_data import AppData

logger = logging.getLogger(__name__)

Dataset = Dict[str, Any]


class LocalDataStore(ABC):
    """Access to the local application dataset."""

    @abstractmethod
    async def get_local_data(self) -> Optional[Dataset]:
        """
        Return a snapshot of the current local dataset.

        Returns:
            Dataset, or None if nothing is loaded yet
        """
        pass

    @abstractmethod
    async def on_data_received(self, data: Dataset) -> None:
        """
        Replace local state wholesale with a pulled dataset.

        Args:
            data: Validated dataset
        """
        pass


class CallbackDataStore(LocalDataStore):
    """
    LocalDataStore backed by two callables.

    Either callable may be a plain function or a coroutine function.
    """

    def __init__(
        self,
        on_receive: Callable[[Dataset], Union[None, Awaitable[None]]],
        get_data: Callable[[], Union[Optional[Dataset], Awaitable[Optional[Dataset]]]],
    ):
        self._on_receive = on_receive
        self._get_data = get_data

    async def get_local_data(self) -> Optional[Dataset]:
        result = self._get_data()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def on_data_received(self, data: Dataset) -> None:
        result = self._on_receive(data)
        if inspect.isawaitable(result):
            await result


class Validator(ABC):
    """Schema validation for pulled datasets."""

    @abstractmethod
    def validate(self, raw: Any) -> Optional[Dataset]:
        """
        Validate and normalise a raw dataset.

        Args:
            raw: Decoded ``data`` field of a remote payload

        Returns:
            Normalised dataset, or None if it does not conform
        """
        pass


class AppDataValidator(Validator):
    """Validates against the Subly dataset schema, filling defaults."""

    def validate(self, raw: Any) -> Optional[Dataset]:
        if not isinstance(raw, dict):
            return None
        try:
            return AppData.model_validate(raw).model_dump(by_alias=True)
        except ValidationError as e:
            logger.warning(f"Remote dataset failed validation: {e.error_count()} error(s)")
            return None


class BrowserOpener(ABC):
    """Opens an authorization URL for the user."""

    @abstractmethod
    async def open(self, url: str) -> None:
        """
        Open a URL.

        Raises:
            Exception: if the URL could not be opened
        """
        pass


class WebBrowserOpener(BrowserOpener):
    """Opens URLs in the system browser."""

    async def open(self, url: str) -> None:
        opened = await asyncio.to_thread(webbrowser.open, url)
        if not opened:
            raise RuntimeError("No web browser available")
