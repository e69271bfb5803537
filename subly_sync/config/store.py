"""
Key/value configuration storage.

Holds the persisted sync configuration and OAuth token material. Values
must be JSON-serializable.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ConfigStore(ABC):
    """Abstract base class for configuration storage backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a value.

        Args:
            key: Configuration key

        Returns:
            Stored value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Store a value, replacing any existing one.

        Args:
            key: Configuration key
            value: JSON-serializable value
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a value.

        Args:
            key: Configuration key

        Returns:
            True if a value was deleted
        """
        pass


class MemoryConfigStore(ConfigStore):
    """
    In-process backend.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self._values[key] = self._copy(value)

    @staticmethod
    def _copy(value: Any) -> Any:
        # Round-trip through JSON to reject values the persistent backends could not store
        return json.loads(json.dumps(value))

    async def get(self, key: str) -> Optional[Any]:
        if key not in self._values:
            return None
        return copy.deepcopy(self._values[key])

    async def set(self, key: str, value: Any) -> None:
        self._values[key] = self._copy(value)

    async def delete(self, key: str) -> bool:
        if key in self._values:
            del self._values[key]
            logger.debug(f"Deleted config key: {key}")
            return True
        return False

    def keys(self) -> list:
        return list(self._values)
