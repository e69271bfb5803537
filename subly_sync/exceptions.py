"""
Exception hierarchy for the sync core.

Adapters raise these internally; SyncManager translates them into
boolean results and status error text.
"""

from typing import Optional


class SublySyncError(Exception):
    """Base exception for all sync errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "SYNC_ERROR",
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.user_message = user_message or message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
        }


class TransportError(SublySyncError):
    """A remote call failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        error_code: str = "TRANSPORT_ERROR",
    ):
        super().__init__(message, error_code=error_code)
        self.provider = provider
        self.status_code = status_code


class NotAuthenticatedError(TransportError):
    """The provider has no usable credentials."""

    def __init__(self, provider: str = ""):
        super().__init__(
            "Not authenticated",
            provider=provider,
            error_code="NOT_AUTHENTICATED",
        )


class ConfigurationError(SublySyncError):
    """Settings failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.errors = errors or []
