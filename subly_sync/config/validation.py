"""
Validation of sync settings.
"""

from typing import List
from urllib.parse import urlsplit

from ..exceptions import ConfigurationError
from .environment import SyncSettings

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigValidator:
    """Validates sync settings."""

    @staticmethod
    def validate_settings(settings: SyncSettings) -> List[str]:
        """Return a list of problems; empty if the settings are usable."""
        errors = []

        errors.extend(ConfigValidator._validate_intervals(settings))
        errors.extend(ConfigValidator._validate_urls(settings))
        errors.extend(ConfigValidator._validate_credentials(settings))

        if settings.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"Unknown log level: {settings.log_level}")

        return errors

    @staticmethod
    def ensure_valid(settings: SyncSettings) -> SyncSettings:
        """Raise ConfigurationError if the settings have problems."""
        errors = ConfigValidator.validate_settings(settings)
        if errors:
            raise ConfigurationError(
                f"Invalid sync settings: {'; '.join(errors)}",
                errors=errors,
            )
        return settings

    @staticmethod
    def _validate_intervals(settings: SyncSettings) -> List[str]:
        errors = []

        if settings.poll_interval_seconds <= 0:
            errors.append("Poll interval must be positive")
        if settings.upload_debounce_seconds < 0:
            errors.append("Upload debounce must not be negative")
        if settings.http_timeout_seconds <= 0:
            errors.append("HTTP timeout must be positive")

        return errors

    @staticmethod
    def _validate_urls(settings: SyncSettings) -> List[str]:
        errors = []

        redirect = urlsplit(settings.redirect_uri)
        if redirect.scheme != "http" or not redirect.hostname:
            errors.append(f"Redirect URI must be a loopback http URL: {settings.redirect_uri}")
        elif redirect.hostname not in ("localhost", "127.0.0.1", "::1"):
            errors.append(f"Redirect URI must point at the local machine: {settings.redirect_uri}")

        if settings.webdav_url:
            scheme = urlsplit(settings.webdav_url).scheme
            if scheme not in ("http", "https"):
                errors.append(f"WebDAV URL must use http or https: {settings.webdav_url}")

        return errors

    @staticmethod
    def _validate_credentials(settings: SyncSettings) -> List[str]:
        errors = []

        if settings.gdrive_client_secret and not settings.gdrive_client_id:
            errors.append("Google Drive client secret set without a client id")
        if settings.dropbox_app_secret and not settings.dropbox_app_key:
            errors.append("Dropbox app secret set without an app key")
        if settings.webdav_password and not settings.webdav_username:
            errors.append("WebDAV password set without a username")

        return errors
