"""
Environment variable handling for sync settings.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_REDIRECT_URI = "http://localhost:19284/callback"
DEFAULT_ICLOUD_CONTAINER = "iCloud~com~subly~app"


@dataclass
class SyncSettings:
    """Deployment-level settings for the sync core."""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    poll_interval_seconds: int = 120
    upload_debounce_seconds: float = 5.0
    http_timeout_seconds: float = 30.0

    # Provider application credentials; per-installation values stored in
    # the sync config take precedence
    gdrive_client_id: str = ""
    gdrive_client_secret: str = ""
    dropbox_app_key: str = ""
    dropbox_app_secret: str = ""
    onedrive_client_id: str = ""
    webdav_url: str = ""
    webdav_username: str = ""
    webdav_password: str = ""

    icloud_container: str = DEFAULT_ICLOUD_CONTAINER
    token_encryption_key: Optional[str] = None
    config_db_path: str = "data/subly-sync.db"
    log_level: str = "INFO"


class EnvironmentLoader:
    """Loads sync settings from environment variables."""

    @staticmethod
    def load_settings(env_file: Optional[str] = None) -> SyncSettings:
        """Load settings from environment variables (and a .env file if present)."""
        load_dotenv(env_file)

        return SyncSettings(
            redirect_uri=os.getenv('SUBLY_OAUTH_REDIRECT_URI', DEFAULT_REDIRECT_URI),
            poll_interval_seconds=int(os.getenv('SUBLY_SYNC_POLL_INTERVAL', '120')),
            upload_debounce_seconds=float(os.getenv('SUBLY_SYNC_UPLOAD_DEBOUNCE', '5')),
            http_timeout_seconds=float(os.getenv('SUBLY_HTTP_TIMEOUT', '30')),
            gdrive_client_id=os.getenv('SUBLY_GDRIVE_CLIENT_ID', ''),
            gdrive_client_secret=os.getenv('SUBLY_GDRIVE_CLIENT_SECRET', ''),
            dropbox_app_key=os.getenv('SUBLY_DROPBOX_APP_KEY', ''),
            dropbox_app_secret=os.getenv('SUBLY_DROPBOX_APP_SECRET', ''),
            onedrive_client_id=os.getenv('SUBLY_ONEDRIVE_CLIENT_ID', ''),
            webdav_url=os.getenv('SUBLY_WEBDAV_URL', ''),
            webdav_username=os.getenv('SUBLY_WEBDAV_USERNAME', ''),
            webdav_password=os.getenv('SUBLY_WEBDAV_PASSWORD', ''),
            icloud_container=os.getenv('SUBLY_ICLOUD_CONTAINER', DEFAULT_ICLOUD_CONTAINER),
            token_encryption_key=os.getenv('SUBLY_TOKEN_ENCRYPTION_KEY') or None,
            config_db_path=os.getenv('SUBLY_CONFIG_DB', 'data/subly-sync.db'),
            log_level=os.getenv('SUBLY_LOG_LEVEL', 'INFO').upper(),
        )
