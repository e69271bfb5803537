"""
Sync manager.

Reconciles the local dataset with a single remote snapshot using
last-writer-wins on the logical ``updatedAt`` timestamp:

- Pushes are automatic and always overwrite the remote snapshot.
- Pulls replace local state wholesale and happen only when the user confirms.
- A remote snapshot written by another device with a newer timestamp is
  reported as a pending update; ``sync_now`` refuses to push over it.

Public operations never raise; they return a boolean (or None) and record
failures in ``status.error`` where the UI should show them.
"""

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .collaborators import (
    AppDataValidator,
    BrowserOpener,
    CallbackDataStore,
    Dataset,
    LocalDataStore,
    Validator,
    WebBrowserOpener,
)
from .config.environment import EnvironmentLoader, SyncSettings
from .config.sqlite import SQLiteConfigStore
from .config.store import ConfigStore
from .config.validation import ConfigValidator
from .log_setup import setup_logging
from .models.state import SyncConfig, SyncStatus
from .models.sync import ProviderType, SyncMeta, SyncPayload
from .providers import (
    ICloudHost,
    OAuthProviderAdapter,
    ProviderAdapter,
    build_providers,
)
from .scheduling import SyncScheduler
from .tokens import TokenStore
from .utils import generate_device_id, now_ms

logger = logging.getLogger(__name__)

SYNC_CONFIG_KEY = "sync_config"
NOT_AUTHENTICATED = "Not authenticated"

StatusListener = Callable[[SyncStatus], None]


class SyncManager:
    """
    Owns the sync configuration and status and drives check/pull/push cycles.

    Construct one per process and hand it to the UI layer.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        local_store: Optional[LocalDataStore] = None,
        validator: Optional[Validator] = None,
        browser: Optional[BrowserOpener] = None,
        settings: Optional[SyncSettings] = None,
        token_store: Optional[TokenStore] = None,
        providers: Optional[Dict[ProviderType, ProviderAdapter]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        icloud_host: Optional[ICloudHost] = None,
    ):
        """
        Initialize sync manager.

        Args:
            config_store: Persistence for the sync config and tokens
            local_store: Access to the local dataset
            validator: Schema check for pulled data (defaults to the Subly schema)
            browser: Opens OAuth consent pages (defaults to the system browser)
            settings: Deployment settings (defaults to the environment)
            token_store: Token persistence (defaults to one over config_store)
            providers: Adapters overriding the default ones, by type
            transport: Optional httpx transport for the default adapters
            icloud_host: Optional iCloud container for the default iCloud adapter
        """
        self.settings = settings or EnvironmentLoader.load_settings()
        self.config_store = config_store
        self.local_store = local_store
        self.validator = validator or AppDataValidator()
        self.browser = browser or WebBrowserOpener()
        self.token_store = token_store or TokenStore.from_settings(
            config_store, self.settings.token_encryption_key
        )

        self.providers = build_providers(
            self.settings,
            self.token_store,
            self.browser,
            transport=transport,
            icloud_host=icloud_host,
        )
        if providers:
            self.providers.update(providers)

        self.scheduler = SyncScheduler(
            poll_interval_seconds=self.settings.poll_interval_seconds,
            upload_debounce_seconds=self.settings.upload_debounce_seconds,
        )

        self.config = SyncConfig()
        self.status = SyncStatus()
        self._listeners: List[StatusListener] = []

    # ==================== Status ====================

    def add_status_listener(self, listener: StatusListener) -> None:
        """Register a callback receiving a status snapshot on every change."""
        self._listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _update_status(self, **changes: Any) -> None:
        for field_name, value in changes.items():
            setattr(self.status, field_name, value)

        snapshot = dataclasses.replace(self.status)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Status listener failed: {e}")

    # ==================== Setup ====================

    def set_sync_callbacks(
        self,
        on_receive: Callable[[Dataset], Any],
        get_data: Callable[[], Any],
    ) -> None:
        """Use plain callables as the local data store."""
        self.local_store = CallbackDataStore(on_receive, get_data)

    async def init_sync(self) -> None:
        """Load the persisted config, wire credentials and resume background checks."""
        try:
            saved = await self.config_store.get(SYNC_CONFIG_KEY)
        except Exception as e:
            logger.error(f"Failed to load sync config: {e}")
            saved = None

        self.config = SyncConfig.from_dict(saved or {})
        if not self.config.device_id:
            self.config.device_id = generate_device_id()
            logger.info(f"Generated device id {self.config.device_id}")
            await self._save_config()

        self._wire_credentials()
        self.status = SyncStatus.from_config(self.config)
        self._update_status()

        if self.config.enabled and self.config.provider:
            await self.check_remote()
            self.scheduler.start_polling(self._poll_remote)

        logger.info(
            f"Sync initialized: provider={self._provider_name()}, enabled={self.config.enabled}"
        )

    def _wire_credentials(self) -> None:
        """Pass stored client credentials to the adapters, falling back to settings."""
        config, settings = self.config, self.settings

        if config.gdrive_client_id or settings.gdrive_client_id:
            self._set_credentials(
                ProviderType.GDRIVE,
                config.gdrive_client_id or settings.gdrive_client_id,
                config.gdrive_client_secret or settings.gdrive_client_secret,
            )

        if config.dropbox_app_key or settings.dropbox_app_key:
            self._set_credentials(
                ProviderType.DROPBOX,
                config.dropbox_app_key or settings.dropbox_app_key,
                config.dropbox_app_secret or settings.dropbox_app_secret,
            )

        if config.onedrive_client_id or settings.onedrive_client_id:
            self._set_credentials(
                ProviderType.ONEDRIVE,
                config.onedrive_client_id or settings.onedrive_client_id,
            )

        if config.webdav_url:
            self._set_credentials(
                ProviderType.WEBDAV,
                config.webdav_url,
                config.webdav_username,
                config.webdav_password,
            )
        elif settings.webdav_url:
            self._set_credentials(
                ProviderType.WEBDAV,
                settings.webdav_url,
                settings.webdav_username,
                settings.webdav_password,
            )

    def _set_credentials(self, provider_type: ProviderType, *credentials: str) -> None:
        # Replacement adapters may not take credentials
        set_credentials = getattr(self.providers[provider_type], "set_credentials", None)
        if set_credentials is not None:
            set_credentials(*credentials)

    async def set_provider_credentials(
        self,
        provider_type: Union[ProviderType, str],
        credentials: Dict[str, str],
    ) -> bool:
        """
        Store client credentials for a provider and pass them to its adapter.

        Args:
            provider_type: Provider to configure
            credentials: ``clientId``/``clientSecret`` (Google Drive),
                ``clientId`` (OneDrive), ``appKey``/``appSecret`` (Dropbox) or
                ``serverUrl``/``username``/``password`` (WebDAV)

        Returns:
            True if the credentials were persisted
        """
        try:
            provider_type = ProviderType(provider_type)
        except ValueError:
            logger.warning(f"Unknown provider type: {provider_type}")
            return False

        if provider_type is ProviderType.GDRIVE:
            self.config.gdrive_client_id = credentials.get("clientId", "")
            self.config.gdrive_client_secret = credentials.get("clientSecret", "")
        elif provider_type is ProviderType.DROPBOX:
            self.config.dropbox_app_key = credentials.get("appKey", "")
            self.config.dropbox_app_secret = credentials.get("appSecret", "")
        elif provider_type is ProviderType.ONEDRIVE:
            self.config.onedrive_client_id = credentials.get("clientId", "")
        elif provider_type is ProviderType.WEBDAV:
            self.config.webdav_url = credentials.get("serverUrl", "")
            self.config.webdav_username = credentials.get("username", "")
            self.config.webdav_password = credentials.get("password", "")
        else:
            # iCloud is configured by the OS
            return False

        self._wire_credentials()
        return await self._save_config()

    # ==================== Accessors ====================

    def get_providers(self) -> List[Dict[str, str]]:
        return [self.providers[provider_type].describe() for provider_type in ProviderType]

    def get_active_provider(self) -> Optional[ProviderAdapter]:
        return self.providers[self.config.provider] if self.config.provider else None

    def get_sync_config(self) -> SyncConfig:
        return dataclasses.replace(self.config)

    def get_local_updated_at(self) -> int:
        return self.config.local_updated_at

    async def set_local_updated_at(self, timestamp: int) -> None:
        self.config.local_updated_at = timestamp
        self._update_status(local_updated_at=timestamp)
        await self._save_config()

    # ==================== Enable / disable ====================

    async def enable_sync(self, provider_type: Union[ProviderType, str]) -> bool:
        """
        Select a provider and turn sync on.

        For OAuth providers without stored tokens this only starts the browser
        flow; completion arrives later through ``handle_oauth_code``.

        Returns:
            False, with no side effects, if the provider is unavailable or
            authentication could not be started
        """
        try:
            provider_type = ProviderType(provider_type)
        except ValueError:
            logger.warning(f"Unknown provider type: {provider_type}")
            return False

        provider = self.providers[provider_type]

        try:
            if not await provider.is_available():
                return False

            if not await provider.is_authenticated():
                if not await provider.authenticate():
                    return False
        except Exception as e:
            logger.warning(f"Enabling {provider.name} failed: {e}")
            return False

        self.config.provider = provider_type
        self.config.enabled = True
        self._update_status(provider=provider_type, enabled=True, error=None)
        await self._save_config()

        self.scheduler.start_polling(self._poll_remote)
        await self.check_remote()
        logger.info(f"Sync enabled with {provider.name}")
        return True

    async def disable_sync(self) -> None:
        """Stop background work, disconnect the provider and forget it."""
        self.scheduler.stop_polling()
        self.scheduler.cancel_upload()

        provider = self.get_active_provider()
        if provider:
            try:
                await provider.disconnect()
            except Exception as e:
                logger.debug(f"Disconnect from {provider.name} failed: {e}")

        self.config.provider = None
        self.config.enabled = False
        self._update_status(
            provider=None,
            enabled=False,
            error=None,
            pending_update=False,
            remote_updated_at=0,
        )
        await self._save_config()
        logger.info("Sync disabled")

    async def handle_oauth_code(self, code: str) -> bool:
        """Complete the OAuth flow of the active provider."""
        provider = self.get_active_provider()
        if not isinstance(provider, OAuthProviderAdapter):
            return False
        return await provider.handle_auth_code(code)

    # ==================== Sync operations ====================

    async def check_remote(self) -> bool:
        """
        Compare the remote snapshot's meta with local state.

        Returns:
            True if another device wrote a newer snapshot (pending update)
        """
        provider = self._enabled_provider()
        if provider is None:
            return False

        try:
            if not await provider.is_authenticated():
                return False

            remote_meta = await provider.get_remote_meta()
            if remote_meta is None:
                self._update_status(pending_update=False)
                return False

            remote_ts = remote_meta.effective_timestamp()
            pending = self._is_newer_from_other_device(remote_meta, remote_ts)
            self._update_status(remote_updated_at=remote_ts, pending_update=pending)

            if pending:
                logger.info(
                    f"Remote update pending from {remote_meta.device_id} "
                    f"({remote_ts} > {self.config.local_updated_at})"
                )
            return pending

        except Exception as e:
            logger.warning(f"Remote check failed: {e}")
            return False

    def _is_newer_from_other_device(self, remote_meta: SyncMeta, remote_ts: int) -> bool:
        # A device never treats its own last write as a pending update
        return remote_ts > self.config.local_updated_at and remote_meta.device_id != self.config.device_id

    async def pull_remote(self) -> bool:
        """
        Replace local data with the remote snapshot (user confirmed).

        Returns:
            True if local data was replaced
        """
        provider = self._enabled_provider()
        if provider is None or self.status.syncing:
            return False

        self._update_status(syncing=True, error=None)
        try:
            if not await provider.is_authenticated():
                self._update_status(error=NOT_AUTHENTICATED)
                return False

            remote = await provider.download()
            if remote is None or remote.data is None:
                return False

            validated = self.validator.validate(remote.data)
            if validated is None:
                logger.warning("Remote snapshot failed validation; nothing pulled")
                return False

            if self.local_store is None:
                logger.warning("No local data store registered; nothing pulled")
                return False

            remote_ts = remote.meta.effective_timestamp()
            await self.local_store.on_data_received(validated)

            self.config.last_synced = now_ms()
            self.config.local_updated_at = remote_ts
            self._update_status(
                last_synced=self.config.last_synced,
                local_updated_at=remote_ts,
                remote_updated_at=remote_ts,
                pending_update=False,
            )
            await self._save_config()
            logger.info(f"Pulled remote snapshot from {remote.meta.device_id}")
            return True

        except Exception as e:
            self._update_status(error=str(e))
            logger.warning(f"Pull failed: {e}")
            return False
        finally:
            self._update_status(syncing=False)

    async def push_local(self) -> bool:
        """
        Upload the local dataset, overwriting the remote snapshot.

        Returns:
            True if the upload succeeded
        """
        provider = self._enabled_provider()
        if provider is None or self.status.syncing:
            return False

        self._update_status(syncing=True, error=None)
        try:
            if not await provider.is_authenticated():
                self._update_status(error=NOT_AUTHENTICATED)
                return False

            if self.local_store is None:
                return False

            local_data = await self.local_store.get_local_data()
            if local_data is None:
                return False

            now = now_ms()
            payload = SyncPayload(
                data=local_data,
                meta=SyncMeta(
                    last_synced_at=now,
                    updated_at=self.config.local_updated_at or now,
                    device_id=self.config.device_id,
                ),
            )
            await provider.upload(payload)

            self.config.last_synced = now
            self._update_status(
                last_synced=now,
                remote_updated_at=payload.meta.updated_at,
                pending_update=False,
            )
            await self._save_config()
            logger.info(f"Pushed local snapshot to {provider.name}")
            return True

        except Exception as e:
            self._update_status(error=str(e))
            logger.warning(f"Push failed: {e}")
            return False
        finally:
            self._update_status(syncing=False)

    async def sync_now(self) -> bool:
        """
        Push local data unless another device has a newer snapshot.

        Returns:
            False without uploading when a remote update is pending; the UI
            should offer to pull first
        """
        if self._enabled_provider() is None or self.status.syncing:
            return False

        if await self.check_remote():
            return False

        return await self.push_local()

    async def upload_now(self) -> bool:
        """Upload-only entry point used after local saves."""
        return await self.push_local()

    def dismiss_pending_update(self) -> None:
        """Hide the pending update prompt without pulling."""
        self._update_status(pending_update=False)

    async def mark_local_change(self) -> None:
        """
        Record a local mutation and schedule a debounced upload.

        The pending upload lives only in memory; if the process exits within
        the debounce window the change is pushed on the next sync instead.
        """
        # Never behind a timestamp pulled from a device with a faster clock
        await self.set_local_updated_at(max(now_ms(), self.config.local_updated_at + 1))
        if self.config.enabled and self.config.provider:
            self.scheduler.schedule_upload(self._auto_upload)

    async def close(self) -> None:
        self.scheduler.shutdown()

    @classmethod
    def from_settings(cls, settings: Optional[SyncSettings] = None, **kwargs: Any) -> "SyncManager":
        """
        Build a manager backed by the SQLite config store, with logging configured.

        Args:
            settings: Deployment settings (defaults to the environment)
            **kwargs: Passed through to the constructor

        Raises:
            ConfigurationError: if the settings are invalid
        """
        settings = settings or EnvironmentLoader.load_settings()
        ConfigValidator.ensure_valid(settings)

        setup_logging(settings.log_level)
        logger.info(f"Using sync config database {settings.config_db_path}")

        return cls(
            config_store=SQLiteConfigStore(settings.config_db_path),
            settings=settings,
            **kwargs,
        )

    # ==================== Internals ====================

    def _enabled_provider(self) -> Optional[ProviderAdapter]:
        if not self.config.enabled or not self.config.provider:
            return None
        return self.providers[self.config.provider]

    def _provider_name(self) -> str:
        return self.config.provider.value if self.config.provider else "none"

    async def _poll_remote(self) -> None:
        try:
            await self.check_remote()
        except Exception as e:
            logger.warning(f"Background sync check failed: {e}")

    async def _auto_upload(self) -> None:
        if not await self.upload_now():
            logger.warning(f"Automatic upload did not complete: {self.status.error or 'skipped'}")

    async def _save_config(self) -> bool:
        try:
            await self.config_store.set(SYNC_CONFIG_KEY, self.config.to_dict())
            return True
        except Exception as e:
            logger.error(f"Failed to save sync config: {e}")
            return False
