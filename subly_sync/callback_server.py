"""
Loopback HTTP server receiving OAuth redirects.

Providers redirect the browser to ``http://localhost:19284/callback?code=...``
after consent; the code is handed to ``SyncManager.handle_oauth_code``.
"""

import asyncio
import html
import logging
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse
import uvicorn

from .config.environment import DEFAULT_REDIRECT_URI

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    "<html><body><h3>Subly is connected.</h3>"
    "<p>You can close this window and return to the app.</p></body></html>"
)
FAILURE_PAGE = (
    "<html><body><h3>Sign-in failed.</h3>"
    "<p>{reason}</p></body></html>"
)


class OAuthCallbackServer:
    """FastAPI app listening on the OAuth redirect URI."""

    def __init__(self, manager, redirect_uri: str = DEFAULT_REDIRECT_URI):
        """Initialize callback server.

        Args:
            manager: SyncManager receiving authorization codes
            redirect_uri: Redirect URI registered with the providers
        """
        self.manager = manager
        self.redirect_uri = redirect_uri

        parsed = urlparse(redirect_uri)
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port or 80
        self.path = parsed.path or "/"

        self.server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None

        self.app = FastAPI(
            title="Subly Sync OAuth Callback",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Configure callback routes."""

        @self.app.get("/health")
        async def health_check():
            return JSONResponse(status_code=200, content={"status": "healthy"})

        @self.app.get(self.path)
        async def oauth_callback(
            code: Optional[str] = None,
            error: Optional[str] = None,
            error_description: Optional[str] = None,
        ):
            if error:
                logger.warning(f"OAuth provider returned error: {error}")
                return HTMLResponse(
                    status_code=400,
                    content=FAILURE_PAGE.format(reason=html.escape(error_description or error)),
                )

            if not code:
                return HTMLResponse(
                    status_code=400,
                    content=FAILURE_PAGE.format(reason="No authorization code received."),
                )

            if not await self.manager.handle_oauth_code(code):
                return HTMLResponse(
                    status_code=400,
                    content=FAILURE_PAGE.format(reason="The authorization code could not be exchanged."),
                )

            return HTMLResponse(status_code=200, content=SUCCESS_PAGE)

    async def start(self) -> None:
        """Start serving in the background without blocking."""
        if self._server_task is not None:
            logger.warning("OAuth callback server already running")
            return

        server_config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False,
            loop="asyncio",
        )
        self.server = uvicorn.Server(server_config)
        self._server_task = asyncio.create_task(self.server.serve())

        logger.info(f"OAuth callback server listening on {self.redirect_uri}")

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if self.server is None:
            return

        self.server.should_exit = True

        if self._server_task:
            try:
                await asyncio.wait_for(self._server_task, timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Callback server shutdown timed out, cancelling task")
                self._server_task.cancel()
                try:
                    await self._server_task
                except asyncio.CancelledError:
                    pass

        self.server = None
        self._server_task = None
        logger.info("OAuth callback server stopped")
