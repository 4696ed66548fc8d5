"""Figma connector for the search host.

The host calls ``init`` once with credentials, then ``search`` for every
query. Each engine owns its own session state, so several engines (e.g.
for different organizations) can live side by side.

One login accessor lives as long as the engine, so re-initializing with new
credentials does not reset the login quota. A session client replaced by a
newer login is closed as soon as no running search is using it.
"""

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

import httpx

from . import auth
from .config import FigmaOptions
from .exceptions import ConfigurationError, NotInitializedError
from .models import Result
from .ratelimit import DEFAULT_WINDOW, RateLimitedAccessor
from .search import search as search_figma

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_QUOTA = 24


class FigmaEngine:
    """Search connector for Figma files, projects and teams.

    Args:
        base_url: Figma origin.
        transport: Optional httpx transport shared by all requests.
        timeout: Request timeout in seconds.
        login_quota: Maximum logins per ``login_window``.
        login_window: Length of the login quota window; a session is
            reused for this long unless invalidated.
    """

    id = "figma"
    name = "Figma"

    def __init__(
        self,
        *,
        base_url: str = auth.BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        login_quota: int = DEFAULT_LOGIN_QUOTA,
        login_window: timedelta = DEFAULT_WINDOW,
    ):
        self.base_url = base_url
        self.transport = transport
        self.timeout = timeout
        self._options: FigmaOptions | None = None
        self._get_client = RateLimitedAccessor(self._login, quota=login_quota, window=login_window)

        self._current: httpx.AsyncClient | None = None
        self._retired: list[httpx.AsyncClient] = []
        self._in_use: dict[httpx.AsyncClient, int] = {}

    @property
    def is_initialized(self) -> bool:
        return self._options is not None

    @property
    def remaining_logins(self) -> int:
        """Logins still allowed in the current quota window."""
        return self._get_client.remaining

    def init(self, options: FigmaOptions | Mapping[str, Any]) -> None:
        """Initialize with credentials and organization.

        Calling again with the same options keeps the current session.
        Different options drop it; the next search logs in with the new
        credentials, counted against the same quota.

        Raises:
            ConfigurationError: If options are missing or invalid.
        """
        if not isinstance(options, FigmaOptions):
            options = FigmaOptions.from_mapping(options)

        missing = options.validate()
        if missing:
            raise ConfigurationError(f"Missing Figma options: {', '.join(missing)}")

        if self._options == options:
            return

        if self._options is not None:
            self._get_client.clear()
        self._options = options
        logger.info("Figma connector initialized for organization %s", options.organization)

    async def search(self, query: str) -> list[Result]:
        """Search Figma for ``query``.

        Raises:
            NotInitializedError: If ``init`` has not been called.
        """
        if self._options is None:
            raise NotInitializedError("Engine not initialized")

        organization = self._options.organization
        client = await self._get_client()
        self._in_use[client] = self._in_use.get(client, 0) + 1
        try:
            return await search_figma(client, organization, query)
        finally:
            await self._release(client)

    def invalidate_session(self) -> None:
        """Force a fresh login on the next search (quota permitting)."""
        self._get_client.invalidate()

    async def aclose(self) -> None:
        """Close every session client this engine has opened."""
        self._get_client.clear()
        clients = self._retired
        if self._current is not None:
            clients.append(self._current)
        self._current = None
        self._retired = []
        for client in clients:
            await client.aclose()

    async def __aenter__(self) -> "FigmaEngine":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def _login(self) -> httpx.AsyncClient:
        client = await auth.login(
            self._options,
            base_url=self.base_url,
            transport=self.transport,
            timeout=self.timeout,
        )
        previous, self._current = self._current, client
        if previous is not None:
            self._retired.append(previous)
            if not self._in_use.get(previous):
                await self._close_retired(previous)
        return client

    async def _release(self, client: httpx.AsyncClient) -> None:
        count = self._in_use.pop(client) - 1
        if count:
            self._in_use[client] = count
        elif client in self._retired:
            await self._close_retired(client)

    async def _close_retired(self, client: httpx.AsyncClient) -> None:
        self._retired.remove(client)
        logger.debug("Closing superseded Figma session client")
        await client.aclose()
