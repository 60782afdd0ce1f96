"""
Component container.

AuthBridge is built once by the application factory from the Settings
instance, the identity client registry and the keyed cache, and stored on
app.state. It exposes the session/profile operations the rest of the
application uses.
"""

import logging
from typing import Any, Iterable, Optional, Union

from fastapi import Request

from ..cache import KeyedCache, MemoryCache
from ..config import Settings
from .clients import Clients, IdentityClient
from .handlers import ControllerHelper
from .session import SessionIdResolver
from .storage import ProfileStore, RequestedUrlStore, SessionStorage

logger = logging.getLogger(__name__)

ClientsLike = Union[Clients, Iterable[IdentityClient], None]


class AuthBridge:
    """
    Holds every authentication component of the application.

    Args:
        settings: Application settings
        clients: Client registry, or an iterable of identity clients
        cache: Shared keyed cache (defaults to an in-memory cache)
    """

    def __init__(
        self,
        settings: Settings,
        clients: ClientsLike = None,
        cache: Optional[KeyedCache] = None,
    ):
        if clients is not None and not isinstance(clients, Clients):
            clients = Clients.from_settings(settings, clients)

        self.settings = settings
        self.clients: Optional[Clients] = clients
        self.cache: KeyedCache = cache if cache is not None else MemoryCache()

        self.resolver = SessionIdResolver(settings)
        self.storage = SessionStorage(self.cache, settings)
        self.profiles = ProfileStore(self.cache, settings)
        self.requested_urls = RequestedUrlStore(self.storage, settings)
        self.helper = ControllerHelper(
            settings,
            self.clients,
            self.resolver,
            self.storage,
            self.profiles,
            self.requested_urls,
        )

        logger.info(
            "Initialized authentication bridge",
            extra={
                "clients": self.clients.names if self.clients else [],
                "cache": type(self.cache).__name__,
            },
        )

    # =========================================================================
    # Session identifier
    # =========================================================================

    def resolve_or_create_session_id(self, request: Request) -> str:
        return self.resolver.resolve_or_create(request.headers, request.session)

    def resolve_session_id(self, request: Request) -> Optional[str]:
        return self.resolver.resolve_existing(request.headers, request.session)

    def clear_session_id(self, request: Request) -> None:
        self.resolver.clear(request.session)

    # =========================================================================
    # Profiles
    # =========================================================================

    async def get_profile(self, session_id: Optional[str]) -> Optional[Any]:
        return await self.profiles.get_profile(session_id)

    async def save_profile(
        self,
        session_id: Optional[str],
        profile: Optional[Any],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        await self.profiles.save_profile(session_id, profile, ttl_seconds)

    async def remove_profile(self, session_id: Optional[str]) -> None:
        await self.profiles.remove_profile(session_id)

    # =========================================================================
    # Requested URLs
    # =========================================================================

    async def save_requested_url(
        self,
        session_id: Optional[str],
        requested_url: Optional[str],
        client_name: str,
    ) -> None:
        await self.requested_urls.save_requested_url(session_id, requested_url, client_name)

    async def get_requested_url(self, session_id: Optional[str], client_name: str) -> Optional[str]:
        return await self.requested_urls.get_requested_url(session_id, client_name)


__all__ = ["AuthBridge"]
