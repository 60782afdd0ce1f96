"""
Session Storage Module
======================

Stores per-session objects in the shared KeyedCache.

Key layout (before the optional CACHE_KEY_PREFIX is applied):
    <session_id>                                  user profile
    <session_id>:<key>                            session attribute
    <session_id>:<client_name>:requestedUrl       requested URL

All operations are no-ops when the session identifier is blank: a caller
without a session never gets anything persisted or retrieved.
"""

import logging
from typing import Any, Optional

from ..cache import KeyedCache
from ..config import Settings
from .utils import cache_key, is_blank, join_key

logger = logging.getLogger(__name__)

REQUESTED_URL = "requestedUrl"


class SessionStorage:
    """
    Generic session attribute storage.

    Args:
        cache: Shared keyed cache
        settings: Application settings (CACHE_KEY_PREFIX, SESSION_TIMEOUT_SECONDS)
    """

    def __init__(self, cache: KeyedCache, settings: Settings):
        self._cache = cache
        self._prefix = settings.CACHE_KEY_PREFIX
        self._session_timeout = settings.SESSION_TIMEOUT_SECONDS

    def key_for(self, *parts: str) -> str:
        """Physical cache key for the given logical key parts."""
        return cache_key(join_key(*parts), self._prefix)

    async def get(self, session_id: Optional[str], key: str) -> Optional[Any]:
        if is_blank(session_id):
            return None
        return await self._cache.get(self.key_for(session_id, key))

    async def save(
        self,
        session_id: Optional[str],
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """
        Save a session attribute.

        A None value removes the attribute instead of storing it.

        Args:
            session_id: Session identifier
            key: Attribute name
            value: Attribute value
            ttl_seconds: Time-to-live (defaults to SESSION_TIMEOUT_SECONDS)
        """
        if is_blank(session_id):
            return

        if value is None:
            await self.remove(session_id, key)
            return

        if ttl_seconds is None:
            ttl_seconds = self._session_timeout
        await self._cache.set(self.key_for(session_id, key), value, ttl_seconds)

    async def remove(self, session_id: Optional[str], key: str) -> None:
        if is_blank(session_id):
            return
        await self._cache.remove(self.key_for(session_id, key))


class ProfileStore:
    """
    Stores the authenticated user profile under the bare session identifier.

    Args:
        cache: Shared keyed cache
        settings: Application settings (CACHE_KEY_PREFIX, PROFILE_TIMEOUT_SECONDS)
    """

    def __init__(self, cache: KeyedCache, settings: Settings):
        self._cache = cache
        self._prefix = settings.CACHE_KEY_PREFIX
        self._profile_timeout = settings.PROFILE_TIMEOUT_SECONDS

    def key_for(self, session_id: str) -> str:
        return cache_key(session_id, self._prefix)

    async def get_profile(self, session_id: Optional[str]) -> Optional[Any]:
        """
        Get the profile from storage.

        Returns:
            The profile, or None if no session, no entry, or expired
        """
        if is_blank(session_id):
            return None
        return await self._cache.get(self.key_for(session_id))

    async def save_profile(
        self,
        session_id: Optional[str],
        profile: Optional[Any],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """
        Save a user profile in storage.

        Saving None deletes any existing profile for the session.

        Args:
            session_id: Session identifier
            profile: User profile (opaque)
            ttl_seconds: Time-to-live (defaults to PROFILE_TIMEOUT_SECONDS)
        """
        if is_blank(session_id):
            return

        if profile is None:
            await self.remove_profile(session_id)
            return

        if ttl_seconds is None:
            ttl_seconds = self._profile_timeout
        await self._cache.set(self.key_for(session_id), profile, ttl_seconds)
        logger.debug(f"Saved profile for sessionId {session_id}", extra={"ttl_seconds": ttl_seconds})

    async def remove_profile(self, session_id: Optional[str]) -> None:
        if is_blank(session_id):
            return
        await self._cache.remove(self.key_for(session_id))


class RequestedUrlStore:
    """
    Stores the URL a user asked for before being sent to an identity provider.

    Save, read and remove all use <session_id>:<client_name>:requestedUrl, so
    the callback for a client reads exactly what was saved for that client.
    Entries live for SESSION_TIMEOUT_SECONDS.

    Args:
        storage: Session attribute storage
        settings: Application settings (CLEAR_REQUESTED_URL_ON_READ)
    """

    def __init__(self, storage: SessionStorage, settings: Settings):
        self._storage = storage
        self._clear_on_read = settings.CLEAR_REQUESTED_URL_ON_READ

    @staticmethod
    def attribute_for(client_name: str) -> str:
        return join_key(client_name, REQUESTED_URL)

    async def save_requested_url(
        self,
        session_id: Optional[str],
        requested_url: Optional[str],
        client_name: str,
    ) -> None:
        await self._storage.save(session_id, self.attribute_for(client_name), requested_url)

    async def get_requested_url(
        self,
        session_id: Optional[str],
        client_name: str,
    ) -> Optional[str]:
        """
        Get a requested url from storage.

        Non-destructive unless CLEAR_REQUESTED_URL_ON_READ is set.
        """
        attribute = self.attribute_for(client_name)
        requested_url = await self._storage.get(session_id, attribute)

        if requested_url is not None and self._clear_on_read:
            await self._storage.remove(session_id, attribute)

        return requested_url

    async def remove_requested_url(self, session_id: Optional[str], client_name: str) -> None:
        await self._storage.remove(session_id, self.attribute_for(client_name))


__all__ = [
    "REQUESTED_URL",
    "ProfileStore",
    "RequestedUrlStore",
    "SessionStorage",
]
