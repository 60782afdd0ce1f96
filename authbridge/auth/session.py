"""
Session Identifier Module
=========================

Derives the per-user session identifier that keys every server-side entry
(profile, requested URL, session attributes).

Two sources, in order of precedence:
- A trusted request header (stateless/API callers resend it on every call)
- A key inside the cookie-backed framework session (browsers)

When neither yields a value, a new UUID is generated and written back into
the framework session.
"""

import logging
import uuid
from typing import Any, MutableMapping, Optional, Union, Mapping

from starlette.datastructures import Headers

from ..config import Settings
from .utils import KEY_SEPARATOR

logger = logging.getLogger(__name__)

HeadersLike = Union[Headers, Mapping[str, str]]


def generate_session_id() -> str:
    """
    Generate a new session identifier.

    uuid4 draws 122 random bits from os.urandom, so identifiers are neither
    predictable nor checked against the store for uniqueness.

    Returns:
        Canonical UUID string
    """
    return str(uuid.uuid4())


class SessionIdResolver:
    """
    Resolves, creates and clears session identifiers.

    Args:
        settings: Application settings (SESSION_ID_HEADER, SESSION_ID_KEY)
    """

    def __init__(self, settings: Settings):
        self._header_name = settings.SESSION_ID_HEADER
        self._session_key = settings.SESSION_ID_KEY

    @property
    def header_name(self) -> str:
        return self._header_name

    @property
    def session_key(self) -> str:
        return self._session_key

    def _from_header(self, headers: HeadersLike) -> Optional[str]:
        if isinstance(headers, Headers):
            values = headers.getlist(self._header_name)
        else:
            value = headers.get(self._header_name)
            values = [value] if value is not None else []

        if not values or not values[0]:
            return None

        session_id = values[0]
        # ':' separates session attribute keys; such an id would alias them
        if KEY_SEPARATOR in session_id:
            logger.warning(
                f"Ignoring '{self._header_name}' header with reserved character",
                extra={"separator": KEY_SEPARATOR},
            )
            return None
        return session_id

    def _from_session(self, session: Mapping[str, Any]) -> Optional[str]:
        value = session.get(self._session_key)
        return value or None

    def resolve_existing(
        self,
        headers: HeadersLike,
        session: Mapping[str, Any],
    ) -> Optional[str]:
        """
        Get the current session identifier without creating one.

        Args:
            headers: Request headers
            session: Cookie-backed framework session

        Returns:
            Session identifier, or None if neither source has one
        """
        session_id = self._from_header(headers)
        if session_id:
            logger.debug(f"'{self._header_name}' header found: {session_id}")
            return session_id

        return self._from_session(session)

    def resolve_or_create(
        self,
        headers: HeadersLike,
        session: MutableMapping[str, Any],
    ) -> str:
        """
        Get (or create) the session identifier.

        The header value wins over the session value and is never persisted.
        The session is only written when a new identifier is generated, so an
        existing cookie identifier is never replaced.

        Args:
            headers: Request headers
            session: Cookie-backed framework session (mutated on creation)

        Returns:
            Session identifier
        """
        session_id = self._from_header(headers)
        if session_id:
            logger.debug(f"sessionId found ({self._header_name}): {session_id}")
            return session_id

        session_id = self._from_session(session)
        if session_id:
            logger.debug(f"sessionId found (Cookie): {session_id}")
            return session_id

        session_id = generate_session_id()
        session[self._session_key] = session_id
        logger.debug(f"sessionId created: {session_id}")
        return session_id

    def clear(self, session: MutableMapping[str, Any]) -> None:
        """
        Remove the session identifier from the framework session.

        Header-based callers are stateless; nothing is cleared for them.
        """
        session.pop(self._session_key, None)


__all__ = [
    "SessionIdResolver",
    "generate_session_id",
]
