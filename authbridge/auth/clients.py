"""
Identity client contract.

The bridge never speaks OAuth/CAS/SAML itself. Protocol implementations
("identity clients") are supplied by the application and must follow the
interfaces below. The Clients registry finds the client serving a request.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union, runtime_checkable
from urllib.parse import urlencode

from ..config import Settings
from .exceptions import ClientNotFoundError

logger = logging.getLogger(__name__)


class RequiresHttpAction(Exception):
    """
    Raised by an identity client when the caller must emit a specific HTTP
    response. The client sets the status, headers and content on the web
    context before raising.
    """
    pass


class RedirectActionType(str, Enum):
    REDIRECT = "redirect"
    SUCCESS = "success"


@dataclass(frozen=True)
class RedirectAction:
    """Where (or what) to send the user to start authentication."""
    type: RedirectActionType
    location: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def redirect(cls, location: str) -> "RedirectAction":
        return cls(type=RedirectActionType.REDIRECT, location=location)

    @classmethod
    def success(cls, content: str) -> "RedirectAction":
        """Page to render as-is (e.g. an auto-submitting POST form)."""
        return cls(type=RedirectActionType.SUCCESS, content=content)


@runtime_checkable
class IdentityClient(Protocol):
    """One authentication protocol integration (OAuth, CAS, SAML, ...)."""

    name: str

    async def get_credentials(self, web_context: Any) -> Optional[Any]:
        """Extract credentials from the callback request, or raise RequiresHttpAction."""
        ...

    async def get_user_profile(self, credentials: Optional[Any], web_context: Any) -> Optional[Any]:
        """Turn credentials into a user profile (None if they are not valid)."""
        ...

    async def get_redirect_action(self, web_context: Any) -> RedirectAction:
        """Build the redirection to the identity provider."""
        ...


@runtime_checkable
class AlternateCredentialsExtractor(Protocol):
    """
    Optional capability: extract credentials from somewhere other than the
    standard callback parameters (e.g. a bespoke token query parameter).
    Returning None falls back to get_credentials.
    """

    async def get_alternate_credentials(self, web_context: Any) -> Optional[Any]:
        ...


class Clients:
    """
    Registry of identity clients.

    Args:
        clients: Identity clients; names must be unique
        callback_url: Callback URL shared by all clients
        client_name_parameter: Request parameter naming the client on callback
    """

    def __init__(
        self,
        clients: Iterable[IdentityClient],
        callback_url: str = "/auth/callback",
        client_name_parameter: str = "client_name",
    ):
        self._clients: Dict[str, IdentityClient] = {}
        for client in clients:
            if client.name in self._clients:
                raise ValueError(f"Duplicate client name: {client.name}")
            self._clients[client.name] = client

        self.callback_url = callback_url
        self.client_name_parameter = client_name_parameter

    @classmethod
    def from_settings(cls, settings: Settings, clients: Iterable[IdentityClient]) -> "Clients":
        return cls(
            clients,
            callback_url=settings.CALLBACK_URL,
            client_name_parameter=settings.CLIENT_NAME_PARAMETER,
        )

    @property
    def names(self) -> List[str]:
        return list(self._clients)

    def find_client(self, target: Union[str, Any]) -> IdentityClient:
        """
        Find a client by name, or by the client name parameter of a web context.

        Args:
            target: Client name, or a web context exposing get_request_parameter()

        Returns:
            The matching identity client

        Raises:
            ClientNotFoundError: If no client matches
        """
        if isinstance(target, str):
            client_name = target
        else:
            client_name = target.get_request_parameter(self.client_name_parameter)

        client = self._clients.get(client_name) if client_name else None
        if client is None:
            raise ClientNotFoundError(client_name)

        logger.debug(f"client : {client.name}")
        return client

    def callback_url_for(self, client_name: str) -> str:
        """Callback URL carrying the client name, for provider registration."""
        separator = "&" if "?" in self.callback_url else "?"
        query = urlencode({self.client_name_parameter: client_name})
        return f"{self.callback_url}{separator}{query}"

    def __len__(self) -> int:
        return len(self._clients)


__all__ = [
    "AlternateCredentialsExtractor",
    "Clients",
    "IdentityClient",
    "RedirectAction",
    "RedirectActionType",
    "RequiresHttpAction",
]
