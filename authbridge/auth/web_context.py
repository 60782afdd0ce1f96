"""
Web context for identity clients.

Adapts a Starlette/FastAPI Request to the generic web context that identity
clients consume. "Session attributes" are kept in the shared cache under the
session identifier, not in the cookie.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status

from .session import SessionIdResolver
from .storage import SessionStorage

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class WebContext:
    """
    Request/response view handed to identity clients.

    Build with ``await WebContext.from_request(...)`` so that form parameters
    are available synchronously.
    """

    def __init__(
        self,
        request: Request,
        resolver: SessionIdResolver,
        storage: SessionStorage,
        form_parameters: Optional[Dict[str, List[str]]] = None,
    ):
        self._request = request
        self._resolver = resolver
        self._storage = storage
        self._form_parameters = form_parameters or {}

        self.response_status: int = status.HTTP_200_OK
        self.response_content: str = ""
        self.response_headers: Dict[str, str] = {}

    @classmethod
    async def from_request(
        cls,
        request: Request,
        resolver: SessionIdResolver,
        storage: SessionStorage,
    ) -> "WebContext":
        form_parameters: Dict[str, List[str]] = {}

        content_type = request.headers.get("content-type", "")
        if request.method == "POST" and content_type.startswith(_FORM_CONTENT_TYPES):
            form = await request.form()
            for key in form.keys():
                form_parameters[key] = [str(v) for v in form.getlist(key)]

        return cls(request, resolver, storage, form_parameters)

    @property
    def request(self) -> Request:
        return self._request

    # =========================================================================
    # Request
    # =========================================================================

    def get_request_header(self, name: str) -> Optional[str]:
        return self._request.headers.get(name)

    def get_request_method(self) -> str:
        return self._request.method

    def get_request_parameters(self) -> Dict[str, List[str]]:
        """Form and query parameters merged; query parameters win."""
        parameters: Dict[str, List[str]] = dict(self._form_parameters)
        query_params = self._request.query_params
        for key in query_params.keys():
            parameters[key] = query_params.getlist(key)
        return parameters

    def get_request_parameter(self, name: str) -> Optional[str]:
        values = self.get_request_parameters().get(name)
        if values:
            return values[0]
        return None

    # =========================================================================
    # Session attributes
    # =========================================================================

    def _session_id(self) -> Optional[str]:
        return self._resolver.resolve_existing(self._request.headers, self._request.session)

    async def get_session_attribute(self, key: str) -> Optional[Any]:
        return await self._storage.get(self._session_id(), key)

    async def set_session_attribute(self, key: str, value: Any) -> None:
        """Store (or with None, remove) an attribute for the current session."""
        await self._storage.save(self._session_id(), key, value)

    # =========================================================================
    # Response
    # =========================================================================

    def set_response_status(self, code: int) -> None:
        self.response_status = code

    def set_response_header(self, name: str, value: str) -> None:
        self.response_headers[name] = value

    def write_response_content(self, content: str) -> None:
        self.response_content += content

    # =========================================================================
    # Server
    # =========================================================================

    def get_scheme(self) -> str:
        return self._request.url.scheme

    def get_server_name(self) -> str:
        return self._request.url.hostname or ""

    def get_server_port(self) -> int:
        port = self._request.url.port
        if port is not None:
            return port
        return 443 if self.get_scheme() == "https" else 80

    def get_full_request_url(self) -> str:
        return str(self._request.url)

    def __repr__(self) -> str:
        return f"WebContext({self._request.method} {self._request.url.path})"
