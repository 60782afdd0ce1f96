"""
FastAPI dependencies for authentication.

Usage in routes:
    @app.get("/protected")
    async def protected_route(profile = Depends(require_profile)):
        return {"user": profile.id}
"""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status

from .bridge import AuthBridge
from .context import RequestContext, get_request_context

logger = logging.getLogger(__name__)


def get_bridge(request: Request) -> AuthBridge:
    """
    Dependency returning the AuthBridge stored on app.state.

    Raises:
        HTTPException: 503 if the application was not built by create_app()
    """
    bridge = getattr(request.app.state, "auth_bridge", None)
    if bridge is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication bridge not initialized",
        )
    return bridge


async def get_optional_profile(
    request: Request,
    bridge: AuthBridge = Depends(get_bridge),
    ctx: RequestContext = Depends(get_request_context),
) -> Optional[Any]:
    """
    Dependency for optional authentication.

    Returns the user profile if the session has one, None otherwise.
    """
    return await bridge.helper.get_user_profile(request, ctx)


async def require_profile(
    profile: Optional[Any] = Depends(get_optional_profile),
) -> Any:
    """
    Dependency enforcing authentication.

    Raises:
        HTTPException: 401 if no profile is stored for the session
    """
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Session"},
        )
    return profile


__all__ = [
    "get_bridge",
    "get_optional_profile",
    "get_request_context",
    "require_profile",
]
