"""
Authentication routes for login, callback and logout.

This module exposes the callback handshake over HTTP and renders callback
outcomes: a redirect to the requested URL, the HTTP response an identity
client asked for, or an error page.
"""

import html
import logging
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, RedirectResponse

from ..models import LogoutResponse, ProfileResponse
from .bridge import AuthBridge
from .clients import RedirectAction, RedirectActionType
from .context import RequestContext, get_request_context
from .dependencies import get_bridge, require_profile
from .exceptions import ClientNotFoundError
from .outcome import ActionRequired, Failure, ProfileResolved

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)


# =============================================================================
# Login Endpoint
# =============================================================================

@auth_router.get("/login/{client_name}")
async def login(
    request: Request,
    client_name: str,
    target: Optional[str] = Query(None, description="URL to return to after authentication"),
    bridge: AuthBridge = Depends(get_bridge),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Start authentication with the identity client named client_name.

    The target URL (same-site paths by default, see LOGIN_TARGET_PATTERN),
    or this request's URI, is saved for the session and
    restored by the callback.

    Returns:
        302 to the identity provider, or the page the client asked to render
    """
    try:
        action = await bridge.helper.get_redirect_action(request, ctx, client_name, target)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if isinstance(action, RedirectAction):
        if action.type == RedirectActionType.REDIRECT:
            return RedirectResponse(url=action.location, status_code=status.HTTP_302_FOUND)
        return HTMLResponse(content=action.content or "", status_code=status.HTTP_200_OK)

    return _render_outcome(action)


# =============================================================================
# Callback Endpoint
# =============================================================================

@auth_router.api_route("/callback", methods=["GET", "POST"])
async def callback(
    request: Request,
    bridge: AuthBridge = Depends(get_bridge),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Finish authentication.

    Returns:
        302 to the requested URL, the response required by the identity
        client (401, 307 or 200), or an HTML error page
    """
    outcome = await bridge.helper.callback(request, ctx)
    return _render_outcome(outcome)


# =============================================================================
# Logout Endpoints
# =============================================================================

@auth_router.get("/logout", response_model=LogoutResponse)
async def logout_and_ok(
    request: Request,
    bridge: AuthBridge = Depends(get_bridge),
    ctx: RequestContext = Depends(get_request_context),
) -> LogoutResponse:
    """Log the user out and answer with a plain 200."""
    await bridge.helper.logout(request, ctx)
    return LogoutResponse()


@auth_router.get("/logout/redirect", response_class=RedirectResponse)
async def logout_and_redirect(
    request: Request,
    bridge: AuthBridge = Depends(get_bridge),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Log the user out and redirect.

    The target comes from the LOGOUT_REDIRECT_PARAMETER query parameter when
    it matches LOGOUT_URL_PATTERN, otherwise DEFAULT_LOGOUT_URL is used.
    """
    await bridge.helper.logout(request, ctx)

    values = request.query_params.getlist(bridge.settings.LOGOUT_REDIRECT_PARAMETER)
    target = bridge.helper.logout_redirect_target(values)
    return RedirectResponse(url=target, status_code=status.HTTP_302_FOUND)


# =============================================================================
# Profile Endpoint
# =============================================================================

@auth_router.get("/profile", response_model=ProfileResponse)
async def current_profile(profile: Any = Depends(require_profile)) -> ProfileResponse:
    """Current user profile; 401 if the session is not authenticated."""
    return ProfileResponse(authenticated=True, profile=jsonable_encoder(profile))


# =============================================================================
# Outcome Rendering
# =============================================================================

def _render_outcome(outcome: Union[ProfileResolved, ActionRequired, Failure]) -> Response:
    if isinstance(outcome, ProfileResolved):
        return RedirectResponse(url=outcome.redirect_url, status_code=status.HTTP_302_FOUND)

    if isinstance(outcome, ActionRequired):
        return _render_action(outcome)

    logger.error(
        "Authentication failed",
        extra={"kind": outcome.kind, "detail": outcome.message},
    )
    return _render_error_page(
        title="Authentication Error",
        message="Authentication could not be completed. Please contact your system administrator.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _render_action(action: ActionRequired) -> Response:
    """
    Render the response an identity client asked for, verbatim.

    200 bodies are HTML (e.g. an auto-submitting POST form); 307 carries the
    Location header set by the client.
    """
    if action.code == status.HTTP_200_OK:
        return HTMLResponse(content=action.body, status_code=action.code, headers=action.headers)

    return Response(content=action.body, status_code=action.code, headers=action.headers)


def _render_error_page(
    title: str,
    message: str,
    status_code: int = 400,
) -> HTMLResponse:
    """
    Render error page for authentication failures.

    Args:
        title: Error title
        message: Error message (no internal details)
        status_code: HTTP status code

    Returns:
        HTMLResponse with error information
    """
    html_content = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{html.escape(title)}</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
                display: flex;
                align-items: center;
                justify-content: center;
                min-height: 100vh;
                margin: 0;
                background: #f3f4f6;
            }}
            .container {{
                background: white;
                border-radius: 12px;
                padding: 40px;
                max-width: 500px;
                text-align: center;
                box-shadow: 0 10px 40px rgba(0,0,0,0.1);
            }}
            h1 {{ color: #1f2937; font-size: 24px; }}
            .message {{ color: #6b7280; line-height: 1.6; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>{html.escape(title)}</h1>
            <p class="message">{html.escape(message)}</p>
        </div>
    </body>
    </html>
    """

    return HTMLResponse(content=html_content, status_code=status_code)
