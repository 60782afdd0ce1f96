"""
Authentication Package

This package binds external identity clients (OAuth, CAS, SAML, ...) to the
FastAPI request lifecycle.

Key responsibilities:
- Session identifier resolution (trusted header first, then cookie session)
- Profile and requested-URL storage in the shared keyed cache
- Per-request memoization of web context, client, credentials and profile
- Callback handling and mapping of "requires HTTP action" signals
- Logout with allow-listed redirection

Modules:
- routes: Public endpoints (/auth/login/{client}, /auth/callback, /auth/logout, ...)
- handlers: Callback coordination, logout and redirect initiation
- session: Session identifier resolver
- storage: Profile, requested URL and session attribute stores
- context: Per-request memoization
- web_context: Request/response view handed to identity clients
- clients: Identity client contract and registry
- outcome: Callback outcomes
- bridge: Component container stored on app.state

The authentication flow:
1. Route calls /auth/login/{client}; the requested URL is saved for the session
2. User authenticates with the identity provider
3. Provider returns to /auth/callback?client_name=...
4. Client extracts credentials and the profile, which is saved under the session id
5. User is redirected to the URL saved in step 1
"""

from .bridge import AuthBridge
from .clients import (
    AlternateCredentialsExtractor,
    Clients,
    IdentityClient,
    RedirectAction,
    RequiresHttpAction,
)
from .routes import auth_router

__all__ = [
    "AlternateCredentialsExtractor",
    "AuthBridge",
    "Clients",
    "IdentityClient",
    "RedirectAction",
    "RequiresHttpAction",
    "auth_router",
]
