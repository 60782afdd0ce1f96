"""
Authentication handlers.

CallbackHandler finishes the authentication process and logs users out.
ControllerHelper adds what application routes need: the redirection that
starts authentication and the current user profile.

Every public method takes the FastAPI Request and the RequestContext of the
call, so that lookups (web context, client, credentials, profile, session id)
happen once per request.
"""

import logging
from typing import Any, Optional, Sequence, Union

from fastapi import Request

from ..config import Settings
from .clients import (
    AlternateCredentialsExtractor,
    Clients,
    IdentityClient,
    RedirectAction,
    RequiresHttpAction,
)
from .context import CallbackState, MemoSlot, RequestContext
from .exceptions import ClientNotFoundError, MissingClientConfiguration, UnsupportedActionError
from .outcome import ALLOWED_ACTION_CODES, ActionRequired, Failure, Outcome, ProfileResolved
from .session import SessionIdResolver
from .storage import ProfileStore, RequestedUrlStore, SessionStorage
from .utils import get_or_else, is_allowed_url, is_not_blank, validate_logout_url
from .web_context import WebContext

logger = logging.getLogger(__name__)


class CallbackHandler:
    """
    Finishes the authentication process and logs the user out.

    Args:
        settings: Application settings
        clients: Identity client registry (None if not configured)
        resolver: Session identifier resolver
        storage: Session attribute storage
        profiles: Profile store
        requested_urls: Requested URL store
    """

    def __init__(
        self,
        settings: Settings,
        clients: Optional[Clients],
        resolver: SessionIdResolver,
        storage: SessionStorage,
        profiles: ProfileStore,
        requested_urls: RequestedUrlStore,
    ):
        self._settings = settings
        self._clients = clients
        self._resolver = resolver
        self._storage = storage
        self._profiles = profiles
        self._requested_urls = requested_urls

    # =========================================================================
    # Memoized lookups
    # =========================================================================

    def _require_clients(self) -> Clients:
        if self._clients is None:
            raise MissingClientConfiguration()
        return self._clients

    async def web_context(self, request: Request, ctx: RequestContext) -> WebContext:
        return await ctx.memoize(
            MemoSlot.WEB_CONTEXT,
            lambda: WebContext.from_request(request, self._resolver, self._storage),
        )

    async def session_id(self, request: Request, ctx: RequestContext) -> str:
        """Get (or create) the session identifier of this request."""
        return await ctx.memoize(
            MemoSlot.SESSION_ID,
            lambda: self._resolver.resolve_or_create(request.headers, request.session),
        )

    def existing_session_id(self, request: Request, ctx: RequestContext) -> Optional[str]:
        """Get the session identifier of this request without creating one."""
        if ctx.is_set(MemoSlot.SESSION_ID):
            return ctx.session_id
        return self._resolver.resolve_existing(request.headers, request.session)

    # =========================================================================
    # Callback
    # =========================================================================

    @staticmethod
    def _action_outcome(web_context: WebContext) -> Union[ActionRequired, Failure]:
        """Map the response an identity client asked for onto an outcome."""
        code = web_context.response_status
        logger.debug(f"requires HTTP action : {code}")

        if code in ALLOWED_ACTION_CODES:
            return ActionRequired(
                code=code,
                body=web_context.response_content,
                headers=dict(web_context.response_headers),
            )

        error = UnsupportedActionError(code)
        logger.error(str(error), extra={"code": code})
        return Failure(kind="unsupported_action", message=str(error))

    @staticmethod
    async def _extract_credentials(client: IdentityClient, web_context: WebContext) -> Optional[Any]:
        if isinstance(client, AlternateCredentialsExtractor):
            credentials = await client.get_alternate_credentials(web_context)
            if credentials is not None:
                logger.debug(f"alternate credentials used for client {client.name}")
                return credentials
        return await client.get_credentials(web_context)

    async def callback(self, request: Request, ctx: RequestContext) -> Outcome:
        """
        Finish the authentication process.

        Steps:
        1. Find the client named by the callback request
        2. Extract credentials (the client may require an HTTP action instead)
        3. Resolve the user profile and save it under the session identifier
        4. Look up the URL originally requested for this client

        Returns:
            ProfileResolved, ActionRequired or Failure
        """
        web_context = await self.web_context(request, ctx)

        try:
            client = await ctx.memoize(
                MemoSlot.CLIENT,
                lambda: self._require_clients().find_client(web_context),
            )
        except MissingClientConfiguration as e:
            logger.error(str(e))
            ctx.transition(CallbackState.FAILED)
            ctx.transition(CallbackState.DONE)
            return Failure(kind="missing_client_configuration", message=str(e))
        except ClientNotFoundError as e:
            logger.warning(str(e))
            ctx.transition(CallbackState.FAILED)
            ctx.transition(CallbackState.DONE)
            return Failure(kind="client_not_found", message=str(e))

        ctx.transition(CallbackState.CREDENTIALS_PENDING)
        try:
            credentials = await ctx.memoize(
                MemoSlot.CREDENTIALS,
                lambda: self._extract_credentials(client, web_context),
            )
        except RequiresHttpAction:
            outcome = self._action_outcome(web_context)
            if isinstance(outcome, ActionRequired):
                ctx.transition(CallbackState.ACTION_REQUIRED)
            else:
                ctx.transition(CallbackState.FAILED)
            ctx.transition(CallbackState.DONE)
            return outcome
        logger.debug(f"credentials : {credentials}")

        profile = await ctx.memoize(
            MemoSlot.PROFILE,
            lambda: client.get_user_profile(credentials, web_context),
        )
        logger.debug(f"profile : {profile}")

        session_id = await self.session_id(request, ctx)
        logger.debug(f"session : {session_id}")

        # None deletes any stale profile of this session
        await self._profiles.save_profile(session_id, profile)
        ctx.transition(CallbackState.PROFILE_RESOLVED)

        requested_url = await self._requested_urls.get_requested_url(session_id, client.name)
        redirect_url = get_or_else(requested_url, self._settings.DEFAULT_SUCCESS_URL)

        logger.info(
            "Authentication callback completed",
            extra={
                "client": client.name,
                "authenticated": profile is not None,
                "redirect_url": redirect_url,
            },
        )
        ctx.transition(CallbackState.DONE)
        return ProfileResolved(profile=profile, redirect_url=redirect_url)

    # =========================================================================
    # Logout
    # =========================================================================

    async def logout(self, request: Request, ctx: RequestContext) -> None:
        """Remove the user profile and forget the session identifier."""
        session_id = self.existing_session_id(request, ctx)
        logger.debug(f"sessionId for logout : {session_id}")

        if is_not_blank(session_id):
            await self._profiles.remove_profile(session_id)
            logger.info("Removed user profile", extra={"session_id": session_id})

        self._resolver.clear(request.session)

    def logout_redirect_target(self, values: Optional[Sequence[str]]) -> str:
        """
        Pick where to send the user after logout.

        Args:
            values: Values of the LOGOUT_REDIRECT_PARAMETER query parameter

        Returns:
            The single allow-listed value, or DEFAULT_LOGOUT_URL
        """
        accepted = validate_logout_url(values, self._settings.logout_url_regex)
        if accepted is None and values:
            logger.warning(
                "Rejected post-logout redirect target",
                extra={"values": list(values), "pattern": self._settings.LOGOUT_URL_PATTERN},
            )
        return get_or_else(accepted, self._settings.DEFAULT_LOGOUT_URL)


class ControllerHelper(CallbackHandler):
    """Starts authentication and exposes the current user profile to routes."""

    async def get_redirect_action(
        self,
        request: Request,
        ctx: RequestContext,
        client_name: str,
        target_url: Optional[str] = None,
    ) -> Union[RedirectAction, ActionRequired, Failure]:
        """
        Build the redirection to the identity provider of client_name.

        The target_url (or the current request URI) is saved so the callback
        can send the user back there. A target_url that does not match
        LOGIN_TARGET_PATTERN is dropped, along with any URL saved earlier for
        this client, so the callback falls back to DEFAULT_SUCCESS_URL.

        Raises:
            MissingClientConfiguration: If no client registry is configured
            ClientNotFoundError: If client_name is unknown
        """
        clients = self._require_clients()
        client = await ctx.memoize(MemoSlot.CLIENT, lambda: clients.find_client(client_name))

        session_id = await self.session_id(request, ctx)

        current_uri = request.url.path
        if request.url.query:
            current_uri = f"{current_uri}?{request.url.query}"

        requested_url: Optional[str] = get_or_else(target_url, current_uri)
        if is_not_blank(target_url) and not is_allowed_url(target_url, self._settings.login_target_regex):
            logger.warning(
                "Rejected post-login redirect target",
                extra={"target": target_url, "pattern": self._settings.LOGIN_TARGET_PATTERN},
            )
            requested_url = None
        logger.debug(f"requestedUrlToSave : {requested_url}")
        await self._requested_urls.save_requested_url(session_id, requested_url, client.name)

        web_context = await self.web_context(request, ctx)
        try:
            action = await client.get_redirect_action(web_context)
        except RequiresHttpAction:
            return self._action_outcome(web_context)

        logger.debug(f"redirectAction : {action}")
        return action

    async def get_user_profile(self, request: Request, ctx: RequestContext) -> Optional[Any]:
        """
        Get the user profile if the user is authenticated.

        Uses the existing session identifier only; reading a profile never
        creates a session.

        Returns:
            The user profile, or None
        """
        async def load() -> Optional[Any]:
            session_id = self.existing_session_id(request, ctx)
            logger.debug(f"sessionId for profile: {session_id}")
            return await self._profiles.get_profile(session_id)

        return await ctx.memoize(MemoSlot.PROFILE, load)


__all__ = [
    "CallbackHandler",
    "ControllerHelper",
]
