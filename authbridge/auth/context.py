"""
Per-request memoization.

A RequestContext lives for exactly one request. Each slot is computed at most
once; later reads return the first value even if recomputing would differ.
"""

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Union

from fastapi import Request

logger = logging.getLogger(__name__)

_REQUEST_STATE_ATTR = "auth_context"


class CallbackState(str, Enum):
    """Progress of the callback handshake for one request."""
    NEW = "new"
    CREDENTIALS_PENDING = "credentials_pending"
    PROFILE_RESOLVED = "profile_resolved"
    ACTION_REQUIRED = "action_required"
    FAILED = "failed"
    DONE = "done"


class MemoSlot(str, Enum):
    WEB_CONTEXT = "web_context"
    CLIENT = "client"
    CREDENTIALS = "credentials"
    PROFILE = "profile"
    SESSION_ID = "session_id"


class RequestContext:
    """
    Request-scoped memo slots, passed explicitly through the call chain.

    Attributes:
        state: Callback handshake state for this request
        history: Every state entered, in order
    """

    def __init__(self) -> None:
        self._values: Dict[MemoSlot, Any] = {}
        self.state = CallbackState.NEW
        self.history: List[CallbackState] = [CallbackState.NEW]

    def transition(self, state: CallbackState) -> None:
        logger.debug(f"callback state : {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def is_set(self, slot: MemoSlot) -> bool:
        return slot in self._values

    def get(self, slot: MemoSlot, default: Any = None) -> Any:
        return self._values.get(slot, default)

    @property
    def web_context(self) -> Any:
        return self._values.get(MemoSlot.WEB_CONTEXT)

    @property
    def client(self) -> Any:
        return self._values.get(MemoSlot.CLIENT)

    @property
    def credentials(self) -> Any:
        return self._values.get(MemoSlot.CREDENTIALS)

    @property
    def profile(self) -> Any:
        return self._values.get(MemoSlot.PROFILE)

    @property
    def session_id(self) -> Any:
        return self._values.get(MemoSlot.SESSION_ID)

    async def memoize(
        self,
        slot: MemoSlot,
        factory: Callable[[], Union[Any, Awaitable[Any]]],
    ) -> Any:
        """
        Return the slot value, computing it with factory on first use.

        Args:
            slot: Slot to read or fill
            factory: Zero-argument callable, sync or async

        Returns:
            The first value computed for this slot (None included)
        """
        if slot in self._values:
            return self._values[slot]

        value = factory()
        if inspect.isawaitable(value):
            value = await value

        # A nested factory may already have filled the slot; first write wins
        if slot not in self._values:
            self._values[slot] = value
        return self._values[slot]


def get_request_context(request: Request) -> RequestContext:
    """
    FastAPI dependency returning the single RequestContext of a request.

    Usage in routes:
        @app.get("/me")
        async def me(ctx: RequestContext = Depends(get_request_context)):
            ...
    """
    ctx = getattr(request.state, _REQUEST_STATE_ATTR, None)
    if ctx is None:
        ctx = RequestContext()
        setattr(request.state, _REQUEST_STATE_ATTR, ctx)
    return ctx


__all__ = [
    "CallbackState",
    "MemoSlot",
    "RequestContext",
    "get_request_context",
]
