"""
Callback outcomes.

The coordinator returns one of these instead of raising, so the HTTP layer
dispatches on the outcome type:

    ProfileResolved(profile, redirect_url)
    ActionRequired(code, body, headers)
    Failure(kind, message)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from fastapi import status

# HTTP responses an identity client may ask the caller to emit
ALLOWED_ACTION_CODES = frozenset({
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_307_TEMPORARY_REDIRECT,
    status.HTTP_200_OK,
})


@dataclass(frozen=True)
class ProfileResolved:
    """Credentials were turned into a profile (possibly None) and stored."""
    profile: Optional[Any]
    redirect_url: str


@dataclass(frozen=True)
class ActionRequired:
    """The caller must render this HTTP response verbatim."""
    code: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Failure:
    """Fatal, non-retryable integration or configuration fault."""
    kind: str
    message: str


Outcome = Union[ProfileResolved, ActionRequired, Failure]
