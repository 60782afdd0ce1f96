"""
Data Models Module

This module defines Pydantic models for request/response validation
and data serialization throughout the authentication bridge.

Models are organized by functional area:
- Profile models (the profile shape identity clients may return)
- Authentication responses (profile, logout)
- Health and error responses
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Profile Models
# ============================================================================

class UserProfile(BaseModel):
    """
    Authenticated user identity as produced by an identity client.

    The bridge treats profiles as opaque; this model is a convenient shape for
    clients that have no richer type of their own.
    """
    id: str = Field(..., description="User identifier at the identity provider")
    client_name: str = Field(..., description="Name of the identity client that produced the profile")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Provider-specific attributes")

    @property
    def typed_id(self) -> str:
        """Identifier unique across clients."""
        return f"{self.client_name}#{self.id}"


# ============================================================================
# Authentication Responses
# ============================================================================

class ProfileResponse(BaseModel):
    """Current user profile."""
    authenticated: bool = Field(..., description="Whether a profile is stored for the session")
    profile: Optional[Any] = Field(None, description="User profile")


class LogoutResponse(BaseModel):
    """Response of the logout-and-ok endpoint."""
    status: str = Field(default="logged_out", description="Logout status")


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
