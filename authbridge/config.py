"""
Configuration module for the authentication bridge.

This module uses Pydantic Settings to load and validate environment variables
for session identifier handling, profile storage, the cookie-backed session,
the callback flow and logout redirection.

Environment variables are loaded from .env file or system environment.
The resulting Settings instance is built once at startup and handed to every
component constructor; components never read settings on their own.
"""

import re
from functools import lru_cache
from typing import List, Optional, Pattern

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # =========================================================================
    # Cookie-backed Session
    # =========================================================================

    SESSION_SECRET_KEY: str = Field(
        ...,
        description="Secret key used to sign the session cookie (must be cryptographically secure)",
        min_length=32,
    )

    SESSION_COOKIE_NAME: str = Field(
        default="authbridge_session",
        description="Name of the framework session cookie",
        min_length=1,
    )

    SESSION_COOKIE_HTTPS_ONLY: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS",
    )

    # =========================================================================
    # Session Identifier
    # =========================================================================

    SESSION_ID_HEADER: str = Field(
        default="X-Session-Id",
        description="Trusted header carrying the session identifier for stateless callers",
        min_length=1,
    )

    SESSION_ID_KEY: str = Field(
        default="authbridge_session_id",
        description="Key holding the session identifier inside the cookie-backed session",
        min_length=1,
    )

    # =========================================================================
    # Storage
    # =========================================================================

    CACHE_KEY_PREFIX: str = Field(
        default="",
        description="Optional prefix so several deployments can share one cache",
    )

    PROFILE_TIMEOUT_SECONDS: int = Field(
        default=3600,
        description="Time-to-live of stored user profiles in seconds",
        ge=0,
    )

    SESSION_TIMEOUT_SECONDS: int = Field(
        default=3600,
        description="Time-to-live of session attributes and requested URLs in seconds",
        ge=0,
    )

    CLEAR_REQUESTED_URL_ON_READ: bool = Field(
        default=False,
        description="Delete the requested URL entry once the callback has read it",
    )

    # =========================================================================
    # Callback / Redirection
    # =========================================================================

    CALLBACK_URL: str = Field(
        default="/auth/callback",
        description="Callback URL registered with the identity clients",
        min_length=1,
    )

    CLIENT_NAME_PARAMETER: str = Field(
        default="client_name",
        description="Request parameter naming the client on callback",
        min_length=1,
    )

    DEFAULT_SUCCESS_URL: str = Field(
        default="/",
        description="Redirect target after login when no requested URL was stored",
    )

    LOGIN_TARGET_PATTERN: str = Field(
        default=r"^/(?![/\\]).*$",
        description="Regular expression a caller-supplied post-login target must fully match (default: same-site paths only)",
    )

    # =========================================================================
    # Logout
    # =========================================================================

    LOGOUT_REDIRECT_PARAMETER: str = Field(
        default="url",
        description="Query parameter carrying the post-logout redirect target",
        min_length=1,
    )

    LOGOUT_URL_PATTERN: str = Field(
        default=r"^/.*$",
        description="Regular expression a post-logout redirect target must fully match",
    )

    DEFAULT_LOGOUT_URL: str = Field(
        default="/",
        description="Post-logout redirect target when none (or a rejected one) is given",
    )

    # =========================================================================
    # Server
    # =========================================================================

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def logout_url_regex(self) -> Pattern[str]:
        """Compiled LOGOUT_URL_PATTERN."""
        return re.compile(self.LOGOUT_URL_PATTERN)

    @property
    def login_target_regex(self) -> Pattern[str]:
        """Compiled LOGIN_TARGET_PATTERN."""
        return re.compile(self.LOGIN_TARGET_PATTERN)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOGOUT_URL_PATTERN", "LOGIN_TARGET_PATTERN")
    @classmethod
    def validate_url_pattern(cls, v: str, info: ValidationInfo) -> str:
        """
        Validate that a redirect allow-list is a usable regular expression.

        Raises:
            ValueError: If the pattern does not compile
        """
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid {info.field_name} '{v}': {e}")

        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        if v.upper() not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return v.upper()

    @field_validator("CACHE_KEY_PREFIX")
    @classmethod
    def strip_cache_key_prefix(cls, v: str) -> str:
        return v.strip()


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Called once by the application factory; the instance is then passed
    explicitly to the components that need it.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate critical configuration settings and return a status report.

    This can be called during application startup to ensure the configuration
    is coherent.

    Returns:
        Dictionary with validation status and any warnings.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    if settings.SESSION_ID_KEY == settings.SESSION_COOKIE_NAME:
        errors.append("SESSION_ID_KEY must differ from SESSION_COOKIE_NAME")

    if not settings.logout_url_regex.fullmatch(settings.DEFAULT_LOGOUT_URL):
        warnings.append("DEFAULT_LOGOUT_URL does not match LOGOUT_URL_PATTERN")

    if settings.LOGOUT_URL_PATTERN in (".*", "^.*$"):
        warnings.append("LOGOUT_URL_PATTERN accepts any URL (open redirect)")

    if settings.LOGIN_TARGET_PATTERN in (".*", "^.*$"):
        warnings.append("LOGIN_TARGET_PATTERN accepts any URL (open redirect)")

    if not settings.SESSION_COOKIE_HTTPS_ONLY:
        warnings.append("SESSION_COOKIE_HTTPS_ONLY is disabled")

    if not settings.CACHE_KEY_PREFIX:
        warnings.append("CACHE_KEY_PREFIX is empty (cache must not be shared between deployments)")

    if settings.PROFILE_TIMEOUT_SECONDS == 0:
        warnings.append("PROFILE_TIMEOUT_SECONDS is 0, profiles never expire")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "profile_timeout_seconds": settings.PROFILE_TIMEOUT_SECONDS,
        "session_timeout_seconds": settings.SESSION_TIMEOUT_SECONDS,
    }


if __name__ == "__main__":
    """
    Validate your .env configuration:
        python -m authbridge.config
    """
    config = get_settings()
    status = validate_configuration(config)

    print("Session identifier:")
    print(f"  Header:         {config.SESSION_ID_HEADER}")
    print(f"  Session key:    {config.SESSION_ID_KEY}")
    print(f"  Cache prefix:   {config.CACHE_KEY_PREFIX or '(none)'}")
    print(f"  Profile TTL:    {config.PROFILE_TIMEOUT_SECONDS} seconds")
    print(f"  Session TTL:    {config.SESSION_TIMEOUT_SECONDS} seconds")

    for error in status["errors"]:
        print(f"  ERROR   {error}")
    for warning in status["warnings"]:
        print(f"  WARNING {warning}")
