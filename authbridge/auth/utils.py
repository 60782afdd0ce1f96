"""
Authentication utilities.

This module handles:
- Blank-string checks and value fallbacks used throughout the bridge
- Cache key derivation
- Login and logout redirect allow-list validation
"""

from typing import Optional, Pattern, Sequence

KEY_SEPARATOR = ":"


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not value.strip()


def is_not_blank(value: Optional[str]) -> bool:
    return not is_blank(value)


def get_or_else(value: Optional[str], default_value: str) -> str:
    """
    Return value, or default_value if value is blank.

    Args:
        value: Preferred value
        default_value: Fallback

    Returns:
        value or default_value
    """
    if is_not_blank(value):
        return value
    return default_value


def cache_key(key: str, prefix: Optional[str] = None) -> str:
    """
    Build the physical cache key.

    Layout: [<prefix> ":"] <key>. A blank prefix means no prefix, which lets
    several deployments share one cache only when each sets its own prefix.

    Example:
        >>> cache_key("abc", "app1")
        'app1:abc'
        >>> cache_key("abc")
        'abc'
    """
    if is_not_blank(prefix):
        return f"{prefix}{KEY_SEPARATOR}{key}"
    return key


def join_key(*parts: str) -> str:
    """Join logical key parts with the ':' separator."""
    return KEY_SEPARATOR.join(parts)


def is_allowed_url(value: Optional[str], pattern: Pattern[str]) -> bool:
    """True if value is non-blank and fully matches the allow-list pattern."""
    return is_not_blank(value) and pattern.fullmatch(value) is not None


def validate_logout_url(values: Optional[Sequence[str]], pattern: Pattern[str]) -> Optional[str]:
    """
    Pick the post-logout redirect target from query parameter values.

    Exactly one value must be supplied and it must fully match pattern.

    Args:
        values: All values of the logout redirect query parameter
        pattern: Compiled allow-list pattern

    Returns:
        The accepted URL verbatim, or None if rejected
    """
    if not values or len(values) != 1:
        return None

    value = values[0]
    if is_allowed_url(value, pattern):
        return value
    return None
