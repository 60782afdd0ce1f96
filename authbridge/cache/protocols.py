"""Keyed cache capability consumed by the profile and session stores."""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyedCache(Protocol):
    """
    Shared key/value cache with per-entry expiry.

    Implementations must make set/get/remove atomic per key. Every store
    operation touches exactly one key, so no multi-key transaction is needed.
    """

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def remove(self, key: str) -> None:
        ...
