"""
Cache Package

Keyed cache capability used to persist profiles, requested URLs and session
attributes across requests.

Modules:
- protocols: KeyedCache interface (set/get/remove with per-entry TTL)
- memory: In-memory TTL implementation used by default and in tests
"""

from .memory import MemoryCache
from .protocols import KeyedCache

__all__ = [
    "KeyedCache",
    "MemoryCache",
]
