"""Shared fixtures for the authbridge tests."""

import pytest

from authbridge.cache import MemoryCache
from authbridge.config import Settings

from fakes import FakeClock, FakeIdentityClient, make_settings


@pytest.fixture
def mock_settings() -> Settings:
    """Settings with test defaults"""
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> MemoryCache:
    """In-memory cache driven by the fake clock"""
    return MemoryCache(clock=clock)


@pytest.fixture
def identity_client() -> FakeIdentityClient:
    return FakeIdentityClient(name="clientX")
