"""
Unit Tests for Per-Request Memoization
======================================

Tests for authbridge/auth/context.py
"""

import pytest

from authbridge.auth.context import CallbackState, MemoSlot, RequestContext, get_request_context

from fakes import make_request


# ============================================================================
# Memoization
# ============================================================================

@pytest.mark.asyncio
async def test_sync_factory_runs_once():
    ctx = RequestContext()
    calls = []

    def factory():
        calls.append(1)
        return f"value-{len(calls)}"

    assert await ctx.memoize(MemoSlot.CLIENT, factory) == "value-1"
    assert await ctx.memoize(MemoSlot.CLIENT, factory) == "value-1"
    assert len(calls) == 1
    assert ctx.client == "value-1"


@pytest.mark.asyncio
async def test_async_factory_is_awaited():
    ctx = RequestContext()

    async def factory():
        return "creds"

    assert await ctx.memoize(MemoSlot.CREDENTIALS, factory) == "creds"
    assert ctx.credentials == "creds"


@pytest.mark.asyncio
async def test_none_is_memoized():
    """A None profile is remembered; the second factory never runs"""
    ctx = RequestContext()

    assert await ctx.memoize(MemoSlot.PROFILE, lambda: None) is None
    assert ctx.is_set(MemoSlot.PROFILE)

    def second_factory():
        raise AssertionError("slot already computed")

    assert await ctx.memoize(MemoSlot.PROFILE, second_factory) is None


@pytest.mark.asyncio
async def test_failed_factory_leaves_slot_empty():
    ctx = RequestContext()

    def failing():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await ctx.memoize(MemoSlot.CLIENT, failing)

    assert not ctx.is_set(MemoSlot.CLIENT)
    assert await ctx.memoize(MemoSlot.CLIENT, lambda: "client") == "client"


@pytest.mark.asyncio
async def test_slots_are_independent():
    ctx = RequestContext()

    await ctx.memoize(MemoSlot.SESSION_ID, lambda: "S1")

    assert ctx.session_id == "S1"
    assert ctx.profile is None
    assert ctx.get(MemoSlot.WEB_CONTEXT, "missing") == "missing"


# ============================================================================
# Request Scope / State
# ============================================================================

def test_one_context_per_request():
    request = make_request()
    other = make_request()

    assert get_request_context(request) is get_request_context(request)
    assert get_request_context(request) is not get_request_context(other)


def test_transition_records_history():
    ctx = RequestContext()

    ctx.transition(CallbackState.CREDENTIALS_PENDING)
    ctx.transition(CallbackState.DONE)

    assert ctx.state == CallbackState.DONE
    assert ctx.history == [
        CallbackState.NEW,
        CallbackState.CREDENTIALS_PENDING,
        CallbackState.DONE,
    ]
