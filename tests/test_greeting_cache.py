from __future__ import annotations

import asyncio

from agents.errors import ConfigurationError, SynthesisError
from agents.greeting import GreetingCache
from fakes import FakeRenderer


def test_concurrent_first_use_coalesces_into_one_render():
    async def scenario():
        renderer = FakeRenderer(b"G" * 10)
        renderer.gate = asyncio.Event()
        cache = GreetingCache("Hi", renderer)

        waiters = [asyncio.create_task(cache.ensure_ready()) for _ in range(5)]
        await asyncio.sleep(0)
        renderer.gate.set()
        results = await asyncio.gather(*waiters)

        assert results == [b"G" * 10] * 5
        assert renderer.calls == 1
        assert cache.ready is True

    asyncio.run(scenario())


def test_ready_cache_does_not_render_again():
    async def scenario():
        renderer = FakeRenderer(b"G")
        cache = GreetingCache("Hi", renderer)
        await cache.ensure_ready()
        await cache.ensure_ready()

        assert renderer.calls == 1
        assert cache.audio == b"G"

    asyncio.run(scenario())


def test_failed_warm_is_retried_on_next_use():
    async def scenario():
        renderer = FakeRenderer(b"G", error=SynthesisError("down"))
        cache = GreetingCache("Hi", renderer)

        assert await cache.ensure_ready() is None
        assert cache.ready is False

        renderer.error = None
        assert await cache.ensure_ready() == b"G"
        assert renderer.calls == 2

    asyncio.run(scenario())


def test_missing_credentials_and_empty_audio_leave_cache_cold():
    async def scenario():
        cache = GreetingCache("Hi", FakeRenderer(error=ConfigurationError("no key")))
        assert await cache.ensure_ready() is None

        empty = GreetingCache("Hi", FakeRenderer(b""))
        assert await empty.ensure_ready() is None
        assert empty.ready is False

    asyncio.run(scenario())


def test_cancelled_waiter_does_not_cancel_shared_warm():
    async def scenario():
        renderer = FakeRenderer(b"G")
        renderer.gate = asyncio.Event()
        cache = GreetingCache("Hi", renderer)

        impatient = asyncio.create_task(cache.ensure_ready())
        await asyncio.sleep(0)
        impatient.cancel()
        await asyncio.sleep(0)

        renderer.gate.set()
        assert await cache.ensure_ready() == b"G"
        assert renderer.calls == 1

    asyncio.run(scenario())


def test_close_cancels_inflight_warm():
    async def scenario():
        renderer = FakeRenderer(b"G")
        renderer.gate = asyncio.Event()
        cache = GreetingCache("Hi", renderer)

        waiter = asyncio.create_task(cache.ensure_ready())
        await asyncio.sleep(0)
        await cache.close()

        assert cache.ready is False
        waiter.cancel()

    asyncio.run(scenario())
