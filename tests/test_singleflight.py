"""
Single-flight tests.
"""

import asyncio

import pytest

from switchyard.singleflight import SingleFlight


class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_execution(self):
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def work():
            nonlocal calls
            calls += 1
            await release.wait()
            return "result"

        tasks = [asyncio.create_task(flight.do("key", work)) for _ in range(10)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert results == ["result"] * 10

    @pytest.mark.asyncio
    async def test_settled_key_starts_fresh(self):
        flight = SingleFlight()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return calls

        assert await flight.do("key", work) == 1
        assert await flight.do("key", work) == 2
        assert flight.pending("key") is None

    @pytest.mark.asyncio
    async def test_failure_reaches_every_caller(self):
        flight = SingleFlight()
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            raise ValueError("nope")

        results = await asyncio.gather(
            *(flight.do("key", work) for _ in range(5)),
            return_exceptions=True,
        )
        assert calls == 1
        assert all(isinstance(r, ValueError) for r in results)

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        flight = SingleFlight()

        async def work(value):
            await asyncio.sleep(0.01)
            return value

        a, b = await asyncio.gather(
            flight.do("a", lambda: work("A")),
            flight.do("b", lambda: work("B")),
        )
        assert (a, b) == ("A", "B")

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_work(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "done"

        first = asyncio.create_task(flight.do("key", work))
        second = asyncio.create_task(flight.do("key", work))
        await asyncio.sleep(0)
        first.cancel()
        release.set()

        assert await second == "done"
        with pytest.raises(asyncio.CancelledError):
            await first

    @pytest.mark.asyncio
    async def test_forget(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "x"

        future = flight.start("key", work)
        assert flight.pending("key") is future
        flight.forget("key")
        assert flight.pending("key") is None
        release.set()
        assert await future == "x"
