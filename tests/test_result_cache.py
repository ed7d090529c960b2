# MIT License
#
# Copyright (c) 2024 Review Aggregator Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Tests for the singleflight result cache.
"""

from __future__ import annotations

import asyncio

import pytest

from review_aggregator.analyzers.base_analyzer import (
    Issue,
    IssueSource,
    ReviewResult,
    Severity,
)
from review_aggregator.result_cache import CacheKey, ResultCache, content_hash


class CountingCompute:
    """Compute factory that records calls and can be held open."""

    def __init__(self, score: float = 7.0, error: Exception | None = None):
        self.score = score
        self.error = error
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> ReviewResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return ReviewResult(
            file="src/app.ts",
            issues=[
                Issue(
                    severity=Severity.WARNING,
                    line=1,
                    message="cached issue",
                    source=IssueSource.SEMANTIC,
                )
            ],
            score=self.score,
            summary="cached",
        )


class TestKeys:
    """Tests for cache keys."""

    def test_content_hash(self) -> None:
        assert content_hash("") == "d41d8cd98f00b204e9800998ecf8427e"
        assert len(content_hash("const a = 1;")) == 32

    def test_make_key(self) -> None:
        key = ResultCache().make_key("a.ts", "x")
        assert key == CacheKey("a.ts", content_hash("x"))


class TestGetOrCompute:
    """Tests for ResultCache.get_or_compute."""

    def test_computes_once(self) -> None:
        """A second request for the same key is a hit."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            first = await cache.get_or_compute("src/app.ts", "code", compute)
            second = await cache.get_or_compute("src/app.ts", "code", compute)
            return first, second

        first, second = asyncio.run(run())

        assert compute.calls == 1
        assert first == second
        assert len(cache) == 1
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    def test_returned_results_are_independent(self) -> None:
        """Mutating a returned result never changes the cached entry."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            first = await cache.get_or_compute("src/app.ts", "code", compute)
            first.issues.clear()
            first.summary = "mutated"
            return await cache.get_or_compute("src/app.ts", "code", compute)

        second = asyncio.run(run())

        assert len(second.issues) == 1
        assert second.summary == "cached"
        assert cache.get("src/app.ts", "code").summary == "cached"

    def test_concurrent_callers_share_computation(self) -> None:
        """Callers arriving while a computation runs wait for it."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            compute.gate = asyncio.Event()
            tasks = [
                asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
                for _ in range(5)
            ]
            await asyncio.sleep(0)
            compute.gate.set()
            return await asyncio.gather(*tasks)

        results = asyncio.run(run())

        assert compute.calls == 1
        assert cache.stats.coalesced == 4
        assert all(r.score == 7.0 for r in results)
        assert len({id(r) for r in results}) == 5

    def test_failure_reaches_every_waiter(self) -> None:
        """A failed computation is shared by waiters and not cached."""
        cache = ResultCache()
        compute = CountingCompute(error=RuntimeError("model unavailable"))

        async def run():
            compute.gate = asyncio.Event()
            tasks = [
                asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
                for _ in range(3)
            ]
            await asyncio.sleep(0)
            compute.gate.set()
            return await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = asyncio.run(run())

        assert compute.calls == 1
        assert all(isinstance(o, RuntimeError) for o in outcomes)
        assert len(cache) == 0

    def test_failure_is_retried(self) -> None:
        """The next request after a failure computes again."""
        cache = ResultCache()
        failing = CountingCompute(error=RuntimeError("boom"))
        working = CountingCompute()

        async def run():
            with pytest.raises(RuntimeError):
                await cache.get_or_compute("a.ts", "code", failing)
            return await cache.get_or_compute("a.ts", "code", working)

        result = asyncio.run(run())

        assert result.score == 7.0
        assert working.calls == 1

    def test_owner_cancellation_spares_waiters(self) -> None:
        """A waiter whose owner is cancelled computes the result itself."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            compute.gate = asyncio.Event()
            owner = asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
            await asyncio.sleep(0)
            waiter = asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
            await asyncio.sleep(0)

            owner.cancel()
            with pytest.raises(asyncio.CancelledError):
                await owner
            compute.gate.set()
            return await waiter

        result = asyncio.run(run())

        assert result.score == 7.0
        assert compute.calls == 2
        assert len(cache) == 1

    def test_cancelled_waiter_leaves_owner_running(self) -> None:
        """Cancelling a waiter does not cancel the shared computation."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            compute.gate = asyncio.Event()
            owner = asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
            await asyncio.sleep(0)
            waiter = asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
            await asyncio.sleep(0)

            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            compute.gate.set()
            return await owner

        result = asyncio.run(run())

        assert result.score == 7.0
        assert compute.calls == 1
        assert len(cache) == 1

    def test_different_content_recomputes(self) -> None:
        """An edit to the file produces a new key."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            await cache.get_or_compute("a.ts", "v1", compute)
            await cache.get_or_compute("a.ts", "v2", compute)
            await cache.get_or_compute("b.ts", "v1", compute)

        asyncio.run(run())

        assert compute.calls == 3
        assert len(cache) == 3


class TestClear:
    """Tests for ResultCache.clear."""

    def test_clear_forces_recompute(self) -> None:
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            await cache.get_or_compute("a.ts", "code", compute)
            cache.clear()
            await cache.get_or_compute("a.ts", "code", compute)

        asyncio.run(run())

        assert compute.calls == 2

    def test_clear_during_computation(self) -> None:
        """A computation running across clear() does not repopulate the cache."""
        cache = ResultCache()
        compute = CountingCompute()

        async def run():
            compute.gate = asyncio.Event()
            task = asyncio.ensure_future(cache.get_or_compute("a.ts", "code", compute))
            await asyncio.sleep(0)
            cache.clear()
            compute.gate.set()
            return await task

        result = asyncio.run(run())

        assert result.score == 7.0
        assert len(cache) == 0
        assert cache.get("a.ts", "code") is None

    def test_contains(self) -> None:
        cache = ResultCache()
        compute = CountingCompute()

        asyncio.run(cache.get_or_compute("a.ts", "code", compute))

        assert cache.make_key("a.ts", "code") in cache
        assert cache.make_key("a.ts", "other") not in cache
