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

"""Content-addressed cache for review results.

Entries are keyed by ``(path, md5(content))``, so editing a file moves it to
a new key and the old entry is simply never hit again. Concurrent requests
for the same key share one in-flight computation. ``clear()`` is the only
eviction.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import NamedTuple

from .analyzers.base_analyzer import ReviewResult

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    path: str
    content_hash: str


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0


def content_hash(content: str) -> str:
    """128-bit hex digest of the text."""
    return hashlib.md5(content.encode("utf-8"), usedforsecurity=False).hexdigest()


def _consume_exception(future: asyncio.Future[ReviewResult]) -> None:
    # Mark the exception retrieved when no concurrent caller was waiting.
    if not future.cancelled():
        future.exception()


def _cancel_requested() -> bool:
    # True when the running task itself has a pending cancel() request.
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class ResultCache:
    """Singleflight result cache shared across concurrent file analyses."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, ReviewResult] = {}
        self._in_flight: dict[CacheKey, asyncio.Future[ReviewResult]] = {}
        self._generation = 0
        self.stats = CacheStats()

    def make_key(self, path: str, content: str) -> CacheKey:
        return CacheKey(path, content_hash(content))

    def get(self, path: str, content: str) -> ReviewResult | None:
        """Return a copy of the cached result, or None."""
        cached = self._entries.get(self.make_key(path, content))
        return cached.copy() if cached is not None else None

    async def get_or_compute(
        self,
        path: str,
        content: str,
        compute: Callable[[], Awaitable[ReviewResult]],
    ) -> ReviewResult:
        """Return the cached result for (path, content), computing it at most once.

        A second caller arriving while the first computation is still running
        waits for that computation instead of starting its own. If the
        computation raises, every waiting caller sees the same exception and
        nothing is cached. If the caller that owns the computation is
        cancelled, waiters that were not cancelled themselves start over.

        Args:
            path: File path component of the key
            content: File text, hashed into the key
            compute: Coroutine factory producing the result on a miss

        Returns:
            An independent copy of the cached ReviewResult
        """
        key = self.make_key(path, content)

        while True:
            cached = self._entries.get(key)
            if cached is not None:
                self.stats.hits += 1
                logger.debug(f"Cache hit for {path} ({key.content_hash[:8]})")
                return cached.copy()

            pending = self._in_flight.get(key)
            if pending is None:
                break

            self.stats.coalesced += 1
            logger.debug(f"Waiting for in-flight computation of {path}")
            try:
                result = await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled() or _cancel_requested():
                    raise
                logger.debug(f"In-flight computation of {path} was cancelled, retrying")
                continue
            return result.copy()

        self.stats.misses += 1
        generation = self._generation
        future: asyncio.Future[ReviewResult] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_exception)
        self._in_flight[key] = future

        try:
            result = await compute()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            raise
        finally:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]

        stored = result.copy()
        if generation == self._generation:
            self._entries[key] = stored
            logger.debug(f"Cached result for {path} ({key.content_hash[:8]})")
        else:
            logger.debug(f"Cache cleared while computing {path}, result not stored")
        future.set_result(stored)
        return stored.copy()

    def clear(self) -> None:
        """Drop every entry. Computations already running will not be stored."""
        self._entries.clear()
        self._in_flight.clear()
        self._generation += 1
        logger.debug("Analysis result cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
