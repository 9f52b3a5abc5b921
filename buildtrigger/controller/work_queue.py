"""
Rate limited work queue for controller keys.
"""
import asyncio
import logging
from collections import deque
from typing import Deque, Dict, Optional, Set


class RateLimitedQueue:
    """
    Deduplicating asyncio work queue with per-key exponential backoff.

    - A key is queued at most once, however often it is added.
    - A key handed out by get() is not handed out again until done() is
      called; adds that happen meanwhile are replayed by done().
    - add_rate_limited() delays a re-add by base_delay * 2**failures, capped
      at max_delay. forget() resets the failure count.
    """

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._queue: Deque[str] = deque()
        self._dirty: Set[str] = set()
        self._processing: Set[str] = set()
        self._failures: Dict[str, int] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._has_items = asyncio.Event()
        self._shutting_down = False
        self.logger = logging.getLogger(__name__)

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def add(self, key: str):
        """Queue a key for processing"""
        if self._shutting_down:
            return
        if key in self._dirty:
            return

        self._dirty.add(key)
        if key in self._processing:
            return

        self._queue.append(key)
        self._has_items.set()

    def add_after(self, key: str, delay: float):
        """Queue a key once delay seconds have passed"""
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return

        existing = self._timers.get(key)
        if existing is not None:
            existing.cancel()

        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(delay, self._fire_timer, key)

    def _fire_timer(self, key: str):
        self._timers.pop(key, None)
        self.add(key)

    def when(self, key: str) -> float:
        """Backoff delay for the next rate limited add of key"""
        failures = self._failures.get(key, 0)
        return min(self.base_delay * (2 ** failures), self.max_delay)

    def add_rate_limited(self, key: str):
        """Queue a key after its backoff delay and count one more failure"""
        delay = self.when(key)
        self._failures[key] = self._failures.get(key, 0) + 1
        self.logger.debug(f"Requeueing {key} in {delay:.3f}s")
        self.add_after(key, delay)

    def forget(self, key: str):
        """Stop tracking failures for a key"""
        self._failures.pop(key, None)

    def num_requeues(self, key: str) -> int:
        return self._failures.get(key, 0)

    async def get(self) -> Optional[str]:
        """
        Wait for the next key.

        Returns:
            The key, or None once the queue is shut down and drained
        """
        while not self._queue:
            if self._shutting_down:
                return None
            self._has_items.clear()
            await self._has_items.wait()

        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)
        return key

    def done(self, key: str):
        """Mark a key as processed; replay it if it was re-added meanwhile"""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._queue.append(key)
            self._has_items.set()

    def is_idle(self) -> bool:
        """True when nothing is queued, processing or waiting on a timer"""
        return not self._queue and not self._processing and not self._timers

    def shut_down(self):
        """Stop accepting keys, cancel pending delays and wake all waiters"""
        self._shutting_down = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._queue.clear()
        self._dirty.clear()
        self._has_items.set()
