import asyncio
import time
from collections import deque
from typing import Deque, Dict, Optional, Set
from addon_operator.sensors import OperatorSensor


class QueueShutDown(Exception):
    """Raised by :meth:`RateLimitingQueue.get` once the queue is shut down and drained."""


class RateLimitingQueue:
    """Deduplicating work queue of reconcile keys.

    A key is held at most once while it waits. A key that is added while a
    worker is processing it is parked and handed out again only after the
    worker calls :meth:`done`, so one key is never processed by two workers
    at the same time.

    Failed keys are requeued through :meth:`add_rate_limited`, which delays
    them exponentially per key until :meth:`forget` resets the count.

    Example:
        queue = RateLimitingQueue(base_delay=0.5, max_delay=300)
        queue.add("my-addon")

        key = await queue.get()
        try:
            await reconcile(key)
            queue.forget(key)
        except Exception:
            queue.add_rate_limited(key)
        finally:
            queue.done(key)
    """

    def __init__(
        self,
        base_delay: float = 0.5,
        max_delay: float = 300.0,
        sensor: Optional[OperatorSensor] = None,
    ) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sensor = sensor
        self._queue: Deque[str] = deque()
        self._dirty: Set[str] = set()
        self._processing: Set[str] = set()
        self._failures: Dict[str, int] = {}
        self._enqueued_at: Dict[str, float] = {}
        self._not_empty = asyncio.Event()
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def _push(self, key: str) -> None:
        self._queue.append(key)
        self._enqueued_at[key] = time.monotonic()
        self._not_empty.set()
        if self.sensor:
            self.sensor.on_reconcile_queued(key, len(self._queue))

    def add(self, key: str) -> None:
        """Mark ``key`` as needing processing."""
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._push(key)

    def add_after(self, key: str, delay: float) -> None:
        """Add ``key`` once ``delay`` seconds have passed."""
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return
        asyncio.get_running_loop().call_later(delay, self.add, key)

    def when(self, key: str) -> float:
        """Return the backoff delay for the next retry of ``key`` and count the failure."""
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1
        return min(self.base_delay * (2**failures), self.max_delay)

    def add_rate_limited(self, key: str) -> float:
        """Requeue ``key`` after its current backoff delay; return the delay."""
        delay = self.when(key)
        self.add_after(key, delay)
        return delay

    def forget(self, key: str) -> None:
        """Reset the failure count of ``key``."""
        self._failures.pop(key, None)

    def num_requeues(self, key: str) -> int:
        return self._failures.get(key, 0)

    async def get(self) -> str:
        """Wait for the next key and mark it as being processed."""
        while not self._queue:
            if self._shutting_down:
                raise QueueShutDown()
            self._not_empty.clear()
            await self._not_empty.wait()
        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)
        enqueued_at = self._enqueued_at.pop(key, None)
        if self.sensor and enqueued_at is not None:
            self.sensor.on_reconcile_dequeued(key, time.monotonic() - enqueued_at)
        return key

    def done(self, key: str) -> None:
        """Mark ``key`` as processed, releasing a parked re-add if there is one."""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._push(key)

    def shutdown(self) -> None:
        """Stop accepting keys and wake every waiting worker."""
        self._shutting_down = True
        self._not_empty.set()
