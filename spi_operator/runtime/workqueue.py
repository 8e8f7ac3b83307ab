"""
Work queue feeding the controller workers.

The queue holds requests, never objects. A request added several times
before it is picked up is processed once. A request being processed is never
handed to a second worker: re-adding it marks it dirty and it is queued again
once the worker calls done.
"""

import heapq
import itertools
import threading
import time
from collections import deque
from typing import Deque, Dict, Hashable, List, Optional, Set, Tuple

from ..utils.backoff import calculate_exponential_backoff


class WorkQueue:
    def __init__(
        self,
        name: str = "queue",
        backoff_base: int = 1,
        backoff_max: int = 300,
        jitter: bool = True,
    ):
        self.name = name
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.jitter = jitter

        self._queue: Deque[Hashable] = deque()
        self._dirty: Set[Hashable] = set()
        self._processing: Set[Hashable] = set()
        self._delayed: List[Tuple[float, int, Hashable]] = []
        self._failures: Dict[Hashable, int] = {}
        self._sequence = itertools.count()
        self._cond = threading.Condition()
        self._shutting_down = False

    def _add_locked(self, item: Hashable) -> None:
        if self._shutting_down or item in self._dirty:
            return
        self._dirty.add(item)
        if item in self._processing:
            return
        self._queue.append(item)
        self._cond.notify()

    def _promote_locked(self) -> None:
        now = time.monotonic()
        while self._delayed and self._delayed[0][0] <= now:
            _, _, item = heapq.heappop(self._delayed)
            self._add_locked(item)

    def add(self, item: Hashable) -> None:
        with self._cond:
            self._add_locked(item)

    def add_after(self, item: Hashable, delay: float) -> None:
        """Add item once delay seconds have passed."""
        if delay <= 0:
            self.add(item)
            return
        with self._cond:
            if self._shutting_down:
                return
            heapq.heappush(self._delayed, (time.monotonic() + delay, next(self._sequence), item))
            self._cond.notify()

    def add_rate_limited(self, item: Hashable) -> float:
        """
        Add item after its exponential backoff delay.

        Returns:
            The delay in seconds
        """
        with self._cond:
            retries = self._failures.get(item, 0)
            self._failures[item] = retries + 1
        delay = calculate_exponential_backoff(
            retries, base_delay=self.backoff_base, max_delay=self.backoff_max, jitter=self.jitter
        )
        self.add_after(item, delay)
        return delay

    def forget(self, item: Hashable) -> None:
        """Reset the backoff of item."""
        with self._cond:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._cond:
            return self._failures.get(item, 0)

    def get(self, timeout: Optional[float] = None) -> Optional[Hashable]:
        """
        Take the next item, blocking up to timeout seconds.

        Returns:
            The item, None on timeout or once the queue is shut down
        """
        end = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                self._promote_locked()
                if self._queue:
                    item = self._queue.popleft()
                    self._processing.add(item)
                    self._dirty.discard(item)
                    return item
                if self._shutting_down:
                    return None

                now = time.monotonic()
                waits = []
                if end is not None:
                    if now >= end:
                        return None
                    waits.append(end - now)
                if self._delayed:
                    waits.append(max(self._delayed[0][0] - now, 0.0))
                self._cond.wait(min(waits) if waits else None)

    def done(self, item: Hashable) -> None:
        """Mark item processed, queueing it again if it was re-added meanwhile."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()

    def shutdown(self) -> None:
        with self._cond:
            self._shutting_down = True
            self._delayed.clear()
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def is_processing(self, item: Hashable) -> bool:
        with self._cond:
            return item in self._processing

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)
