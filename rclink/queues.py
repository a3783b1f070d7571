"""Bounded FIFO queues: a non-blocking ring queue and a blocking variant."""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import Any


class QueueEmpty(queue.Empty):
    """Raised when an item is requested from an empty queue."""


class QueueFull(queue.Full):
    """Raised when an item is added to a full queue."""


class RingQueue:
    """Thread-safe bounded FIFO that fails instead of blocking."""

    def __init__(self, max_size: int = 1024) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1: {max_size}")
        self.max_size = max_size
        self._items: deque[Any] = deque()
        self._lock = threading.Lock()

    def clear(self) -> None:
        """Drop every queued item."""
        with self._lock:
            self._items.clear()

    def push(self, item: Any) -> None:
        """Append ``item``; raise QueueFull when at capacity."""
        with self._lock:
            if len(self._items) >= self.max_size:
                raise QueueFull("queue is full")
            self._items.append(item)

    def pop(self) -> Any:
        """Remove and return the oldest item; raise QueueEmpty if none."""
        with self._lock:
            if not self._items:
                raise QueueEmpty("queue is empty")
            return self._items.popleft()

    def peek(self) -> Any:
        """Return the oldest item without removing it."""
        with self._lock:
            if not self._items:
                raise QueueEmpty("queue is empty")
            return self._items[0]

    def __len__(self) -> int:
        return len(self._items)

    def is_full(self) -> bool:
        return len(self._items) >= self.max_size

    def is_empty(self) -> bool:
        return not self._items


class BlockingQueue:
    """Bounded FIFO whose push and pop can wait for room or data."""

    def __init__(self, max_size: int = 1) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1: {max_size}")
        self.max_size = max_size
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()

    def clear(self) -> None:
        """Drop every queued item and wake waiting producers."""
        with self._cond:
            self._items.clear()
            self._cond.notify_all()

    def push(self, item: Any, block: bool = True) -> None:
        """Append ``item``, waiting for room when ``block`` is true.

        Raises QueueFull when the queue is full and ``block`` is false.
        """
        with self._cond:
            if len(self._items) >= self.max_size:
                if not block:
                    raise QueueFull("queue is full")
                self._cond.wait_for(lambda: len(self._items) < self.max_size)
            self._items.append(item)
            self._cond.notify_all()

    def pop(self, timeout: float | None = 0.001) -> Any:
        """Remove and return the oldest item.

        A positive ``timeout`` (of at least one microsecond) bounds the wait
        and raises QueueEmpty when it expires; zero or None waits forever.
        """
        with self._cond:
            if timeout is None or int(timeout * 1_000_000) <= 0:
                self._cond.wait_for(lambda: bool(self._items))
            elif not self._cond.wait_for(lambda: bool(self._items), timeout):
                raise QueueEmpty("no item within timeout")
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def peek(self) -> Any:
        """Return the oldest item without removing it."""
        with self._cond:
            if not self._items:
                raise QueueEmpty("queue is empty")
            return self._items[0]

    def __len__(self) -> int:
        return len(self._items)

    def is_full(self) -> bool:
        return len(self._items) >= self.max_size

    def is_empty(self) -> bool:
        return not self._items