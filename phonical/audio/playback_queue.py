"""Bounded FIFO of sound identifiers waiting to be played."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque

logger = logging.getLogger(__name__)

# Default number of pending sounds before new presses are dropped
DEFAULT_CAPACITY = 100


class PlaybackQueue:
    """Fixed-capacity FIFO between the key handler and the playback loop.

    try_enqueue() never blocks: when the queue is full the new item is
    dropped and counted. dequeue() blocks the consumer until an item
    arrives or the queue is closed.

    Like queue.Queue, the consumer calls task_done() once per dequeued
    item, and join() waits until every accepted item has been handled.

    Thread Safety:
        All methods are thread-safe via an internal Condition.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize the queue.

        Args:
            capacity: Maximum number of pending items.

        Raises:
            ValueError: If capacity is less than 1.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")

        self._capacity = capacity
        self._items: deque[str] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._dropped = 0
        self._unfinished = 0

    @property
    def capacity(self) -> int:
        """Maximum number of pending items."""
        return self._capacity

    @property
    def closed(self) -> bool:
        """Check if the queue has been closed."""
        with self._cond:
            return self._closed

    @property
    def dropped(self) -> int:
        """Number of items rejected because the queue was full or closed."""
        with self._cond:
            return self._dropped

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def try_enqueue(self, identifier: str) -> bool:
        """Add an item without blocking.

        Args:
            identifier: Sound identifier to queue.

        Returns:
            True if queued, False if dropped (queue full or closed).
        """
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                self._dropped += 1
                dropped = self._dropped
                reason = "closed" if self._closed else "full"
                accepted = False
            else:
                self._items.append(identifier)
                self._unfinished += 1
                self._cond.notify_all()
                accepted = True

        if not accepted:
            logger.debug("queue: %s, dropped %s (total dropped=%d)", reason, identifier, dropped)
        return accepted

    def dequeue(self, timeout: float | None = None) -> str | None:
        """Remove and return the oldest item, waiting if the queue is empty.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            The oldest identifier, or None if the queue was closed or the
            timeout expired.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items and not self._closed:
                if deadline is None:
                    self._cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._cond.wait(remaining)

            if self._closed:
                return None
            return self._items.popleft()

    def task_done(self) -> None:
        """Mark one dequeued item as handled.

        Raises:
            ValueError: If called more times than items were dequeued.
        """
        with self._cond:
            if self._unfinished - len(self._items) <= 0:
                raise ValueError("task_done() called too many times")
            self._unfinished -= 1
            if self._unfinished == 0:
                self._cond.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every accepted item has been handled.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            True if all items were handled, False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._unfinished == 0, timeout)

    def close(self) -> None:
        """Close the queue and wake every waiting consumer.

        Pending items are discarded and later enqueues are rejected.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            discarded = len(self._items)
            self._items.clear()
            self._unfinished -= discarded
            self._cond.notify_all()

        if discarded:
            logger.debug("queue: closed, discarded %d pending sounds", discarded)
