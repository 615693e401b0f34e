"""EventBus — thread-safe pub/sub for game events.

The SimulationEngine publishes state changes, launches, impacts and kills
here.  Hosts (the HTTP app, audio cues, a renderer bridge) subscribe and
drain their own queue; the engine never waits on a subscriber.

Each subscriber queue is bounded.  When one is full the oldest queued
events are evicted to make room, and the bus counts how many were lost.
"""

from __future__ import annotations

import queue
import threading

from loguru import logger

QUEUE_MAXSIZE = 1000


class EventBus:
    """Fan-out of ``{"type": ..., "data": ...}`` messages to subscriber queues."""

    def __init__(self, maxsize: int = QUEUE_MAXSIZE) -> None:
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._subscribers: list[queue.Queue] = []
        self._dropped = 0

    def subscribe(self) -> queue.Queue:
        """Register a new listener and return its queue."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def dropped_count(self) -> int:
        """Events evicted from full queues since the bus was created."""
        with self._lock:
            return self._dropped

    def publish(self, event_type: str, data: dict | None = None) -> None:
        message: dict = {"type": event_type}
        if data is not None:
            message["data"] = data
        with self._lock:
            for q in self._subscribers:
                self._dropped += self._offer(q, message)

    @staticmethod
    def _offer(q: queue.Queue, message: dict) -> int:
        """Enqueue *message*, evicting from the head until it fits.

        Returns the number of evicted events.
        """
        evicted = 0
        while True:
            try:
                q.put_nowait(message)
                break
            except queue.Full:
                try:
                    q.get_nowait()
                    evicted += 1
                except queue.Empty:
                    continue
        if evicted:
            logger.debug(f"EventBus: slow subscriber, evicted {evicted} event(s) for {message['type']}")
        return evicted
