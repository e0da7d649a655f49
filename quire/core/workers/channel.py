"""
Hand-off of background results to the UI thread.

Workers post into a ResultChannel; the UI thread drains it once per
frame with poll(). Every request is tagged with a per-topic generation
and only results of the newest generation are handed out, so a slow
answer to an abandoned request can never overwrite a newer one.
"""
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

UNIT_TOPIC = "unit"
COVER_TOPIC = "cover"
SEARCH_TOPIC = "search"


@dataclass
class TaskResult:
    """One finished background task."""
    topic: str
    generation: int
    payload: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ResultChannel:
    """Thread-safe result queue with stale-result filtering."""

    def __init__(self):
        self._queue: "queue.Queue[TaskResult]" = queue.Queue()
        self._lock = threading.Lock()
        self._generations: Dict[str, int] = {}

    def next_generation(self, topic: str) -> int:
        """
        Start a new request for a topic.

        Results of every earlier generation of the topic become stale.

        Returns:
            The generation to tag the new request with
        """
        with self._lock:
            generation = self._generations.get(topic, 0) + 1
            self._generations[topic] = generation
            return generation

    def current_generation(self, topic: str) -> int:
        with self._lock:
            return self._generations.get(topic, 0)

    def post(self, topic: str, generation: int, payload: Any = None,
             error: Optional[str] = None) -> None:
        """Queue a result; safe to call from any thread."""
        self._queue.put(TaskResult(topic, generation, payload, error))

    def poll(self) -> List[TaskResult]:
        """
        Drain the queue without blocking.

        Returns:
            Current results in arrival order; stale ones are dropped
        """
        results = []
        while True:
            try:
                result = self._queue.get_nowait()
            except queue.Empty:
                break
            if result.generation != self.current_generation(result.topic):
                logger.debug(
                    "Dropping stale %s result (generation %d)",
                    result.topic, result.generation,
                )
                continue
            results.append(result)
        return results
