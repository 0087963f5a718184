# utme_cbt/core/dedup.py
import logging
import math
import threading
from typing import Dict

from .config import config

logger = logging.getLogger(__name__)

class Deduplicator:
    """Process-wide record of question ids already handed out.

    Entries are kept in insertion order. When the set grows past its
    capacity the oldest fraction is dropped, so an id may be reissued after
    heavy sustained use. This is an approximation, not an LRU.
    """

    def __init__(self, capacity: int = None, eviction_fraction: float = None):
        self.capacity = capacity if capacity is not None else config.DEDUP_CAPACITY
        self.eviction_fraction = (
            eviction_fraction if eviction_fraction is not None else config.DEDUP_EVICTION_FRACTION
        )

        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        if not (0 < self.eviction_fraction <= 1):
            raise ValueError("eviction_fraction must be between 0 and 1")

        self._used: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def is_used(self, question_id: str) -> bool:
        with self._lock:
            return question_id in self._used

    def mark_used(self, question_id: str):
        with self._lock:
            if question_id in self._used:
                return
            self._used[question_id] = True

        self.evict_if_over_capacity()

    def evict_if_over_capacity(self):
        with self._lock:
            size = len(self._used)
            if size <= self.capacity:
                return

            to_remove = max(1, math.ceil(size * self.eviction_fraction))
            for question_id in list(self._used)[:to_remove]:
                del self._used[question_id]

        logger.debug(f"Dedup set over capacity ({size}/{self.capacity}), evicted {to_remove} oldest ids")

    def used_count(self) -> int:
        with self._lock:
            return len(self._used)

    def clear(self):
        with self._lock:
            cleared = len(self._used)
            self._used.clear()
        logger.info(f"🧹 Cleared {cleared} used question ids")
        return cleared

    def stats(self):
        return {
            "used_questions": self.used_count(),
            "capacity": self.capacity,
            "eviction_fraction": self.eviction_fraction
        }
