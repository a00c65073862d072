"""
Bounded top-k selection over a stream of (id, distance) candidates.
"""

import heapq
from itertools import count
from typing import List

from .types import TopKEntry


class BoundedTopK:
    """Keeps the k smallest-distance candidates seen so far.

    Internally a max-oriented heap (heapq with negated keys) whose root is the
    worst retained entry, so each offer costs O(log k). A candidate that only
    ties the current worst is not inserted: the first one seen wins.
    """

    def __init__(self, k: int):
        if k < 0:
            raise ValueError(f"top_k must be >= 0, got {k}")
        self.k = k
        self._heap = []  # (-distance, -sequence, id)
        self._sequence = count()

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def accepts_candidates(self) -> bool:
        """False when k == 0; callers can skip scanning entirely."""
        return self.k > 0

    @property
    def worst_distance(self) -> float:
        """Largest retained distance, or +inf while the selector is not full."""
        if len(self._heap) < self.k or not self._heap:
            return float("inf")
        return -self._heap[0][0]

    def offer(self, id: str, distance: float) -> bool:
        """Offer a candidate; returns True when it was retained."""
        if self.k == 0:
            return False

        # Among equal worst distances the latest arrival sits at the root and is evicted first
        entry = (-distance, -next(self._sequence), id)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True

        if distance < -self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def drain_sorted(self) -> List[TopKEntry]:
        """Return retained entries ascending by distance, ties by id, and empty the selector."""
        entries = [TopKEntry(-neg_distance, id) for neg_distance, _, id in self._heap]
        self._heap = []
        entries.sort(key=lambda e: (e.distance, e.id))
        return entries
