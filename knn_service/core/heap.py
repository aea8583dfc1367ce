import threading
import numpy as np
from typing import List, Optional, Tuple

from knn_service.exceptions import AllocationError, PreconditionViolation


def is_max_heap(distances) -> bool:
    """Checks that every non-root slot is <= its parent."""
    for i in range(1, len(distances)):
        if distances[i] > distances[(i - 1) // 2]:
            return False
    return True


class BoundedTopKHeap:
    """
    Fixed-capacity max-heap keyed by distance, holding the K best
    (distance, id) candidates offered so far for a single query point.

    The root always holds the largest retained distance, so once the heap is
    full a new candidate either beats the root (and replaces it) or is dropped
    in O(1). Each instance carries its own lock; `insert` is the only
    mutating operation and it takes that lock for its whole duration, so many
    workers can share one heap.
    """
    def __init__(self, capacity: int):
        """
        Args:
            capacity: Number of neighbours to keep (K). Fixed for the
                      lifetime of the heap.

        Raises:
            PreconditionViolation: capacity is not a positive integer.
            AllocationError: the element storage could not be reserved.
        """
        if capacity < 1:
            raise PreconditionViolation(f"Heap capacity must be positive, got {capacity}")
        try:
            self._distances = np.empty(capacity, dtype=np.float64)
            self._ids = np.empty(capacity, dtype=np.int64)
        except MemoryError as e:
            raise AllocationError(f"Could not allocate heap storage for {capacity} elements") from e
        self._capacity = capacity
        self._count = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    @property
    def worst_distance(self) -> Optional[float]:
        """Distance at the root (the eviction candidate), None while empty."""
        with self._lock:
            if self._count == 0:
                return None
            return float(self._distances[0])

    def __len__(self) -> int:
        return self._count

    def insert(self, distance: float, point_id: int) -> bool:
        """
        Offer a candidate. Returns True if it is now part of the top-K,
        False if it was discarded because the heap is full and the candidate
        is no better than the current root.
        """
        with self._lock:
            if self._count < self._capacity:
                i = self._count
                self._distances[i] = distance
                self._ids[i] = point_id
                self._count += 1
                self._sift_up(i)
                return True

            if distance < self._distances[0]:
                self._distances[0] = distance
                self._ids[0] = point_id
                self._sift_down(0)
                return True

            return False

    def _swap(self, i: int, j: int):
        d = self._distances
        ids = self._ids
        d[i], d[j] = d[j], d[i]
        ids[i], ids[j] = ids[j], ids[i]

    def _sift_up(self, i: int):
        d = self._distances
        while i > 0:
            parent = (i - 1) // 2
            if d[parent] >= d[i]:
                break
            self._swap(parent, i)
            i = parent

    def _sift_down(self, i: int):
        d = self._distances
        n = self._count
        while True:
            left = 2 * i + 1
            if left >= n:
                break
            right = left + 1
            largest = i
            if d[left] > d[largest]:
                largest = left
            if right < n and d[right] > d[largest]:
                largest = right
            if largest == i:
                break
            self._swap(i, largest)
            i = largest

    def items(self) -> List[Tuple[float, int]]:
        """
        Snapshot of the retained (distance, id) pairs in heap order.
        Not ranked; only the complete top-K set once every insertion for
        this query point has finished.
        """
        with self._lock:
            return [(float(self._distances[i]), int(self._ids[i])) for i in range(self._count)]

    def sorted_items(self) -> List[Tuple[float, int]]:
        """Snapshot sorted by ascending distance."""
        return sorted(self.items(), key=lambda item: item[0])

    def check_invariant(self) -> bool:
        with self._lock:
            if self._count > self._capacity:
                return False
            return is_max_heap(self._distances[:self._count])

    def __repr__(self):
        return f"BoundedTopKHeap(capacity={self._capacity}, size={self._count})"
