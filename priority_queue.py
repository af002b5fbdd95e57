from __future__ import annotations

from typing import Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class MinHeap(Generic[T]):
    """Array-backed binary min-heap keyed by float priority.

    Lower keys come out first. There is no decrease-key; callers rebuild the
    heap instead. The order in which entries with equal keys are extracted
    depends on insertion order and heap shape and is not guaranteed.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, T]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def insert(self, key: float, payload: T) -> None:
        self._heap.append((key, payload))
        self._sift_up(len(self._heap) - 1)

    def extract_min(self) -> Optional[T]:
        if not self._heap:
            return None
        last = self._heap.pop()
        if not self._heap:
            return last[1]
        top = self._heap[0]
        self._heap[0] = last
        self._sift_down(0)
        return top[1]

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if heap[index][0] < heap[parent][0]:
                heap[index], heap[parent] = heap[parent], heap[index]
                index = parent
            else:
                break

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while True:
            smallest = index
            left = 2 * index + 1
            right = 2 * index + 2
            if left < size and heap[left][0] < heap[smallest][0]:
                smallest = left
            if right < size and heap[right][0] < heap[smallest][0]:
                smallest = right
            if smallest == index:
                break
            heap[index], heap[smallest] = heap[smallest], heap[index]
            index = smallest
