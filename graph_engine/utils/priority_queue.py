"""
Двоичная min-куча по числовому приоритету.

Порядок элементов с равным приоритетом не гарантируется; алгоритмам,
которым нужен детерминированный разрыв ничьих, следует кодировать
вторичный ключ в приоритет (например, кортежем).
"""

from typing import Any, Generic, TypeVar

__all__ = ["PriorityQueue"]

T = TypeVar("T")


class PriorityQueue(Generic[T]):
    """Min-куча пар `(item, priority)` с O(n) обновлением приоритета."""

    def __init__(self) -> None:
        self._heap: list[tuple[Any, T]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __repr__(self) -> str:
        return f"PriorityQueue(size={len(self._heap)})"

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def clear(self) -> None:
        self._heap.clear()

    def enqueue(self, item: T, priority: Any) -> None:
        """Добавить элемент в конец кучи и поднять его."""
        self._heap.append((priority, item))
        self._sift_up(len(self._heap) - 1)

    def dequeue(self) -> T | None:
        """Извлечь элемент с минимальным приоритетом или `None` для пустой кучи."""
        entry = self.dequeue_with_priority()
        return entry[0] if entry is not None else None

    def dequeue_with_priority(self) -> tuple[T, Any] | None:
        if not self._heap:
            return None
        last = len(self._heap) - 1
        self._swap(0, last)
        priority, item = self._heap.pop()
        if self._heap:
            self._sift_down(0)
        return item, priority

    def peek(self) -> T | None:
        return self._heap[0][1] if self._heap else None

    def peek_priority(self) -> Any | None:
        return self._heap[0][0] if self._heap else None

    def contains(self, item: T) -> bool:
        return any(entry_item == item for _, entry_item in self._heap)

    def update_priority(self, item: T, priority: Any) -> bool:
        """
        Изменить приоритет элемента линейным поиском.

        Returns:
            `False`, если элемента нет в куче.

        """
        for index, (old_priority, entry_item) in enumerate(self._heap):
            if entry_item == item:
                self._heap[index] = (priority, entry_item)
                if priority < old_priority:
                    self._sift_up(index)
                else:
                    self._sift_down(index)
                return True
        return False

    def to_list(self) -> list[T]:
        """Элементы в порядке возрастания приоритета; куча не меняется."""
        ordered = sorted(range(len(self._heap)), key=lambda i: self._heap[i][0])
        return [self._heap[i][1] for i in ordered]

    def _sift_up(self, index: int) -> None:
        while index > 0:
            parent = (index - 1) // 2
            if self._heap[index][0] < self._heap[parent][0]:
                self._swap(index, parent)
                index = parent
            else:
                break

    def _sift_down(self, index: int) -> None:
        size = len(self._heap)
        while True:
            smallest = index
            left = 2 * index + 1
            right = left + 1
            if left < size and self._heap[left][0] < self._heap[smallest][0]:
                smallest = left
            if right < size and self._heap[right][0] < self._heap[smallest][0]:
                smallest = right
            if smallest == index:
                break
            self._swap(index, smallest)
            index = smallest

    def _swap(self, i: int, j: int) -> None:
        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]
