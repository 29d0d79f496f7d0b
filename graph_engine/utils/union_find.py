"""
Система непересекающихся множеств (union-find) над идентификаторами узлов.

Сжатие путей итеративное: проход до корня и второй проход с
перепривязкой, без рекурсии на длинных цепочках. Объединение по рангу.
"""

from collections.abc import Hashable, Iterable

from graph_engine.core.errors import ElementNotFoundError

__all__ = ["UnionFind"]


class UnionFind:
    """Непересекающиеся множества с подсчётом живых компонент."""

    def __init__(self, elements: Iterable[Hashable] = ()):
        self._parent: dict[Hashable, Hashable] = {}
        self._rank: dict[Hashable, int] = {}
        self._component_count = 0
        for element in elements:
            self.add_element(element)

    def __contains__(self, element: object) -> bool:
        return element in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def size(self) -> int:
        return len(self._parent)

    def add_element(self, element: Hashable) -> None:
        """Добавить одноэлементную компоненту; существующий элемент не трогается."""
        if element in self._parent:
            return
        self._parent[element] = element
        self._rank[element] = 0
        self._component_count += 1

    def find(self, element: Hashable) -> Hashable:
        if element not in self._parent:
            raise ElementNotFoundError(element)

        root = element
        while self._parent[root] != root:
            root = self._parent[root]

        while element != root:
            next_element = self._parent[element]
            self._parent[element] = root
            element = next_element

        return root

    def union(self, first: Hashable, second: Hashable) -> bool:
        """
        Объединить компоненты двух элементов.

        Returns:
            `False`, если элементы уже были в одной компоненте.

        """
        root_a = self.find(first)
        root_b = self.find(second)
        if root_a == root_b:
            return False

        rank_a, rank_b = self._rank[root_a], self._rank[root_b]
        if rank_a < rank_b:
            self._parent[root_a] = root_b
        elif rank_a > rank_b:
            self._parent[root_b] = root_a
        else:
            self._parent[root_b] = root_a
            self._rank[root_a] = rank_a + 1

        self._component_count -= 1
        return True

    def connected(self, first: Hashable, second: Hashable) -> bool:
        return self.find(first) == self.find(second)

    def get_component_count(self) -> int:
        return self._component_count

    def get_component(self, element: Hashable) -> list[Hashable]:
        """Все элементы компоненты, в порядке добавления."""
        root = self.find(element)
        return [item for item in self._parent if self.find(item) == root]

    def get_all_components(self) -> list[list[Hashable]]:
        """Компоненты в порядке первого появления их элементов."""
        groups: dict[Hashable, list[Hashable]] = {}
        for item in list(self._parent):
            groups.setdefault(self.find(item), []).append(item)
        return list(groups.values())
