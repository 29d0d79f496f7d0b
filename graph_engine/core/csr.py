"""
Неизменяемое CSR-представление графа (compressed sparse row).

Узлы адресуются плотными индексами `0..n-1`; соседи узла `i` лежат в
`col_indices[row_offsets[i]:row_offsets[i + 1]]` в том порядке, в котором
их отдавал исходный граф при конвертации. Веса, если есть, лежат в
параллельном массиве `weights`.

CSRGraph — замороженный снимок: изменения исходного `Graph` после
конвертации не видны, устаревший снимок нужно пересобрать.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence

import torch

from graph_engine.core.errors import NodeNotFoundError
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = ["CSRGraph", "is_csr_graph"]


class CSRGraph:
    """
    Плоское представление смежности: смещения строк, индексы столбцов и
    необязательные веса. Опционально хранит обратный CSR для входящих соседей.
    """

    __slots__ = (
        "_col_indices",
        "_directed",
        "_edge_count",
        "_index",
        "_node_ids",
        "_reverse_indices",
        "_reverse_offsets",
        "_row_offsets",
        "_weights",
    )

    def __init__(
        self,
        adjacency: Mapping[NodeId, Sequence[NodeId]],
        weights: Mapping[tuple[NodeId, NodeId], float] | None = None,
        *,
        directed: bool = True,
        edge_count: int | None = None,
        build_reverse: bool = False,
    ):
        """
        Args:
            adjacency: Упорядоченная карта `узел -> список соседей`. Соседи,
                отсутствующие среди ключей, добавляются как узлы в конец.
            weights: Веса по парам `(source, target)`; отсутствующие равны 1.
            directed: Ориентированность исходного графа.
            edge_count: Число логических рёбер; по умолчанию число записей.
            build_reverse: Построить обратный CSR для `in_neighbors`.

        """
        node_ids: list[NodeId] = list(adjacency)
        index: dict[NodeId, int] = {node_id: i for i, node_id in enumerate(node_ids)}
        for targets in adjacency.values():
            for target in targets:
                if target not in index:
                    index[target] = len(node_ids)
                    node_ids.append(target)

        offsets = [0]
        columns: list[int] = []
        values: list[float] = []
        for node_id in node_ids:
            for target in adjacency.get(node_id, ()):
                columns.append(index[target])
                if weights is not None:
                    values.append(float(weights.get((node_id, target), 1.0)))
            offsets.append(len(columns))

        self._node_ids: tuple[NodeId, ...] = tuple(node_ids)
        self._index = index
        self._row_offsets: tuple[int, ...] = tuple(offsets)
        self._col_indices: tuple[int, ...] = tuple(columns)
        self._weights: tuple[float, ...] | None = tuple(values) if weights is not None else None
        self._directed = directed
        self._edge_count = edge_count if edge_count is not None else len(columns)
        self._reverse_offsets: tuple[int, ...] | None = None
        self._reverse_indices: tuple[int, ...] | None = None
        if build_reverse:
            self._build_reverse()

    @classmethod
    def from_graph(
        cls,
        graph: ReadableGraph,
        *,
        include_weights: bool = True,
        include_reverse: bool = False,
    ) -> "CSRGraph":
        """Снять CSR-снимок с любого графа, реализующего `ReadableGraph`."""
        adjacency: dict[NodeId, list[NodeId]] = {}
        weights: dict[tuple[NodeId, NodeId], float] | None = {} if include_weights else None
        for node_id in graph.node_ids():
            targets = list(graph.neighbors(node_id))
            adjacency[node_id] = targets
            if weights is not None:
                for target in targets:
                    weight = graph.edge_weight(node_id, target)
                    weights[(node_id, target)] = 1.0 if weight is None else weight
        return cls(
            adjacency,
            weights,
            directed=graph.is_directed,
            edge_count=graph.edge_count,
            build_reverse=include_reverse,
        )

    def __repr__(self) -> str:
        return f"CSRGraph(nodes={self.node_count}, edges={self.edge_count}, directed={self._directed})"

    def __len__(self) -> int:
        return len(self._node_ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    # ------------------------------------------------------------------
    # Массивы
    # ------------------------------------------------------------------

    @property
    def row_offsets(self) -> tuple[int, ...]:
        return self._row_offsets

    @property
    def col_indices(self) -> tuple[int, ...]:
        return self._col_indices

    @property
    def weights(self) -> tuple[float, ...] | None:
        return self._weights

    @property
    def has_reverse(self) -> bool:
        return self._reverse_offsets is not None

    # ------------------------------------------------------------------
    # ReadableGraph
    # ------------------------------------------------------------------

    @property
    def is_directed(self) -> bool:
        return self._directed

    @property
    def node_count(self) -> int:
        return len(self._node_ids)

    @property
    def edge_count(self) -> int:
        """Число логических рёбер исходного графа."""
        return self._edge_count

    @property
    def stored_edge_count(self) -> int:
        """Число записей в `col_indices` (неориентированное ребро хранится дважды)."""
        return len(self._col_indices)

    def node_ids(self) -> Iterator[NodeId]:
        return iter(self._node_ids)

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._index

    def node_to_index(self, node_id: NodeId) -> int:
        try:
            return self._index[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def index_to_node(self, index: int) -> NodeId:
        if not 0 <= index < len(self._node_ids):
            raise IndexError(f"Index {index} out of bounds")
        return self._node_ids[index]

    def neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        row = self._index.get(node_id)
        if row is None:
            return iter(())
        start, end = self._row_offsets[row], self._row_offsets[row + 1]
        return (self._node_ids[col] for col in self._col_indices[start:end])

    def neighbor_indices(self, index: int) -> Sequence[int]:
        return self._col_indices[self._row_offsets[index] : self._row_offsets[index + 1]]

    def in_neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        if self._reverse_offsets is None or self._reverse_indices is None:
            raise RuntimeError("Reverse adjacency was not built; use build_reverse=True")
        row = self._index.get(node_id)
        if row is None:
            return iter(())
        start, end = self._reverse_offsets[row], self._reverse_offsets[row + 1]
        return (self._node_ids[col] for col in self._reverse_indices[start:end])

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        return self._position(source, target) is not None

    def edge_weight(self, source: NodeId, target: NodeId) -> float | None:
        position = self._position(source, target)
        if position is None:
            return None
        return self._weights[position] if self._weights is not None else 1.0

    def out_degree(self, node_id: NodeId) -> int:
        row = self._index.get(node_id)
        if row is None:
            return 0
        return self._row_offsets[row + 1] - self._row_offsets[row]

    def in_degree(self, node_id: NodeId) -> int:
        if self._reverse_offsets is None:
            raise RuntimeError("Reverse adjacency was not built; use build_reverse=True")
        row = self._index.get(node_id)
        if row is None:
            return 0
        return self._reverse_offsets[row + 1] - self._reverse_offsets[row]

    # ------------------------------------------------------------------
    # Экспорт
    # ------------------------------------------------------------------

    def to_sparse_tensor(self, dtype: torch.dtype = torch.float64) -> torch.Tensor:
        """Экспортировать матрицу смежности как `torch.sparse_csr_tensor`."""
        n = self.node_count
        values = self._weights if self._weights is not None else (1.0,) * len(self._col_indices)
        return torch.sparse_csr_tensor(
            torch.tensor(self._row_offsets, dtype=torch.int64),
            torch.tensor(self._col_indices, dtype=torch.int64),
            torch.tensor(values, dtype=dtype),
            size=(n, n),
        )

    def edges(self) -> Iterable[tuple[NodeId, NodeId, float]]:
        """Итерировать записи `(source, target, weight)` в порядке хранения."""
        for row, source in enumerate(self._node_ids):
            for position in range(self._row_offsets[row], self._row_offsets[row + 1]):
                weight = self._weights[position] if self._weights is not None else 1.0
                yield source, self._node_ids[self._col_indices[position]], weight

    # ------------------------------------------------------------------
    # Внутреннее
    # ------------------------------------------------------------------

    def _position(self, source: NodeId, target: NodeId) -> int | None:
        row = self._index.get(source)
        column = self._index.get(target)
        if row is None or column is None:
            return None
        for position in range(self._row_offsets[row], self._row_offsets[row + 1]):
            if self._col_indices[position] == column:
                return position
        return None

    def _build_reverse(self) -> None:
        n = len(self._node_ids)
        incoming: list[list[int]] = [[] for _ in range(n)]
        for row in range(n):
            for column in self.neighbor_indices(row):
                incoming[column].append(row)
        offsets = [0]
        columns: list[int] = []
        for sources in incoming:
            columns.extend(sources)
            offsets.append(len(columns))
        self._reverse_offsets = tuple(offsets)
        self._reverse_indices = tuple(columns)


def is_csr_graph(value: object) -> bool:
    """Является ли объект CSR-снимком (адаптер и `Graph` — нет)."""
    return isinstance(value, CSRGraph)
