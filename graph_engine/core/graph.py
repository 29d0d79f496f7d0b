"""
Изменяемый граф на списках смежности.

Узлы и рёбра хранятся в словарях, сохраняющих порядок вставки, поэтому
порядок обхода соседей стабилен и совпадает с порядком добавления рёбер.

Для неориентированного графа одно ребро хранится одной записью `Edge`,
на которую ссылаются обе стороны смежности; обратное направление
синтезируется при обходе соседей и не увеличивает счётчик рёбер.

Пример:

    graph = Graph(directed=True)
    graph.add_edge("a", "b", weight=2.0)
    graph.add_edge("b", "c")

    list(graph.neighbors("a"))  # ["b"]
    graph.get_edge("a", "b").weight  # 2.0
"""

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict

from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.types import NodeId

__all__ = ["Edge", "Graph", "GraphConfig", "Node"]


class GraphConfig(BaseModel):
    """Политики графа, фиксируемые при создании."""

    model_config = ConfigDict(frozen=True)

    directed: bool = False
    allow_self_loops: bool = True
    allow_parallel_edges: bool = False


class Node(BaseModel):
    """Узел графа с произвольными данными."""

    model_config = ConfigDict(frozen=True)

    id: NodeId
    data: Any = None


class Edge(BaseModel):
    """Ребро графа. Вес по умолчанию равен 1."""

    model_config = ConfigDict(frozen=True)

    source: NodeId
    target: NodeId
    weight: float = 1.0
    id: str | None = None
    data: Any = None

    @property
    def key(self) -> str:
        """Строковый ключ ребра вида `source-target`."""
        return f"{self.source}-{self.target}"


class Graph:
    """
    Изменяемый граф: узлы, ориентированные или неориентированные рёбра
    с весами и данными, политики петель и параллельных рёбер.

    Операции, ссылающиеся на отсутствующий узел, возвращают пустой результат
    (`neighbors`, `degree`, `get_edge`) или `False` (`remove_*`); явную ошибку
    `NodeNotFoundError` бросает `require_node`. `add_edge` создаёт
    отсутствующие концы автоматически.
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        *,
        directed: bool | None = None,
        allow_self_loops: bool | None = None,
        allow_parallel_edges: bool | None = None,
    ):
        overrides = {
            key: value
            for key, value in (
                ("directed", directed),
                ("allow_self_loops", allow_self_loops),
                ("allow_parallel_edges", allow_parallel_edges),
            )
            if value is not None
        }
        base = config or GraphConfig()
        self._config = base.model_copy(update=overrides) if overrides else base

        self._nodes: dict[NodeId, Node] = {}
        self._out: dict[NodeId, dict[NodeId, Edge]] = {}
        # Для неориентированного графа входящая смежность совпадает с исходящей
        self._in: dict[NodeId, dict[NodeId, Edge]] = {} if self._config.directed else self._out
        self._edge_count = 0

    def __repr__(self) -> str:
        kind = "directed" if self.is_directed else "undirected"
        return f"Graph({kind}, nodes={self.node_count}, edges={self.edge_count})"

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ------------------------------------------------------------------
    # Свойства
    # ------------------------------------------------------------------

    @property
    def config(self) -> GraphConfig:
        return self._config

    @property
    def is_directed(self) -> bool:
        return self._config.directed

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Число логических рёбер."""
        return self._edge_count

    @property
    def unique_edge_count(self) -> int:
        return self._edge_count

    @property
    def total_edge_count(self) -> int:
        """Число хранимых записей рёбер (по одной на неориентированное ребро)."""
        return sum(
            1 for source, targets in self._out.items() for edge in targets.values() if self._is_primary(source, edge)
        )

    # ------------------------------------------------------------------
    # Мутации
    # ------------------------------------------------------------------

    def add_node(self, node_id: NodeId, data: Any = None) -> Node:
        """
        Добавить узел. Повторная вставка не является ошибкой: без `data`
        это no-op, с `data` данные словарей сливаются, иначе заменяются.
        """
        existing = self._nodes.get(node_id)
        if existing is not None:
            if data is None:
                return existing
            if isinstance(existing.data, dict) and isinstance(data, dict):
                data = {**existing.data, **data}
            node = existing.model_copy(update={"data": data})
            self._nodes[node_id] = node
            return node

        node = Node(id=node_id, data=data)
        self._nodes[node_id] = node
        self._out[node_id] = {}
        if self.is_directed:
            self._in[node_id] = {}
        return node

    def add_edge(
        self,
        source: NodeId,
        target: NodeId,
        weight: float = 1.0,
        data: Any = None,
        edge_id: str | None = None,
    ) -> Edge:
        """
        Добавить ребро, создав отсутствующие концы.

        Raises:
            InvalidTopologyError: петля при запрещённых петлях или повторное
                ребро при запрещённых параллельных рёбрах.

        """
        if source == target and not self._config.allow_self_loops:
            raise InvalidTopologyError("Self-loops are not allowed", metadata={"node_id": source})

        existing = self.get_edge(source, target)
        if existing is not None:
            if not self._config.allow_parallel_edges:
                raise InvalidTopologyError(
                    "Parallel edges are not allowed",
                    metadata={"source": source, "target": target},
                )
            # Повторное ребро обновляет вес и данные существующей записи
            updated = existing.model_copy(
                update={"weight": float(weight), "data": data if data is not None else existing.data}
            )
            self._store(updated)
            return updated

        self.add_node(source)
        self.add_node(target)
        edge = Edge(source=source, target=target, weight=float(weight), id=edge_id, data=data)
        self._store(edge)
        self._edge_count += 1
        return edge

    def remove_node(self, node_id: NodeId) -> bool:
        """Удалить узел вместе с инцидентными рёбрами."""
        if node_id not in self._nodes:
            return False

        outgoing = self._out.pop(node_id)
        if self.is_directed:
            incoming = self._in.pop(node_id)
            for target in outgoing:
                if target != node_id:
                    del self._in[target][node_id]
            for source in incoming:
                if source != node_id:
                    del self._out[source][node_id]
            removed = len(outgoing) + len(incoming) - (1 if node_id in outgoing else 0)
        else:
            for target in outgoing:
                if target != node_id:
                    del self._out[target][node_id]
            removed = len(outgoing)

        del self._nodes[node_id]
        self._edge_count -= removed
        return True

    def remove_edge(self, source: NodeId, target: NodeId) -> bool:
        """Удалить ребро; для неориентированного графа порядок концов не важен."""
        if not self.has_edge(source, target):
            return False

        del self._out[source][target]
        if self.is_directed:
            del self._in[target][source]
        elif source != target:
            del self._out[target][source]
        self._edge_count -= 1
        return True

    def clear(self) -> None:
        self._nodes.clear()
        self._out.clear()
        self._in.clear()
        self._edge_count = 0

    def clone(self) -> "Graph":
        """Независимая глубокая копия графа с той же конфигурацией."""
        copy = Graph(self._config)
        for node in self._nodes.values():
            copy.add_node(node.id)
            copy._nodes[node.id] = node.model_copy(deep=True)
        for edge in self.edges():
            copy._store(edge.model_copy(deep=True))
        copy._edge_count = self._edge_count
        return copy

    # ------------------------------------------------------------------
    # Запросы
    # ------------------------------------------------------------------

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._nodes

    def require_node(self, node_id: NodeId) -> Node:
        """Вернуть узел или бросить `NodeNotFoundError`."""
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_node(self, node_id: NodeId) -> Node | None:
        return self._nodes.get(node_id)

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        return target in self._out.get(source, {})

    def get_edge(self, source: NodeId, target: NodeId) -> Edge | None:
        return self._out.get(source, {}).get(target)

    def edge_weight(self, source: NodeId, target: NodeId) -> float | None:
        edge = self.get_edge(source, target)
        return edge.weight if edge is not None else None

    def nodes(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def node_ids(self) -> Iterator[NodeId]:
        return iter(list(self._nodes))

    def edges(self) -> Iterator[Edge]:
        """Итерировать рёбра; неориентированное ребро выдаётся один раз."""
        for source, targets in self._out.items():
            for edge in targets.values():
                if self._is_primary(source, edge):
                    yield edge

    def neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        """Исходящие соседи (для неориентированного графа все соседи)."""
        return iter(list(self._out.get(node_id, {})))

    def out_neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        return self.neighbors(node_id)

    def in_neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        return iter(list(self._in.get(node_id, {})))

    def out_edges(self, node_id: NodeId) -> Iterator[Edge]:
        return iter(list(self._out.get(node_id, {}).values()))

    def in_edges(self, node_id: NodeId) -> Iterator[Edge]:
        return iter(list(self._in.get(node_id, {}).values()))

    def degree(self, node_id: NodeId) -> int:
        if self.is_directed:
            return self.in_degree(node_id) + self.out_degree(node_id)
        return len(self._out.get(node_id, {}))

    def in_degree(self, node_id: NodeId) -> int:
        return len(self._in.get(node_id, {}))

    def out_degree(self, node_id: NodeId) -> int:
        return len(self._out.get(node_id, {}))

    # ------------------------------------------------------------------
    # Внутреннее
    # ------------------------------------------------------------------

    def _store(self, edge: Edge) -> None:
        self._out[edge.source][edge.target] = edge
        if self.is_directed:
            self._in[edge.target][edge.source] = edge
        else:
            self._out[edge.target][edge.source] = edge

    def _is_primary(self, source: NodeId, edge: Edge) -> bool:
        # Неориентированное ребро видно с обеих сторон, учитываем его со стороны source
        return self.is_directed or edge.source == source
