"""
Минимальное остовное дерево: Краскал (union-find) и Прим (очередь с приоритетом).

Оба алгоритма работают только с неориентированными графами и требуют
связности. Остовный лес несвязного графа строит `minimum_spanning_forest`.
"""

from itertools import count
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from graph_engine.config.logging import logger
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.graph import Edge, Graph
from graph_engine.core.types import NodeId
from graph_engine.utils.priority_queue import PriorityQueue
from graph_engine.utils.union_find import UnionFind

__all__ = [
    "MSTResult",
    "kruskal_mst",
    "minimum_spanning_forest",
    "minimum_spanning_tree",
    "prim_mst",
]


class MSTResult(BaseModel):
    """Рёбра остова и их суммарный вес."""

    model_config = ConfigDict(frozen=True)

    edges: list[Edge] = Field(default_factory=list)
    total_weight: float = 0.0


def _kruskal_edges(graph: Graph) -> list[Edge]:
    """Рёбра остовного леса в порядке выбора."""
    union_find = UnionFind(graph.node_ids())
    needed = graph.node_count - 1
    selected: list[Edge] = []

    for edge in sorted(graph.edges(), key=lambda item: item.weight):
        if len(selected) >= needed:
            break
        if union_find.union(edge.source, edge.target):
            selected.append(edge)
    return selected


def kruskal_mst(graph: Graph) -> MSTResult:
    """
    Алгоритм Краскала.

    Рёбра сортируются по весу устойчивой сортировкой, поэтому при равных
    весах выигрывает ребро, добавленное в граф раньше. Петли пропускаются.

    Raises:
        InvalidTopologyError: граф ориентированный или несвязный.

    """
    if graph.is_directed:
        raise InvalidTopologyError("Kruskal's algorithm requires an undirected graph")

    selected = _kruskal_edges(graph)
    if graph.node_count > 0 and len(selected) < graph.node_count - 1:
        raise InvalidTopologyError("Graph is not connected")

    total = sum(edge.weight for edge in selected)
    logger.debug("Kruskal selected {} edges, total weight {}", len(selected), total)
    return MSTResult(edges=selected, total_weight=total)


def minimum_spanning_forest(graph: Graph) -> MSTResult:
    """Остовный лес по Краскалу: по дереву на каждую компоненту связности."""
    if graph.is_directed:
        raise InvalidTopologyError("Kruskal's algorithm requires an undirected graph")

    selected = _kruskal_edges(graph)
    total = sum(edge.weight for edge in selected)
    logger.debug("Spanning forest has {} edges, total weight {}", len(selected), total)
    return MSTResult(edges=selected, total_weight=total)


def prim_mst(graph: Graph, start: NodeId | None = None) -> MSTResult:
    """
    Алгоритм Прима от узла `start` (по умолчанию первый узел графа).

    Raises:
        InvalidTopologyError: граф ориентированный или несвязный.
        NodeNotFoundError: `start` отсутствует в графе.

    """
    if graph.is_directed:
        raise InvalidTopologyError("Prim's algorithm requires an undirected graph")
    if graph.node_count == 0:
        return MSTResult()

    if start is None:
        start = next(graph.node_ids())
    elif not graph.has_node(start):
        raise NodeNotFoundError(start, f"Start node {start} not found in graph")

    visited: set[NodeId] = {start}
    selected: list[Edge] = []
    total = 0.0
    order = count()
    queue: PriorityQueue[tuple[NodeId, Edge]] = PriorityQueue()

    def push_edges(node: NodeId) -> None:
        for edge in graph.out_edges(node):
            other = edge.target if edge.source == node else edge.source
            if other not in visited:
                queue.enqueue((other, edge), (edge.weight, next(order)))

    push_edges(start)
    while not queue.is_empty():
        other, edge = queue.dequeue()
        if other in visited:
            continue
        visited.add(other)
        selected.append(edge)
        total += edge.weight
        push_edges(other)

    if len(visited) != graph.node_count:
        raise InvalidTopologyError("Graph is not connected")

    logger.debug("Prim selected {} edges, total weight {}", len(selected), total)
    return MSTResult(edges=selected, total_weight=total)


def minimum_spanning_tree(
    graph: Graph,
    algorithm: Literal["kruskal", "prim"] = "kruskal",
) -> MSTResult:
    if algorithm == "kruskal":
        return kruskal_mst(graph)
    if algorithm == "prim":
        return prim_mst(graph)
    raise InvalidTopologyError(f"Unknown MST algorithm: {algorithm}")
