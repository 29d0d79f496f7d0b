"""
Максимальный поток и минимальные разрезы.

Ёмкостью ребра служит его вес. Неориентированное ребро даёт ёмкость в
обе стороны. Отсутствующий исток или сток не ошибка: результат пустой
с нулевым потоком.
"""

from collections import deque
from collections.abc import Iterable
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from graph_engine.config.logging import logger
from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "BipartiteFlowNetwork",
    "CutEdge",
    "MaxFlowResult",
    "MinCut",
    "MinCutResult",
    "create_bipartite_flow_network",
    "edmonds_karp",
    "ford_fulkerson",
    "min_st_cut",
    "stoer_wagner_min_cut",
]

_EPSILON = 1e-12

Capacities = dict[NodeId, dict[NodeId, float]]


class MinCut(BaseModel):
    """Разбиение узлов по разрезу и насыщенные рёбра между частями."""

    model_config = ConfigDict(frozen=True)

    source: set[NodeId] = Field(default_factory=set)
    sink: set[NodeId] = Field(default_factory=set)
    edges: list[tuple[NodeId, NodeId]] = Field(default_factory=list)


class MaxFlowResult(BaseModel):
    """Величина потока, поток по рёбрам `flow[u][v] > 0` и минимальный разрез."""

    model_config = ConfigDict(frozen=True)

    max_flow: float = 0.0
    flow: dict[NodeId, dict[NodeId, float]] = Field(default_factory=dict)
    min_cut: MinCut | None = None


class CutEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: NodeId
    target: NodeId
    weight: float


class MinCutResult(BaseModel):
    """Значение разреза, две части и пересекающие разрез рёбра."""

    model_config = ConfigDict(frozen=True)

    cut_value: float = 0.0
    partition1: set[NodeId] = Field(default_factory=set)
    partition2: set[NodeId] = Field(default_factory=set)
    cut_edges: list[CutEdge] = Field(default_factory=list)


class BipartiteFlowNetwork(NamedTuple):
    graph: Graph
    source: NodeId
    sink: NodeId


def _capacities(graph: Graph) -> Capacities:
    capacities: Capacities = {node_id: {} for node_id in graph.node_ids()}
    for edge in graph.edges():
        if edge.source == edge.target:
            continue
        capacities[edge.source][edge.target] = capacities[edge.source].get(edge.target, 0.0) + edge.weight
        if not graph.is_directed:
            capacities[edge.target][edge.source] = capacities[edge.target].get(edge.source, 0.0) + edge.weight
    return capacities


def _residual_neighbors(capacities: Capacities) -> dict[NodeId, list[NodeId]]:
    """Соседи в остаточной сети: прямые рёбра и обратные к ним."""
    neighbors: dict[NodeId, list[NodeId]] = {node: list(targets) for node, targets in capacities.items()}
    for node, targets in capacities.items():
        for target in targets:
            if node not in capacities[target]:
                neighbors[target].append(node)
    return neighbors


def _dfs_path(
    neighbors: dict[NodeId, list[NodeId]],
    residual: dict[tuple[NodeId, NodeId], float],
    source: NodeId,
    sink: NodeId,
) -> dict[NodeId, NodeId] | None:
    parents: dict[NodeId, NodeId] = {}
    visited = {source}
    stack = [source]
    while stack:
        node = stack.pop()
        if node == sink:
            return parents
        for neighbor in neighbors[node]:
            if neighbor not in visited and residual.get((node, neighbor), 0.0) > _EPSILON:
                visited.add(neighbor)
                parents[neighbor] = node
                stack.append(neighbor)
    return None


def _bfs_path(
    neighbors: dict[NodeId, list[NodeId]],
    residual: dict[tuple[NodeId, NodeId], float],
    source: NodeId,
    sink: NodeId,
) -> dict[NodeId, NodeId] | None:
    parents: dict[NodeId, NodeId] = {}
    visited = {source}
    queue: deque[NodeId] = deque([source])
    while queue:
        node = queue.popleft()
        for neighbor in neighbors[node]:
            if neighbor not in visited and residual.get((node, neighbor), 0.0) > _EPSILON:
                visited.add(neighbor)
                parents[neighbor] = node
                if neighbor == sink:
                    return parents
                queue.append(neighbor)
    return None


def _max_flow(graph: Graph, source: NodeId, sink: NodeId, *, breadth_first: bool) -> MaxFlowResult:
    if not graph.has_node(source) or not graph.has_node(sink):
        return MaxFlowResult()

    capacities = _capacities(graph)
    neighbors = _residual_neighbors(capacities)
    residual: dict[tuple[NodeId, NodeId], float] = {}
    for node, targets in capacities.items():
        for target, capacity in targets.items():
            residual[(node, target)] = capacity

    find_path = _bfs_path if breadth_first else _dfs_path
    total = 0.0
    augmentations = 0
    while source != sink:
        parents = find_path(neighbors, residual, source, sink)
        if parents is None:
            break

        bottleneck = float("inf")
        node = sink
        while node != source:
            parent = parents[node]
            bottleneck = min(bottleneck, residual[(parent, node)])
            node = parent

        node = sink
        while node != source:
            parent = parents[node]
            residual[(parent, node)] -= bottleneck
            residual[(node, parent)] = residual.get((node, parent), 0.0) + bottleneck
            node = parent

        total += bottleneck
        augmentations += 1

    logger.debug("Max flow {} found with {} augmenting paths", total, augmentations)

    flow: dict[NodeId, dict[NodeId, float]] = {}
    for node, targets in capacities.items():
        for target, capacity in targets.items():
            # Поток антисимметричен: отрицательное значение значит поток в обратную сторону
            net = capacity - residual[(node, target)]
            if net > _EPSILON:
                flow.setdefault(node, {})[target] = net

    reachable = _reachable(neighbors, residual, source)
    cut_edges = [
        (node, target)
        for node, targets in capacities.items()
        if node in reachable
        for target in targets
        if target not in reachable
    ]
    min_cut = MinCut(source=reachable, sink=set(capacities) - reachable, edges=cut_edges)
    return MaxFlowResult(max_flow=total, flow=flow, min_cut=min_cut)


def _reachable(
    neighbors: dict[NodeId, list[NodeId]],
    residual: dict[tuple[NodeId, NodeId], float],
    source: NodeId,
) -> set[NodeId]:
    reachable = {source}
    queue: deque[NodeId] = deque([source])
    while queue:
        node = queue.popleft()
        for neighbor in neighbors[node]:
            if neighbor not in reachable and residual.get((node, neighbor), 0.0) > _EPSILON:
                reachable.add(neighbor)
                queue.append(neighbor)
    return reachable


def ford_fulkerson(graph: Graph, source: NodeId, sink: NodeId) -> MaxFlowResult:
    """Максимальный поток Форда-Фалкерсона (увеличивающие пути поиском в глубину)."""
    return _max_flow(graph, source, sink, breadth_first=False)


def edmonds_karp(graph: Graph, source: NodeId, sink: NodeId) -> MaxFlowResult:
    """Максимальный поток Эдмондса-Карпа (кратчайшие увеличивающие пути, O(V·E²))."""
    return _max_flow(graph, source, sink, breadth_first=True)


def min_st_cut(graph: Graph, source: NodeId, sink: NodeId) -> MinCutResult:
    """
    Минимальный s-t разрез по теореме о максимальном потоке.

    Первая часть — узлы, достижимые из истока в остаточной сети.
    """
    if not graph.has_node(source) or not graph.has_node(sink):
        return MinCutResult()

    result = edmonds_karp(graph, source, sink)
    cut = result.min_cut
    capacities = _capacities(graph)
    cut_edges = [CutEdge(source=u, target=v, weight=capacities[u][v]) for u, v in cut.edges]
    return MinCutResult(
        cut_value=result.max_flow,
        partition1=set(cut.source),
        partition2=set(cut.sink),
        cut_edges=cut_edges,
    )


def stoer_wagner_min_cut(graph: Graph) -> MinCutResult:
    """
    Глобальный минимальный разрез Штор-Вагнера.

    Ориентированные рёбра симметризуются, петли игнорируются. Для графа
    меньше чем из двух узлов разрез равен 0, а вторая часть пуста.
    """
    nodes = list(graph.node_ids())
    if len(nodes) < 2:
        return MinCutResult(cut_value=0.0, partition1=set(nodes), partition2=set())

    weights: Capacities = {node: {} for node in nodes}
    for edge in graph.edges():
        if edge.source == edge.target:
            continue
        weights[edge.source][edge.target] = weights[edge.source].get(edge.target, 0.0) + edge.weight
        weights[edge.target][edge.source] = weights[edge.target].get(edge.source, 0.0) + edge.weight

    groups: dict[NodeId, set[NodeId]] = {node: {node} for node in nodes}
    active = list(nodes)
    best_value = float("inf")
    best_group: set[NodeId] = set()

    while len(active) > 1:
        # Фаза: добавлять самый сильно связанный с набором узел
        attached = dict.fromkeys(active, 0.0)
        remaining = list(active)
        previous = last = remaining.pop(0)
        for neighbor, weight in weights[last].items():
            attached[neighbor] += weight
        cut_of_phase = 0.0
        while remaining:
            candidate = max(remaining, key=lambda node: attached[node])
            remaining.remove(candidate)
            previous, last = last, candidate
            cut_of_phase = attached[candidate]
            for neighbor, weight in weights[candidate].items():
                if neighbor in attached:
                    attached[neighbor] += weight

        if cut_of_phase < best_value:
            best_value = cut_of_phase
            best_group = set(groups[last])

        # Слить последний узел фазы с предпоследним
        groups[previous] |= groups.pop(last)
        for neighbor, weight in weights.pop(last).items():
            if neighbor == previous:
                weights[previous].pop(last, None)
                continue
            weights[neighbor].pop(last, None)
            weights[previous][neighbor] = weights[previous].get(neighbor, 0.0) + weight
            weights[neighbor][previous] = weights[neighbor].get(previous, 0.0) + weight
        active.remove(last)

    other = set(nodes) - best_group
    cut_edges = [
        CutEdge(source=edge.source, target=edge.target, weight=edge.weight)
        for edge in graph.edges()
        if (edge.source in best_group) != (edge.target in best_group)
    ]
    return MinCutResult(cut_value=best_value, partition1=best_group, partition2=other, cut_edges=cut_edges)


def create_bipartite_flow_network(
    left_nodes: Iterable[NodeId],
    right_nodes: Iterable[NodeId],
    edges: Iterable[tuple[NodeId, NodeId]],
) -> BipartiteFlowNetwork:
    """
    Сеть для поиска паросочетания потоком: `__source__ → left → right → __sink__`,
    все ёмкости равны 1.
    """
    source, sink = "__source__", "__sink__"
    network = Graph(directed=True, allow_self_loops=False)
    network.add_node(source)
    network.add_node(sink)
    for left in left_nodes:
        network.add_edge(source, left, 1.0)
    for left, right in edges:
        network.add_edge(left, right, 1.0)
    for right in right_nodes:
        network.add_edge(right, sink, 1.0)
    return BipartiteFlowNetwork(network, source, sink)
