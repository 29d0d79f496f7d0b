"""
Центральности по кратчайшим путям: степенная, близость, посредничество.

Близость и посредничество считаются повторными проходами от каждого узла:
BFS для невзвешенного графа, Дейкстра для взвешенного (`weighted=True`).
Все функции возвращают `{узел: значение}`.
"""

import heapq
import math
from enum import Enum
from itertools import count

from graph_engine.algorithms.traversal import bfs_distances, bfs_with_path_counting
from graph_engine.config.optimization import OptimizationPolicy
from graph_engine.core.adapter import resolve_representation
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = [
    "CentralityMode",
    "betweenness_centrality",
    "closeness_centrality",
    "degree_centrality",
    "edge_betweenness_centrality",
    "edge_betweenness_pairs",
    "node_betweenness_centrality",
    "node_closeness_centrality",
    "node_degree_centrality",
]


class CentralityMode(str, Enum):
    """Какие рёбра учитывать в степенной центральности."""

    IN = "in"
    OUT = "out"
    TOTAL = "total"


def _require_node(graph: ReadableGraph, node_id: NodeId) -> None:
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id)


def _weight(graph: ReadableGraph, source: NodeId, target: NodeId) -> float:
    weight = graph.edge_weight(source, target)
    return 1.0 if weight is None else weight


# =============================================================================
# DEGREE
# =============================================================================


def degree_centrality(
    graph: ReadableGraph,
    *,
    mode: CentralityMode | str = CentralityMode.TOTAL,
    normalized: bool = False,
) -> dict[NodeId, float]:
    """
    Степенная центральность.

    Для неориентированного графа режим не важен: считается степень узла.
    При `normalized=True` значения делятся на `n - 1`.
    """
    mode = CentralityMode(mode)
    out_degree = {node: graph.out_degree(node) for node in graph.node_ids()}
    if graph.is_directed and mode is not CentralityMode.OUT:
        in_degree = dict.fromkeys(out_degree, 0)
        for node in out_degree:
            for neighbor in graph.neighbors(node):
                in_degree[neighbor] += 1
        if mode is CentralityMode.IN:
            degrees = in_degree
        else:
            degrees = {node: in_degree[node] + out_degree[node] for node in out_degree}
    else:
        degrees = out_degree

    n = len(degrees)
    scale = 1.0 / (n - 1) if normalized and n > 1 else 1.0
    return {node: degree * scale for node, degree in degrees.items()}


def node_degree_centrality(
    graph: ReadableGraph,
    node_id: NodeId,
    *,
    mode: CentralityMode | str = CentralityMode.TOTAL,
    normalized: bool = False,
) -> float:
    _require_node(graph, node_id)
    return degree_centrality(graph, mode=mode, normalized=normalized)[node_id]


# =============================================================================
# CLOSENESS
# =============================================================================


def _weighted_distances(graph: ReadableGraph, source: NodeId, cutoff: float | None = None) -> dict[NodeId, float]:
    distances: dict[NodeId, float] = {}
    order = count()
    heap: list[tuple[float, int, NodeId]] = [(0.0, next(order), source)]
    while heap:
        distance, _, node = heapq.heappop(heap)
        if node in distances:
            continue
        distances[node] = distance
        for neighbor in graph.neighbors(node):
            if neighbor in distances:
                continue
            weight = _weight(graph, node, neighbor)
            if weight < 0:
                raise InvalidTopologyError("Weighted closeness centrality does not support negative edge weights")
            candidate = distance + weight
            if cutoff is None or candidate <= cutoff:
                heapq.heappush(heap, (candidate, next(order), neighbor))
    return distances


def _closeness_from(
    distances: dict[NodeId, float],
    source: NodeId,
    n: int,
    *,
    normalized: bool,
    harmonic: bool,
) -> float:
    others = [distance for node, distance in distances.items() if node != source]
    if not others:
        return 0.0

    if harmonic:
        total = sum(1.0 / distance for distance in others if distance > 0)
        return total / (n - 1) if normalized and n > 1 else total

    total_distance = sum(others)
    if total_distance <= 0:
        return 0.0
    closeness = 1.0 / total_distance
    if normalized and n > 1:
        closeness *= len(others) / (n - 1)
    return closeness


def closeness_centrality(
    graph: ReadableGraph,
    *,
    normalized: bool = False,
    harmonic: bool = False,
    cutoff: float | None = None,
    weighted: bool = False,
    policy: OptimizationPolicy | None = None,
) -> dict[NodeId, float]:
    """
    Центральность по близости.

    Классическая форма: `1 / Σ d(v, u)` по достижимым узлам; при
    `normalized=True` умножается на долю достижимых `r / (n - 1)`.
    Гармоническая форма: `Σ 1 / d(v, u)`, нормируется делением на `n - 1`.
    Узел без достижимых соседей получает 0.
    """
    graph = resolve_representation(graph, policy)
    n = graph.node_count
    result: dict[NodeId, float] = {}
    for node in graph.node_ids():
        if weighted:
            distances = _weighted_distances(graph, node, cutoff)
        else:
            limit = int(cutoff) if cutoff is not None else None
            distances = {k: float(v) for k, v in bfs_distances(graph, node, cutoff=limit).items()}
        result[node] = _closeness_from(distances, node, n, normalized=normalized, harmonic=harmonic)
    return result


def node_closeness_centrality(
    graph: ReadableGraph,
    node_id: NodeId,
    *,
    normalized: bool = False,
    harmonic: bool = False,
    cutoff: float | None = None,
    weighted: bool = False,
) -> float:
    """Близость одного узла без расчёта по всему графу."""
    _require_node(graph, node_id)
    if weighted:
        distances = _weighted_distances(graph, node_id, cutoff)
    else:
        limit = int(cutoff) if cutoff is not None else None
        distances = {k: float(v) for k, v in bfs_distances(graph, node_id, cutoff=limit).items()}
    return _closeness_from(distances, node_id, graph.node_count, normalized=normalized, harmonic=harmonic)


# =============================================================================
# BETWEENNESS
# =============================================================================


def _weighted_path_counting(
    graph: ReadableGraph,
    source: NodeId,
) -> tuple[list[NodeId], dict[NodeId, list[NodeId]], dict[NodeId, float]]:
    """Дейкстра с подсчётом числа кратчайших путей (взвешенный Брандес)."""
    stack: list[NodeId] = []
    predecessors: dict[NodeId, list[NodeId]] = {source: []}
    sigma: dict[NodeId, float] = {source: 1.0}
    seen: dict[NodeId, float] = {source: 0.0}
    final: set[NodeId] = set()
    order = count()
    heap: list[tuple[float, int, NodeId]] = [(0.0, next(order), source)]

    while heap:
        distance, _, node = heapq.heappop(heap)
        if node in final:
            continue
        final.add(node)
        stack.append(node)
        for neighbor in graph.neighbors(node):
            candidate = distance + _weight(graph, node, neighbor)
            known = seen.get(neighbor)
            if neighbor not in final and (known is None or candidate < known):
                seen[neighbor] = candidate
                sigma[neighbor] = sigma[node]
                predecessors[neighbor] = [node]
                heapq.heappush(heap, (candidate, next(order), neighbor))
            elif known is not None and math.isclose(candidate, known) and neighbor not in final:
                sigma[neighbor] += sigma[node]
                predecessors[neighbor].append(node)

    return stack, predecessors, sigma


def _brandes(
    graph: ReadableGraph,
    *,
    weighted: bool,
    endpoints: bool,
    with_edges: bool,
) -> tuple[dict[NodeId, float], dict[tuple[NodeId, NodeId], float]]:
    nodes = list(graph.node_ids())
    node_scores: dict[NodeId, float] = dict.fromkeys(nodes, 0.0)
    edge_scores: dict[tuple[NodeId, NodeId], float] = {}

    for source in nodes:
        if weighted:
            stack, predecessors, sigma = _weighted_path_counting(graph, source)
        else:
            counting = bfs_with_path_counting(graph, source)
            stack, predecessors, sigma = counting.stack, counting.predecessors, counting.sigma

        if endpoints:
            node_scores[source] += len(stack) - 1

        delta: dict[NodeId, float] = dict.fromkeys(stack, 0.0)
        for node in reversed(stack):
            coefficient = (1.0 + delta[node]) / sigma[node]
            for predecessor in predecessors[node]:
                contribution = sigma[predecessor] * coefficient
                delta[predecessor] += contribution
                if with_edges:
                    edge_scores[(predecessor, node)] = edge_scores.get((predecessor, node), 0.0) + contribution
            if node != source:
                node_scores[node] += delta[node] + (1.0 if endpoints else 0.0)

    return node_scores, edge_scores


def betweenness_centrality(
    graph: ReadableGraph,
    *,
    normalized: bool = False,
    endpoints: bool = False,
    weighted: bool = False,
    policy: OptimizationPolicy | None = None,
) -> dict[NodeId, float]:
    """
    Центральность по посредничеству (алгоритм Брандеса).

    Для неориентированного графа значения делятся на 2. Нормировка делит
    на `(n-1)(n-2)` для ориентированного и `(n-1)(n-2)/2` для
    неориентированного графа, если множитель положителен.
    """
    graph = resolve_representation(graph, policy)
    scores, _ = _brandes(graph, weighted=weighted, endpoints=endpoints, with_edges=False)

    n = graph.node_count
    if not graph.is_directed:
        scores = {node: value / 2.0 for node, value in scores.items()}
    if normalized:
        factor = (n - 1) * (n - 2)
        if not graph.is_directed:
            factor /= 2.0
        if factor > 0:
            scores = {node: value / factor for node, value in scores.items()}
    return scores


def node_betweenness_centrality(
    graph: ReadableGraph,
    node_id: NodeId,
    *,
    normalized: bool = False,
    endpoints: bool = False,
    weighted: bool = False,
) -> float:
    _require_node(graph, node_id)
    return betweenness_centrality(graph, normalized=normalized, endpoints=endpoints, weighted=weighted)[node_id]


def edge_betweenness_pairs(
    graph: ReadableGraph,
    *,
    normalized: bool = False,
    weighted: bool = False,
) -> dict[tuple[NodeId, NodeId], float]:
    """
    Посредничество рёбер по парам `(u, v)`.

    Для неориентированного графа пара ориентирована так, как ребро впервые
    встречается при обходе узлов в порядке хранения.
    """
    _, raw = _brandes(graph, weighted=weighted, endpoints=False, with_edges=True)

    scores: dict[tuple[NodeId, NodeId], float] = {}
    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            if node == neighbor:
                continue
            if not graph.is_directed and (neighbor, node) in scores:
                continue
            value = raw.get((node, neighbor), 0.0)
            if not graph.is_directed:
                value = (value + raw.get((neighbor, node), 0.0)) / 2.0
            scores[(node, neighbor)] = value

    if normalized:
        n = graph.node_count
        factor = n * (n - 1)
        if not graph.is_directed:
            factor /= 2.0
        if factor > 0:
            scores = {pair: value / factor for pair, value in scores.items()}
    return scores


def edge_betweenness_centrality(
    graph: ReadableGraph,
    *,
    normalized: bool = False,
    weighted: bool = False,
) -> dict[str, float]:
    """Посредничество рёбер с ключами вида `"u-v"`."""
    return {
        f"{source}-{target}": value
        for (source, target), value in edge_betweenness_pairs(graph, normalized=normalized, weighted=weighted).items()
    }
