"""
Общие утилиты модулярности для алгоритмов поиска сообществ.

Модулярность разбиения:

    Q = Σ_c [ L_c / m - γ · (D_c / 2m)² ]

где `m` — суммарный вес рёбер, `L_c` — вес рёбер внутри сообщества `c`,
`D_c` — сумма взвешенных степеней его узлов, `γ` — resolution. Это та же
величина, что `(1/2m) Σ_ij [A_ij - γ k_i k_j / 2m] δ(c_i, c_j)`.

Ориентированные графы рассматриваются как неориентированные: веса
встречных рёбер складываются. Петля веса `w` даёт узлу степень `2w`.
"""

from collections.abc import Hashable, Iterable, Mapping

from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "WeightedAdjacency",
    "build_weighted_adjacency",
    "calculate_modularity",
    "communities_from_assignment",
    "neighbor_community_weights",
    "node_weighted_degree",
    "partition_quality",
    "total_edge_weight",
    "weighted_degrees",
]

WeightedAdjacency = dict[Hashable, dict[Hashable, float]]


def build_weighted_adjacency(graph: Graph) -> WeightedAdjacency:
    """Симметричная взвешенная смежность графа; петля хранится как `adj[u][u] = w`."""
    adjacency: WeightedAdjacency = {node_id: {} for node_id in graph.node_ids()}
    for edge in graph.edges():
        source, target, weight = edge.source, edge.target, edge.weight
        adjacency[source][target] = adjacency[source].get(target, 0.0) + weight
        if source != target:
            adjacency[target][source] = adjacency[target].get(source, 0.0) + weight
    return adjacency


def weighted_degrees(adjacency: WeightedAdjacency) -> dict[Hashable, float]:
    degrees: dict[Hashable, float] = {}
    for node, neighbors in adjacency.items():
        degrees[node] = sum(2.0 * weight if other == node else weight for other, weight in neighbors.items())
    return degrees


def total_edge_weight(graph: Graph | WeightedAdjacency) -> float:
    """Суммарный вес рёбер `m` (каждое неориентированное ребро один раз)."""
    if isinstance(graph, Graph):
        return sum(edge.weight for edge in graph.edges())
    return sum(weighted_degrees(graph).values()) / 2.0


def node_weighted_degree(graph: Graph | WeightedAdjacency, node_id: Hashable) -> float:
    """Взвешенная степень узла `k_i`."""
    adjacency = build_weighted_adjacency(graph) if isinstance(graph, Graph) else graph
    neighbors = adjacency.get(node_id, {})
    return sum(2.0 * weight if other == node_id else weight for other, weight in neighbors.items())


def neighbor_community_weights(
    adjacency: WeightedAdjacency,
    node: Hashable,
    assignment: Mapping[Hashable, Hashable],
) -> dict[Hashable, float]:
    """Вес связей узла с каждым соседним сообществом (петли не учитываются)."""
    weights: dict[Hashable, float] = {}
    for neighbor, weight in adjacency[node].items():
        if neighbor == node:
            continue
        community = assignment[neighbor]
        weights[community] = weights.get(community, 0.0) + weight
    return weights


def partition_quality(
    adjacency: WeightedAdjacency,
    assignment: Mapping[Hashable, Hashable],
    resolution: float = 1.0,
    degrees: Mapping[Hashable, float] | None = None,
) -> float:
    """Модулярность разбиения, заданного отображением `узел -> сообщество`."""
    degrees = degrees if degrees is not None else weighted_degrees(adjacency)
    two_m = sum(degrees.values())
    if two_m == 0:
        return 0.0
    m = two_m / 2.0

    internal: dict[Hashable, float] = {}
    totals: dict[Hashable, float] = {}
    for node, neighbors in adjacency.items():
        community = assignment[node]
        totals[community] = totals.get(community, 0.0) + degrees[node]
        for neighbor, weight in neighbors.items():
            if assignment[neighbor] != community:
                continue
            # Внутреннее ребро встречается дважды, петля один раз
            share = weight if neighbor == node else weight / 2.0
            internal[community] = internal.get(community, 0.0) + share

    return sum(internal.get(c, 0.0) / m - resolution * (totals[c] / two_m) ** 2 for c in totals)


def calculate_modularity(
    graph: Graph,
    communities: Iterable[Iterable[NodeId]] | Mapping[NodeId, Hashable],
    resolution: float = 1.0,
) -> float:
    """
    Модулярность разбиения графа.

    Args:
        graph: Граф.
        communities: Список сообществ или отображение `узел -> метка`.
            Узлы, не вошедшие ни в одно сообщество, считаются одиночками.
        resolution: Параметр разрешения `γ`.

    """
    if isinstance(communities, Mapping):
        assignment: dict[Hashable, Hashable] = dict(communities)
    else:
        assignment = {}
        for label, members in enumerate(communities):
            for node_id in members:
                assignment[node_id] = label

    adjacency = build_weighted_adjacency(graph)
    for node_id in adjacency:
        if node_id not in assignment:
            assignment[node_id] = ("singleton", node_id)
    return partition_quality(adjacency, assignment, resolution)


def communities_from_assignment(
    assignment: Mapping[NodeId, Hashable],
    order: Iterable[NodeId] | None = None,
) -> list[list[NodeId]]:
    """Сгруппировать узлы по меткам в порядке первого появления."""
    groups: dict[Hashable, list[NodeId]] = {}
    for node_id in order if order is not None else assignment:
        groups.setdefault(assignment[node_id], []).append(node_id)
    return list(groups.values())
