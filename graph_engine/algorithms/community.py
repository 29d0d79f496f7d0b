"""
Поиск сообществ: Louvain, Leiden, Girvan-Newman и распространение меток.

Louvain и Leiden работают на взвешенной симметричной смежности из
`graph_engine.algorithms.modularity`: ориентированный граф
рассматривается как неориентированный, петля веса `w` даёт степень `2w`.
Прирост модулярности при переносе узла `i` в сообщество `C`:

    ΔQ ∝ k_i,in(C) - γ · Σ_tot(C) · k_i / 2m

Узлы на каждом уровне агрегации перенумеровываются целыми числами.
"""

import random
from collections.abc import Hashable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from graph_engine.algorithms.centrality import edge_betweenness_pairs
from graph_engine.algorithms.components import connected_components, weakly_connected_components
from graph_engine.algorithms.modularity import (
    WeightedAdjacency,
    build_weighted_adjacency,
    calculate_modularity,
    communities_from_assignment,
    neighbor_community_weights,
    partition_quality,
    weighted_degrees,
)
from graph_engine.config.logging import logger
from graph_engine.core.errors import InvalidTopologyError
from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "CommunityResult",
    "LabelPropagationResult",
    "girvan_newman",
    "label_propagation",
    "label_propagation_semi_supervised",
    "leiden",
    "louvain",
]

_GAIN_EPSILON = 1e-12


class CommunityResult(BaseModel):
    """Разбиение на сообщества с модулярностью и числом итераций."""

    model_config = ConfigDict(frozen=True)

    communities: list[list[NodeId]] = Field(default_factory=list)
    modularity: float = 0.0
    iterations: int = 0

    @property
    def num_communities(self) -> int:
        return len(self.communities)

    def get_node_community(self, node_id: NodeId) -> int | None:
        """Номер сообщества узла или `None`, если узел не попал в разбиение."""
        for index, members in enumerate(self.communities):
            if node_id in members:
                return index
        return None

    def get_community_sizes(self) -> list[int]:
        return [len(members) for members in self.communities]


class LabelPropagationResult(BaseModel):
    """Метки сообществ `узел -> номер` после распространения меток."""

    model_config = ConfigDict(frozen=True)

    communities: dict[NodeId, int] = Field(default_factory=dict)
    iterations: int = 0
    converged: bool = False


def _singletons(graph: Graph) -> CommunityResult:
    return CommunityResult(communities=[[node_id] for node_id in graph.node_ids()], modularity=0.0, iterations=0)


# =============================================================================
# LOCAL MOVING / AGGREGATION
# =============================================================================


def _local_moving(
    adjacency: WeightedAdjacency,
    assignment: dict[Hashable, Hashable],
    *,
    resolution: float,
    order: list[Hashable],
    max_passes: int,
) -> bool:
    """
    Жадно переносить узлы в соседние сообщества, пока модулярность растёт.

    `assignment` меняется на месте. Возвращает `True`, если был хотя бы
    один перенос.
    """
    degrees = weighted_degrees(adjacency)
    two_m = sum(degrees.values())
    totals: dict[Hashable, float] = {}
    for node, community in assignment.items():
        totals[community] = totals.get(community, 0.0) + degrees[node]

    improved = False
    for _ in range(max_passes):
        moved = False
        for node in order:
            current = assignment[node]
            k_i = degrees[node]
            links = neighbor_community_weights(adjacency, node, assignment)
            totals[current] -= k_i

            best = current
            best_gain = links.get(current, 0.0) - resolution * totals[current] * k_i / two_m
            for community, weight in links.items():
                gain = weight - resolution * totals[community] * k_i / two_m
                if gain > best_gain + _GAIN_EPSILON:
                    best, best_gain = community, gain

            totals[best] = totals.get(best, 0.0) + k_i
            if best != current:
                assignment[node] = best
                moved = improved = True
        if not moved:
            break
    return improved


def _relabel(assignment: Mapping[Hashable, Hashable]) -> dict[Hashable, int]:
    labels: dict[Hashable, int] = {}
    for community in assignment.values():
        if community not in labels:
            labels[community] = len(labels)
    return {node: labels[community] for node, community in assignment.items()}


def _aggregate(adjacency: WeightedAdjacency, assignment: Mapping[Hashable, int]) -> WeightedAdjacency:
    """Свернуть сообщества в узлы; внутренний вес становится петлёй."""
    aggregated: WeightedAdjacency = {community: {} for community in set(assignment.values())}
    for node, neighbors in adjacency.items():
        source = assignment[node]
        for neighbor, weight in neighbors.items():
            target = assignment[neighbor]
            if source == target:
                # Внутреннее ребро встречается с обеих сторон, петля один раз
                share = weight if neighbor == node else weight / 2.0
                aggregated[source][source] = aggregated[source].get(source, 0.0) + share
            else:
                aggregated[source][target] = aggregated[source].get(target, 0.0) + weight
    return aggregated


# =============================================================================
# LOUVAIN
# =============================================================================


def louvain(
    graph: Graph,
    *,
    resolution: float = 1.0,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
) -> CommunityResult:
    """
    Метод Louvain: локальные переносы узлов и агрегация сообществ.

    Args:
        graph: Граф.
        resolution: Параметр разрешения `γ`; больше `γ` даёт больше сообществ.
        max_iterations: Предел числа уровней агрегации.
        tolerance: Минимальный прирост модулярности для перехода на новый уровень.

    Returns:
        `CommunityResult`, где `iterations` равно числу уровней с переносами.
        Граф без рёбер даёт одиночные сообщества и `iterations=0`.

    """
    adjacency = build_weighted_adjacency(graph)
    if sum(weighted_degrees(adjacency).values()) == 0:
        return _singletons(graph)

    membership: dict[Hashable, Hashable] = {node_id: node_id for node_id in adjacency}
    level = adjacency
    quality = partition_quality(adjacency, membership, resolution)
    iterations = 0

    while iterations < max_iterations:
        assignment: dict[Hashable, Hashable] = {node: node for node in level}
        if not _local_moving(level, assignment, resolution=resolution, order=list(level), max_passes=max_iterations):
            break

        iterations += 1
        relabeled = _relabel(assignment)
        membership = {node_id: relabeled[node] for node_id, node in membership.items()}
        level = _aggregate(level, relabeled)

        new_quality = partition_quality(adjacency, membership, resolution)
        logger.debug("Louvain level {}: {} communities, modularity {:.6f}", iterations, len(level), new_quality)
        gain = new_quality - quality
        quality = new_quality
        if gain < tolerance:
            break

    communities = communities_from_assignment(membership, order=graph.node_ids())
    return CommunityResult(communities=communities, modularity=quality, iterations=iterations)


# =============================================================================
# LEIDEN
# =============================================================================


def _refine(
    adjacency: WeightedAdjacency,
    assignment: Mapping[Hashable, Hashable],
    *,
    resolution: float,
    rng: random.Random,
) -> dict[Hashable, Hashable]:
    """
    Фаза уточнения Leiden.

    Внутри каждого сообщества узлы стартуют одиночками и сливаются только
    с хорошо связанными подсообществами того же сообщества, поэтому
    каждое уточнённое подсообщество связно.
    """
    degrees = weighted_degrees(adjacency)
    two_m = sum(degrees.values())
    refined: dict[Hashable, Hashable] = {node: node for node in adjacency}

    members: dict[Hashable, list[Hashable]] = {}
    for node, community in assignment.items():
        members.setdefault(community, []).append(node)

    for community, nodes in members.items():
        community_total = sum(degrees[node] for node in nodes)
        inside = set(nodes)

        # Вес связей каждого подсообщества с остальной частью сообщества
        external: dict[Hashable, float] = {}
        sub_total: dict[Hashable, float] = {}
        for node in nodes:
            external[node] = sum(w for other, w in adjacency[node].items() if other in inside and other != node)
            sub_total[node] = degrees[node]

        order = list(nodes)
        rng.shuffle(order)
        for node in order:
            if refined[node] != node or sub_total.get(node, 0.0) != degrees[node]:
                continue
            k_i = degrees[node]
            if external[node] < resolution * k_i * (community_total - k_i) / two_m:
                continue

            links: dict[Hashable, float] = {}
            for other, weight in adjacency[node].items():
                if other == node or other not in inside:
                    continue
                links[refined[other]] = links.get(refined[other], 0.0) + weight

            best, best_gain = None, 0.0
            for sub, weight in links.items():
                if sub == node:
                    continue
                sub_weight = sub_total[sub]
                if external[sub] < resolution * sub_weight * (community_total - sub_weight) / two_m:
                    continue
                gain = weight - resolution * sub_weight * k_i / two_m
                if gain > best_gain + _GAIN_EPSILON:
                    best, best_gain = sub, gain
            if best is None:
                continue

            # Связи узла с выбранным подсообществом становятся внутренними
            internal = links[best]
            external[best] = external[best] + external[node] - 2.0 * internal
            sub_total[best] += k_i
            del sub_total[node]
            del external[node]
            for other in adjacency:
                if refined[other] == node:
                    refined[other] = best

    return refined


def leiden(
    graph: Graph,
    *,
    resolution: float = 1.0,
    random_seed: int = 42,
    max_iterations: int = 100,
    threshold: float = 1e-7,
) -> CommunityResult:
    """
    Алгоритм Leiden: локальные переносы, уточнение и агрегация по
    уточнённому разбиению.

    Начальное разбиение агрегированного графа берётся из неуточнённых
    сообществ. Порядок обхода узлов задаётся `random_seed`, поэтому
    результат детерминирован. Алгоритм останавливается, когда уровень не
    меняет разбиение или прирост модулярности меньше `threshold`.
    """
    adjacency = build_weighted_adjacency(graph)
    if not adjacency:
        return CommunityResult()
    if sum(weighted_degrees(adjacency).values()) == 0:
        return _singletons(graph)

    rng = random.Random(random_seed)
    membership: dict[Hashable, Hashable] = {node_id: node_id for node_id in adjacency}
    level = adjacency
    partition: dict[Hashable, Hashable] = {node: node for node in level}
    quality = partition_quality(adjacency, membership, resolution)
    iterations = 0

    while iterations < max_iterations:
        order = list(level)
        rng.shuffle(order)
        moved = _local_moving(level, partition, resolution=resolution, order=order, max_passes=max_iterations)
        refined = _refine(level, partition, resolution=resolution, rng=rng)
        iterations += 1

        if not moved and len(set(refined.values())) == len(level):
            break

        relabeled = _relabel(refined)
        membership = {node_id: relabeled[node] for node_id, node in membership.items()}
        next_partition = {relabeled[node]: partition[node] for node in level}
        level = _aggregate(level, relabeled)
        partition = next_partition

        final = {node_id: partition[node] for node_id, node in membership.items()}
        new_quality = partition_quality(adjacency, final, resolution)
        logger.debug("Leiden level {}: {} aggregate nodes, modularity {:.6f}", iterations, len(level), new_quality)
        gain = new_quality - quality
        quality = new_quality
        if gain < threshold and not moved:
            break

    final = {node_id: partition[node] for node_id, node in membership.items()}
    quality = partition_quality(adjacency, final, resolution)
    communities = communities_from_assignment(final, order=graph.node_ids())
    return CommunityResult(communities=communities, modularity=quality, iterations=iterations)


# =============================================================================
# GIRVAN-NEWMAN
# =============================================================================


def _components(graph: Graph) -> list[list[NodeId]]:
    if graph.is_directed:
        return weakly_connected_components(graph)
    return connected_components(graph)


def girvan_newman(
    graph: Graph,
    *,
    max_communities: int | None = None,
    min_community_size: int = 1,
    max_iterations: int = 100,
) -> list[CommunityResult]:
    """
    Дендрограмма Girvan-Newman.

    Первый уровень — исходные компоненты связности. На каждом шаге
    удаляются все рёбра с максимальным посредничеством (с точностью
    `1e-10`), и компоненты записываются как новый уровень. Модулярность
    уровня считается по исходному графу. Процесс останавливается при
    достижении `max_communities`, когда все сообщества одиночные, или
    когда рёбра закончились.
    """
    if min_community_size < 1:
        raise InvalidTopologyError("min_community_size must be at least 1")

    working = graph.clone()
    dendrogram: list[CommunityResult] = []

    def record(iteration: int) -> list[list[NodeId]]:
        components = _components(working)
        valid = [members for members in components if len(members) >= min_community_size]
        modularity = calculate_modularity(graph, components)
        dendrogram.append(CommunityResult(communities=valid, modularity=modularity, iterations=iteration))
        return valid

    record(0)
    iteration = 0
    while working.edge_count > 0 and iteration < max_iterations:
        iteration += 1
        scores = edge_betweenness_pairs(working)
        if not scores:
            break

        peak = max(scores.values())
        for (source, target), value in scores.items():
            if abs(value - peak) < 1e-10:
                working.remove_edge(source, target)

        valid = record(iteration)
        if max_communities is not None and len(valid) >= max_communities:
            break
        if len(valid) == working.node_count:
            break

    logger.debug("Girvan-Newman produced {} dendrogram levels", len(dendrogram))
    return dendrogram


# =============================================================================
# LABEL PROPAGATION
# =============================================================================


def _label_counts(adjacency: WeightedAdjacency, node: Hashable, labels: Mapping[Hashable, int]) -> dict[int, float]:
    counts: dict[int, float] = {}
    for neighbor, weight in adjacency[node].items():
        if neighbor == node:
            continue
        label = labels[neighbor]
        counts[label] = counts.get(label, 0.0) + weight
    return counts


def _propagate(
    adjacency: WeightedAdjacency,
    labels: dict[Hashable, int],
    movable: list[Hashable],
    *,
    max_iterations: int,
    rng: random.Random,
) -> tuple[int, bool]:
    """
    Асинхронно обновлять метки узлов `movable` в случайном порядке.

    Узел берёт метку с наибольшим суммарным весом соседей; при ничьей
    текущая метка сохраняется, если она среди лучших, иначе выбирается
    случайная из лучших.
    """
    iterations = 0
    converged = False
    while iterations < max_iterations and not converged:
        iterations += 1
        converged = True
        order = list(movable)
        rng.shuffle(order)
        for node in order:
            counts = _label_counts(adjacency, node, labels)
            if not counts:
                continue
            best = max(counts.values())
            candidates = sorted(label for label, weight in counts.items() if weight == best)
            current = labels[node]
            if current in candidates:
                continue
            labels[node] = rng.choice(candidates)
            converged = False
    return iterations, converged


def _renumber(labels: Mapping[Hashable, int]) -> dict[NodeId, int]:
    mapping: dict[int, int] = {}
    for label in labels.values():
        if label not in mapping:
            mapping[label] = len(mapping)
    return {node: mapping[label] for node, label in labels.items()}


def label_propagation(
    graph: Graph,
    *,
    max_iterations: int = 100,
    random_seed: int = 42,
) -> LabelPropagationResult:
    """Распространение меток (Raghavan и др.): каждый узел стартует со своей меткой."""
    adjacency = build_weighted_adjacency(graph)
    if not adjacency:
        return LabelPropagationResult(communities={}, iterations=0, converged=True)

    labels = {node: index for index, node in enumerate(adjacency)}
    iterations, converged = _propagate(
        adjacency,
        labels,
        list(adjacency),
        max_iterations=max_iterations,
        rng=random.Random(random_seed),
    )
    logger.debug("Label propagation finished after {} iterations (converged={})", iterations, converged)
    return LabelPropagationResult(communities=_renumber(labels), iterations=iterations, converged=converged)


def label_propagation_semi_supervised(
    graph: Graph,
    seed_labels: Mapping[NodeId, int],
    *,
    max_iterations: int = 100,
    random_seed: int = 42,
) -> LabelPropagationResult:
    """
    Распространение меток с закреплёнными метками `seed_labels`.

    Закреплённые узлы не меняют метку, остальные получают уникальные метки
    больше максимальной закреплённой. Метки в результате не перенумеровываются.
    """
    adjacency = build_weighted_adjacency(graph)
    if not adjacency:
        return LabelPropagationResult(communities={}, iterations=0, converged=True)

    next_label = max(seed_labels.values(), default=-1) + 1
    labels: dict[Hashable, int] = {}
    for node in adjacency:
        if node in seed_labels:
            labels[node] = seed_labels[node]
        else:
            labels[node] = next_label
            next_label += 1

    movable = [node for node in adjacency if node not in seed_labels]
    iterations, converged = _propagate(
        adjacency,
        labels,
        movable,
        max_iterations=max_iterations,
        rng=random.Random(random_seed),
    )
    return LabelPropagationResult(communities=dict(labels), iterations=iterations, converged=converged)
