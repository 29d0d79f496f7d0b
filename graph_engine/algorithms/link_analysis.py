"""
Итеративные меры: собственный вектор, Katz, PageRank, HITS.

Все меры используют одну схему неподвижной точки: равномерная
инициализация, обновление взвешенной суммой по соседям не более
`max_iterations` раз, досрочная остановка, когда максимальное изменение
по узлам меньше `tolerance`. Невыход на сходимость не является ошибкой:
PageRank и HITS сообщают его в поле `converged`, остальные просто отдают
последнюю оценку.

Обновления пишутся «толчком» по исходящим рёбрам, поэтому годится любой
`ReadableGraph`; неориентированное ребро толкает в обе стороны.
"""

import math
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from graph_engine.config.logging import logger
from graph_engine.config.optimization import OptimizationPolicy
from graph_engine.core.adapter import resolve_representation
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = [
    "HITSResult",
    "PageRankResult",
    "eigenvector_centrality",
    "hits",
    "katz_centrality",
    "node_hits",
    "node_katz_centrality",
    "pagerank",
    "pagerank_centrality",
    "personalized_pagerank",
    "top_pagerank_nodes",
]


class PageRankResult(BaseModel):
    """Ранги PageRank с числом итераций и признаком сходимости."""

    model_config = ConfigDict(frozen=True)

    ranks: dict[NodeId, float] = Field(default_factory=dict)
    iterations: int = 0
    converged: bool = False


class HITSResult(BaseModel):
    """Оценки хабов и авторитетов HITS."""

    model_config = ConfigDict(frozen=True)

    hubs: dict[NodeId, float] = Field(default_factory=dict)
    authorities: dict[NodeId, float] = Field(default_factory=dict)
    iterations: int = 0
    converged: bool = False


def _edge_weight(graph: ReadableGraph, source: NodeId, target: NodeId, weighted: bool) -> float:
    if not weighted:
        return 1.0
    weight = graph.edge_weight(source, target)
    return 1.0 if weight is None else weight


def _max_change(old: Mapping[NodeId, float], new: Mapping[NodeId, float]) -> float:
    return max((abs(new[node] - old[node]) for node in new), default=0.0)


def _min_max(scores: dict[NodeId, float]) -> dict[NodeId, float]:
    """Растянуть значения на `[0, 1]`; одинаковые значения не трогаются."""
    if not scores:
        return scores
    low, high = min(scores.values()), max(scores.values())
    span = high - low
    if span <= 0:
        return scores
    return {node: (value - low) / span for node, value in scores.items()}


# =============================================================================
# EIGENVECTOR / KATZ
# =============================================================================


def eigenvector_centrality(
    graph: ReadableGraph,
    *,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    weighted: bool = False,
    policy: OptimizationPolicy | None = None,
) -> dict[NodeId, float]:
    """
    Центральность по собственному вектору степенным методом.

    Итерация `x <- x + A^T x` с L2-нормировкой: сдвиг на единичную матрицу
    не меняет собственный вектор, но гасит осцилляции на двудольных графах.
    """
    graph = resolve_representation(graph, policy)
    nodes = list(graph.node_ids())
    if not nodes:
        return {}

    scores = dict.fromkeys(nodes, 1.0 / len(nodes))
    for iteration in range(1, max_iterations + 1):
        updated = dict(scores)
        for node in nodes:
            for neighbor in graph.neighbors(node):
                updated[neighbor] += scores[node] * _edge_weight(graph, node, neighbor, weighted)

        norm = math.sqrt(sum(value * value for value in updated.values())) or 1.0
        updated = {node: value / norm for node, value in updated.items()}
        change = _max_change(scores, updated)
        scores = updated
        if change < tolerance:
            logger.debug("Eigenvector centrality converged after {} iterations", iteration)
            break
    else:
        logger.debug("Eigenvector centrality stopped at max_iterations={}", max_iterations)

    return scores


def katz_centrality(
    graph: ReadableGraph,
    *,
    alpha: float = 0.1,
    beta: float = 1.0,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    normalized: bool = False,
    weighted: bool = False,
    policy: OptimizationPolicy | None = None,
) -> dict[NodeId, float]:
    """
    Центральность Katz: `x[v] = alpha * Σ x[u] + beta` по входящим соседям.

    Для неориентированного графа суммируются все соседи. Изолированный
    узел получает ровно `beta`. Сходимость гарантирована при
    `alpha < 1 / λ_max`.

    Args:
        graph: Граф.
        alpha: Коэффициент затухания.
        beta: Базовая центральность каждого узла.
        max_iterations: Предел итераций.
        tolerance: Порог максимального изменения.
        normalized: Растянуть результат на `[0, 1]` (min-max).
        weighted: Учитывать веса рёбер.
        policy: Политика выбора представления.

    """
    graph = resolve_representation(graph, policy)
    nodes = list(graph.node_ids())
    if not nodes:
        return {}

    scores = dict.fromkeys(nodes, beta)
    for iteration in range(1, max_iterations + 1):
        updated = dict.fromkeys(nodes, beta)
        for node in nodes:
            contribution = alpha * scores[node]
            for neighbor in graph.neighbors(node):
                updated[neighbor] += contribution * _edge_weight(graph, node, neighbor, weighted)

        change = _max_change(scores, updated)
        scores = updated
        if change < tolerance:
            logger.debug("Katz centrality converged after {} iterations", iteration)
            break
    else:
        logger.debug("Katz centrality stopped at max_iterations={}", max_iterations)

    return _min_max(scores) if normalized else scores


def node_katz_centrality(
    graph: ReadableGraph,
    node_id: NodeId,
    *,
    alpha: float = 0.1,
    beta: float = 1.0,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    normalized: bool = False,
) -> float:
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id)
    scores = katz_centrality(
        graph,
        alpha=alpha,
        beta=beta,
        max_iterations=max_iterations,
        tolerance=tolerance,
        normalized=normalized,
    )
    return scores[node_id]


# =============================================================================
# PAGERANK
# =============================================================================


def _distribution(nodes: list[NodeId], values: Mapping[NodeId, float] | None) -> dict[NodeId, float]:
    """Распределение вероятностей по узлам; пустое или нулевое → равномерное."""
    uniform = dict.fromkeys(nodes, 1.0 / len(nodes))
    if not values:
        return uniform
    raw = {node: max(float(values.get(node, 0.0)), 0.0) for node in nodes}
    total = sum(raw.values())
    if total <= 0:
        return uniform
    return {node: value / total for node, value in raw.items()}


def pagerank(
    graph: ReadableGraph,
    *,
    damping: float = 0.85,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    weighted: bool = False,
    initial_ranks: Mapping[NodeId, float] | None = None,
    personalization: Mapping[NodeId, float] | None = None,
    policy: OptimizationPolicy | None = None,
) -> PageRankResult:
    """
    PageRank степенным методом.

    Масса висячих узлов (без исходящих рёбер или с нулевым суммарным
    исходящим весом) перераспределяется по вектору телепортации, поэтому
    ранги всегда в сумме дают 1. `initial_ranks` и `personalization`
    нормируются; пустые значения означают равномерное распределение.

    Raises:
        InvalidTopologyError: граф неориентированный или `damping` вне `[0, 1]`.

    """
    if not graph.is_directed:
        raise InvalidTopologyError("PageRank requires a directed graph")
    if not 0.0 <= damping <= 1.0:
        raise InvalidTopologyError("Damping factor must be between 0 and 1")

    graph = resolve_representation(graph, policy)
    nodes = list(graph.node_ids())
    if not nodes:
        return PageRankResult(ranks={}, iterations=0, converged=True)

    teleport = _distribution(nodes, personalization)
    ranks = _distribution(nodes, initial_ranks)

    out_weight: dict[NodeId, float] = {}
    for node in nodes:
        out_weight[node] = sum(_edge_weight(graph, node, neighbor, weighted) for neighbor in graph.neighbors(node))
    dangling = [node for node in nodes if out_weight[node] <= 0]

    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        dangling_mass = sum(ranks[node] for node in dangling)
        updated = {node: (1.0 - damping + damping * dangling_mass) * teleport[node] for node in nodes}
        for node in nodes:
            total = out_weight[node]
            if total <= 0:
                continue
            share = damping * ranks[node] / total
            for neighbor in graph.neighbors(node):
                updated[neighbor] += share * _edge_weight(graph, node, neighbor, weighted)

        change = _max_change(ranks, updated)
        ranks = updated
        if change < tolerance:
            converged = True
            break

    if converged:
        logger.debug("PageRank converged after {} iterations", iterations)
    else:
        logger.debug("PageRank did not converge within {} iterations", max_iterations)
    return PageRankResult(ranks=ranks, iterations=iterations, converged=converged)


def personalized_pagerank(
    graph: ReadableGraph,
    personal_nodes: Iterable[NodeId],
    *,
    damping: float = 0.85,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    weighted: bool = False,
) -> PageRankResult:
    """
    PageRank с телепортацией только в `personal_nodes` (поровну).

    Пустой список даёт обычный PageRank.
    """
    personal = list(personal_nodes)
    for node_id in personal:
        if not graph.has_node(node_id):
            raise NodeNotFoundError(node_id, f"Personal node {node_id} not found in graph")
    personalization = dict.fromkeys(personal, 1.0) if personal else None
    return pagerank(
        graph,
        damping=damping,
        max_iterations=max_iterations,
        tolerance=tolerance,
        weighted=weighted,
        personalization=personalization,
    )


def pagerank_centrality(graph: ReadableGraph, **options) -> dict[NodeId, float]:
    """Ранги PageRank как словарь центральности."""
    return pagerank(graph, **options).ranks


def top_pagerank_nodes(graph: ReadableGraph, k: int, **options) -> list[tuple[NodeId, float]]:
    """`k` узлов с наибольшим рангом по убыванию."""
    if k <= 0:
        return []
    ranks = pagerank(graph, **options).ranks
    return sorted(ranks.items(), key=lambda item: item[1], reverse=True)[:k]


# =============================================================================
# HITS
# =============================================================================


def hits(
    graph: ReadableGraph,
    *,
    max_iterations: int = 100,
    tolerance: float = 1e-8,
    normalized: bool = True,
    policy: OptimizationPolicy | None = None,
) -> HITSResult:
    """
    Хабы и авторитеты Клейнберга.

    `authority[v] = Σ hub[u]` по рёбрам `u → v`, `hub[u] = Σ authority[v]`;
    после каждого шага оба вектора делятся на максимум. При
    `normalized=True` итог нормируется на сумму 1. Неориентированный граф
    рассматривается как двунаправленный.
    """
    graph = resolve_representation(graph, policy)
    nodes = list(graph.node_ids())
    if not nodes:
        return HITSResult(iterations=0, converged=True)

    hubs = dict.fromkeys(nodes, 1.0)
    authorities = dict.fromkeys(nodes, 1.0)
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        new_authorities = dict.fromkeys(nodes, 0.0)
        for node in nodes:
            for neighbor in graph.neighbors(node):
                new_authorities[neighbor] += hubs[node]

        new_hubs = dict.fromkeys(nodes, 0.0)
        for node in nodes:
            new_hubs[node] = sum(new_authorities[neighbor] for neighbor in graph.neighbors(node))

        new_authorities = _scale_to_max(new_authorities)
        new_hubs = _scale_to_max(new_hubs)
        change = max(_max_change(hubs, new_hubs), _max_change(authorities, new_authorities))
        hubs, authorities = new_hubs, new_authorities
        if change < tolerance:
            converged = True
            break

    logger.debug("HITS finished after {} iterations (converged={})", iterations, converged)
    if normalized:
        hubs = _scale_to_sum(hubs)
        authorities = _scale_to_sum(authorities)
    return HITSResult(hubs=hubs, authorities=authorities, iterations=iterations, converged=converged)


def _scale_to_max(scores: dict[NodeId, float]) -> dict[NodeId, float]:
    peak = max(scores.values(), default=0.0)
    if peak <= 0:
        return scores
    return {node: value / peak for node, value in scores.items()}


def _scale_to_sum(scores: dict[NodeId, float]) -> dict[NodeId, float]:
    total = sum(scores.values())
    if total <= 0:
        return scores
    return {node: value / total for node, value in scores.items()}


def node_hits(graph: ReadableGraph, node_id: NodeId, **options) -> tuple[float, float]:
    """Пара `(hub, authority)` для одного узла."""
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id)
    result = hits(graph, **options)
    return result.hubs[node_id], result.authorities[node_id]
