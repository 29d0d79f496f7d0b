"""
Предсказание связей по общим соседям.

- `common_neighbors_*` — число общих соседей.
- `adamic_adar_*` — сумма `1 / log(deg(z))` по общим соседям `z`; сосед
  степени 1 даёт вклад 1.

С `directed=True` общими считаются промежуточные узлы путей
`source → z → target`, иначе направление рёбер игнорируется.
Несуществующий узел даёт нулевую оценку, а не ошибку.
"""

import math
from collections.abc import Iterable, Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict

from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "LinkPredictionMetric",
    "LinkPredictionMetrics",
    "LinkPredictionScore",
    "adamic_adar_for_pairs",
    "adamic_adar_prediction",
    "adamic_adar_score",
    "common_neighbors_prediction",
    "common_neighbors_score",
    "compare_link_predictors",
    "evaluate_link_prediction",
    "get_top_candidates_for_node",
]


class LinkPredictionMetric(str, Enum):
    COMMON_NEIGHBORS = "common_neighbors"
    ADAMIC_ADAR = "adamic_adar"


class LinkPredictionScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: NodeId
    target: NodeId
    score: float


class LinkPredictionMetrics(BaseModel):
    """Точность и полнота при пороге с лучшим F1, плюс AUC."""

    model_config = ConfigDict(frozen=True)

    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    auc: float = 0.5


def _undirected_neighbors(graph: Graph, node_id: NodeId) -> set[NodeId]:
    neighbors = set(graph.neighbors(node_id))
    if graph.is_directed:
        neighbors.update(graph.in_neighbors(node_id))
    return neighbors


def _common(graph: Graph, source: NodeId, target: NodeId, directed: bool) -> set[NodeId]:
    if directed and graph.is_directed:
        common = set(graph.out_neighbors(source)) & set(graph.in_neighbors(target))
    else:
        common = _undirected_neighbors(graph, source) & _undirected_neighbors(graph, target)
    common.discard(source)
    common.discard(target)
    return common


def common_neighbors_score(graph: Graph, source: NodeId, target: NodeId, *, directed: bool = False) -> float:
    if not graph.has_node(source) or not graph.has_node(target):
        return 0.0
    return float(len(_common(graph, source, target, directed)))


def adamic_adar_score(graph: Graph, source: NodeId, target: NodeId, *, directed: bool = False) -> float:
    """Индекс Адамик-Адара; для ориентированного режима берётся полустепень исхода."""
    if not graph.has_node(source) or not graph.has_node(target):
        return 0.0

    score = 0.0
    for neighbor in _common(graph, source, target, directed):
        degree = graph.out_degree(neighbor) if directed and graph.is_directed else graph.degree(neighbor)
        if degree > 1:
            score += 1.0 / math.log(degree)
        elif degree == 1:
            score += 1.0
    return score


_SCORERS = {
    LinkPredictionMetric.COMMON_NEIGHBORS: common_neighbors_score,
    LinkPredictionMetric.ADAMIC_ADAR: adamic_adar_score,
}


def _is_linked(graph: Graph, source: NodeId, target: NodeId, directed: bool) -> bool:
    if graph.has_edge(source, target):
        return True
    return not directed and graph.is_directed and graph.has_edge(target, source)


def _predict(
    graph: Graph,
    metric: LinkPredictionMetric,
    *,
    directed: bool,
    include_existing: bool,
    top_k: int | None,
) -> list[LinkPredictionScore]:
    scorer = _SCORERS[metric]
    nodes = list(graph.node_ids())
    predictions: list[LinkPredictionScore] = []
    for i, source in enumerate(nodes):
        for target in nodes[i + 1 :]:
            if not include_existing and _is_linked(graph, source, target, directed):
                continue
            score = scorer(graph, source, target, directed=directed)
            if score > 0:
                predictions.append(LinkPredictionScore(source=source, target=target, score=score))

    predictions.sort(key=lambda item: item.score, reverse=True)
    return predictions[:top_k] if top_k is not None else predictions


def common_neighbors_prediction(
    graph: Graph,
    *,
    directed: bool = False,
    include_existing: bool = False,
    top_k: int | None = None,
) -> list[LinkPredictionScore]:
    """Оценки всех пар узлов с ненулевым числом общих соседей по убыванию."""
    return _predict(
        graph,
        LinkPredictionMetric.COMMON_NEIGHBORS,
        directed=directed,
        include_existing=include_existing,
        top_k=top_k,
    )


def adamic_adar_prediction(
    graph: Graph,
    *,
    directed: bool = False,
    include_existing: bool = False,
    top_k: int | None = None,
) -> list[LinkPredictionScore]:
    return _predict(
        graph,
        LinkPredictionMetric.ADAMIC_ADAR,
        directed=directed,
        include_existing=include_existing,
        top_k=top_k,
    )


def adamic_adar_for_pairs(
    graph: Graph,
    pairs: Iterable[tuple[NodeId, NodeId]],
    *,
    directed: bool = False,
) -> list[LinkPredictionScore]:
    return [
        LinkPredictionScore(source=source, target=target, score=adamic_adar_score(graph, source, target, directed=directed))
        for source, target in pairs
    ]


def get_top_candidates_for_node(
    graph: Graph,
    node_id: NodeId,
    *,
    metric: LinkPredictionMetric | str = LinkPredictionMetric.COMMON_NEIGHBORS,
    candidates: Iterable[NodeId] | None = None,
    top_k: int = 10,
    directed: bool = False,
    include_existing: bool = False,
) -> list[LinkPredictionScore]:
    """Лучшие кандидаты на связь с `node_id`; для неизвестного узла — пустой список."""
    if not graph.has_node(node_id):
        return []

    scorer = _SCORERS[LinkPredictionMetric(metric)]
    pool = candidates if candidates is not None else graph.node_ids()
    scores: list[LinkPredictionScore] = []
    for candidate in pool:
        if candidate == node_id or not graph.has_node(candidate):
            continue
        if not include_existing and _is_linked(graph, node_id, candidate, directed):
            continue
        score = scorer(graph, node_id, candidate, directed=directed)
        if score > 0:
            scores.append(LinkPredictionScore(source=node_id, target=candidate, score=score))

    scores.sort(key=lambda item: item.score, reverse=True)
    return scores[:top_k]


def evaluate_link_prediction(
    graph: Graph,
    test_edges: Sequence[tuple[NodeId, NodeId]],
    non_edges: Sequence[tuple[NodeId, NodeId]],
    *,
    metric: LinkPredictionMetric | str = LinkPredictionMetric.ADAMIC_ADAR,
    directed: bool = False,
) -> LinkPredictionMetrics:
    """
    Оценить предсказатель на скрытых рёбрах `test_edges` и парах `non_edges`.

    Пары сортируются по убыванию оценки (при равенстве рёбра идут первыми).
    Точность и полнота берутся на пороге с лучшим F1. AUC — доля пар
    (ребро, не-ребро), где ребро стоит выше; без одного из классов AUC = 0.5.
    """
    scorer = _SCORERS[LinkPredictionMetric(metric)]
    ranked = [(scorer(graph, s, t, directed=directed), True) for s, t in test_edges]
    ranked += [(scorer(graph, s, t, directed=directed), False) for s, t in non_edges]
    ranked.sort(key=lambda item: item[0], reverse=True)

    total_positives = len(test_edges)
    true_positives = false_positives = 0
    best = LinkPredictionMetrics(precision=0.0, recall=0.0, f1=0.0)
    for _, is_edge in ranked:
        if is_edge:
            true_positives += 1
        else:
            false_positives += 1
        precision = true_positives / (true_positives + false_positives)
        recall = true_positives / total_positives if total_positives else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0
        if f1 > best.f1:
            best = LinkPredictionMetrics(precision=precision, recall=recall, f1=f1)

    above = positives_seen = negatives_seen = 0
    for _, is_edge in ranked:
        if is_edge:
            positives_seen += 1
        else:
            above += positives_seen
            negatives_seen += 1
    auc = above / (positives_seen * negatives_seen) if positives_seen and negatives_seen else 0.5

    return best.model_copy(update={"auc": auc})


def compare_link_predictors(
    graph: Graph,
    test_edges: Sequence[tuple[NodeId, NodeId]],
    non_edges: Sequence[tuple[NodeId, NodeId]],
    *,
    directed: bool = False,
) -> dict[str, LinkPredictionMetrics]:
    """Метрики всех предсказателей на одних и тех же данных."""
    return {
        metric.value: evaluate_link_prediction(graph, test_edges, non_edges, metric=metric, directed=directed)
        for metric in LinkPredictionMetric
    }
