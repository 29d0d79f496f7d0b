"""
Адаптер графа к CSR-представлению.

`GraphAdapter` один раз материализует `CSRGraph` из `Graph` (или любого
источника, реализующего `ReadableGraph`) и отдаёт ту же поверхность чтения,
поэтому алгоритмы не зависят от того, какое представление за ними стоит.
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from graph_engine.config.logging import logger
from graph_engine.config.optimization import OptimizationPolicy
from graph_engine.core.csr import CSRGraph
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = [
    "GraphAdapter",
    "create_optimized_graph",
    "resolve_representation",
    "to_csr_graph",
]


class GraphAdapter:
    """Мост только для чтения: исходный граф → CSR-снимок."""

    def __init__(
        self,
        source: ReadableGraph,
        *,
        include_weights: bool = True,
        include_reverse: bool = False,
    ):
        if isinstance(source, GraphAdapter):
            self._csr = source.get_csr_graph()
            self._wrapped = source.is_csr_graph()
        elif isinstance(source, CSRGraph):
            self._csr = source
            self._wrapped = True
        else:
            self._csr = CSRGraph.from_graph(
                source,
                include_weights=include_weights,
                include_reverse=include_reverse,
            )
            self._wrapped = False

    @classmethod
    def from_policy(cls, graph: ReadableGraph, policy: OptimizationPolicy) -> ReadableGraph:
        """Вернуть CSR-адаптер, если политика его рекомендует, иначе сам граф."""
        return resolve_representation(graph, policy)

    def __repr__(self) -> str:
        return f"GraphAdapter({self._csr!r})"

    def get_csr_graph(self) -> CSRGraph:
        return self._csr

    def is_csr_graph(self) -> bool:
        """Был ли источник уже CSR-снимком (обёрнут без конвертации)."""
        return self._wrapped

    @property
    def is_directed(self) -> bool:
        return self._csr.is_directed

    @property
    def node_count(self) -> int:
        return self._csr.node_count

    @property
    def edge_count(self) -> int:
        return self._csr.edge_count

    def node_ids(self) -> Iterator[NodeId]:
        return self._csr.node_ids()

    def nodes(self) -> Iterator[NodeId]:
        return self._csr.node_ids()

    def has_node(self, node_id: NodeId) -> bool:
        return self._csr.has_node(node_id)

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        return self._csr.has_edge(source, target)

    def neighbors(self, node_id: NodeId) -> Iterator[NodeId]:
        return self._csr.neighbors(node_id)

    def out_degree(self, node_id: NodeId) -> int:
        return self._csr.out_degree(node_id)

    def edge_weight(self, source: NodeId, target: NodeId) -> float | None:
        return self._csr.edge_weight(source, target)


def resolve_representation(graph: ReadableGraph, policy: OptimizationPolicy | None) -> ReadableGraph:
    """
    Выбрать представление графа по политике.

    Без политики или при рекомендации `adjacency` граф возвращается как есть.
    Результат алгоритма от выбора не зависит.
    """
    if policy is None or isinstance(graph, (CSRGraph, GraphAdapter)):
        return graph
    if not policy.should_use_csr(graph):
        return graph

    logger.debug(
        "Optimization policy '{}' routes graph with {} nodes through CSR",
        policy.preset.value,
        graph.node_count,
    )
    return GraphAdapter(graph)


def to_csr_graph(source: ReadableGraph) -> CSRGraph:
    """Вернуть CSR-снимок; `CSRGraph` возвращается без изменений."""
    if isinstance(source, CSRGraph):
        return source
    return GraphAdapter(source).get_csr_graph()


def create_optimized_graph(
    nodes: Iterable[NodeId],
    edges: Iterable[Sequence[Any]],
    *,
    directed: bool = True,
) -> CSRGraph:
    """
    Собрать `CSRGraph` напрямую из списков узлов и рёбер.

    Рёбра задаются как `(source, target)` или `(source, target, weight)`;
    рёбра с концами вне `nodes` пропускаются.
    """
    adjacency: dict[NodeId, list[NodeId]] = {node_id: [] for node_id in nodes}
    weights: dict[tuple[NodeId, NodeId], float] = {}
    count = 0
    for edge in edges:
        source, target = edge[0], edge[1]
        if source not in adjacency or target not in adjacency:
            continue
        weight = float(edge[2]) if len(edge) > 2 and edge[2] is not None else 1.0
        adjacency[source].append(target)
        weights[(source, target)] = weight
        if not directed and source != target:
            adjacency[target].append(source)
            weights[(target, source)] = weight
        count += 1
    return CSRGraph(adjacency, weights, directed=directed, edge_count=count)
