"""
Конвертация между `Graph` и графами rustworkx.

Узлы rustworkx несут payload-словарь `{"id": ..., "data": ...}`, рёбра —
`{"weight": ...}`. При чтении payload без ключа `id` идентификатором узла
становится его индекс в rustworkx.
"""

from typing import Any

import rustworkx as rx

from graph_engine.core.graph import Graph, GraphConfig
from graph_engine.core.types import NodeId

__all__ = ["from_rustworkx", "to_rustworkx"]


def _node_id(payload: Any, index: int, id_key: str) -> NodeId:
    if isinstance(payload, dict) and id_key in payload:
        return payload[id_key]
    return index


def _edge_weight(payload: Any, weight_key: str) -> float:
    if isinstance(payload, dict):
        return float(payload.get(weight_key, 1.0))
    if isinstance(payload, int | float):
        return float(payload)
    return 1.0


def from_rustworkx(
    rx_graph: rx.PyGraph | rx.PyDiGraph,
    *,
    id_key: str = "id",
    weight_key: str = "weight",
    allow_parallel_edges: bool = True,
) -> Graph:
    """
    Построить `Graph` из `rustworkx.PyGraph`/`PyDiGraph`.

    Параллельные рёбра rustworkx схлопываются в одно ребро: при
    `allow_parallel_edges=True` остаётся вес последнего.
    """
    directed = isinstance(rx_graph, rx.PyDiGraph)
    graph = Graph(GraphConfig(directed=directed, allow_parallel_edges=allow_parallel_edges))

    ids: dict[int, NodeId] = {}
    for index in rx_graph.node_indices():
        payload = rx_graph[index]
        node_id = _node_id(payload, index, id_key)
        ids[index] = node_id
        data = payload.get("data") if isinstance(payload, dict) else payload
        graph.add_node(node_id, data)

    for source, target, payload in rx_graph.weighted_edge_list():
        graph.add_edge(ids[source], ids[target], _edge_weight(payload, weight_key))

    return graph


def to_rustworkx(graph: Graph) -> rx.PyGraph | rx.PyDiGraph:
    """Экспортировать `Graph` в rustworkx с сохранением порядка узлов."""
    rx_graph: rx.PyGraph | rx.PyDiGraph = rx.PyDiGraph() if graph.is_directed else rx.PyGraph()

    indices: dict[NodeId, int] = {}
    for node in graph.nodes():
        indices[node.id] = rx_graph.add_node({"id": node.id, "data": node.data})

    for edge in graph.edges():
        rx_graph.add_edge(indices[edge.source], indices[edge.target], {"weight": edge.weight})

    return rx_graph
