"""
Компоненты связности.

- Неориентированные графы: union-find (`connected_components`) и DFS.
- Ориентированные: сильная связность (итеративный Тарьян), слабая
  связность и граф конденсации.
"""

from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.graph import Graph, GraphConfig
from graph_engine.core.types import NodeId, ReadableGraph
from graph_engine.utils.union_find import UnionFind

__all__ = [
    "condensation_graph",
    "connected_components",
    "connected_components_dfs",
    "get_connected_component",
    "is_connected",
    "is_strongly_connected",
    "is_weakly_connected",
    "largest_connected_component",
    "number_of_connected_components",
    "strongly_connected_components",
    "weakly_connected_components",
]

_UNDIRECTED_REQUIRED = "Connected components algorithm requires an undirected graph"


def _require_undirected(graph: ReadableGraph) -> None:
    if graph.is_directed:
        raise InvalidTopologyError(
            f"{_UNDIRECTED_REQUIRED}. Use strongly_connected_components for directed graphs."
        )


def connected_components(graph: ReadableGraph) -> list[list[NodeId]]:
    """Компоненты неориентированного графа через union-find."""
    _require_undirected(graph)
    union_find = UnionFind(graph.node_ids())
    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            union_find.union(node, neighbor)
    return union_find.get_all_components()


def connected_components_dfs(graph: ReadableGraph) -> list[list[NodeId]]:
    """Компоненты неориентированного графа итеративным DFS."""
    _require_undirected(graph)
    visited: set[NodeId] = set()
    components: list[list[NodeId]] = []
    for root in graph.node_ids():
        if root in visited:
            continue
        visited.add(root)
        component: list[NodeId] = []
        stack = [root]
        while stack:
            node = stack.pop()
            component.append(node)
            for neighbor in graph.neighbors(node):
                if neighbor not in visited:
                    visited.add(neighbor)
                    stack.append(neighbor)
        components.append(component)
    return components


def number_of_connected_components(graph: ReadableGraph) -> int:
    return len(connected_components(graph))


def is_connected(graph: ReadableGraph) -> bool:
    """Связен ли неориентированный граф; пустой граф считается связным."""
    if graph.node_count == 0:
        return True
    return number_of_connected_components(graph) == 1


def largest_connected_component(graph: ReadableGraph) -> list[NodeId]:
    components = connected_components(graph)
    if not components:
        return []
    return max(components, key=len)


def get_connected_component(graph: ReadableGraph, node_id: NodeId) -> list[NodeId]:
    """Компонента, содержащая узел."""
    _require_undirected(graph)
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id)

    visited: set[NodeId] = {node_id}
    component: list[NodeId] = []
    stack = [node_id]
    while stack:
        node = stack.pop()
        component.append(node)
        for neighbor in graph.neighbors(node):
            if neighbor not in visited:
                visited.add(neighbor)
                stack.append(neighbor)
    return component


def strongly_connected_components(graph: ReadableGraph) -> list[list[NodeId]]:
    """
    Компоненты сильной связности алгоритмом Тарьяна без рекурсии.

    Компоненты выдаются в обратном топологическом порядке конденсации.
    """
    if not graph.is_directed:
        raise InvalidTopologyError("Strongly connected components require a directed graph")

    index_of: dict[NodeId, int] = {}
    low_link: dict[NodeId, int] = {}
    on_stack: set[NodeId] = set()
    scc_stack: list[NodeId] = []
    components: list[list[NodeId]] = []
    counter = 0

    for root in graph.node_ids():
        if root in index_of:
            continue
        index_of[root] = low_link[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        work = [(root, iter(graph.neighbors(root)))]

        while work:
            node, neighbors = work[-1]
            descended = False
            for neighbor in neighbors:
                if neighbor not in index_of:
                    index_of[neighbor] = low_link[neighbor] = counter
                    counter += 1
                    scc_stack.append(neighbor)
                    on_stack.add(neighbor)
                    work.append((neighbor, iter(graph.neighbors(neighbor))))
                    descended = True
                    break
                if neighbor in on_stack:
                    low_link[node] = min(low_link[node], index_of[neighbor])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[node])
            if low_link[node] == index_of[node]:
                component: list[NodeId] = []
                while True:
                    member = scc_stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components


def is_strongly_connected(graph: ReadableGraph) -> bool:
    if not graph.is_directed:
        raise InvalidTopologyError("Strong connectivity check requires a directed graph")
    if graph.node_count == 0:
        return True
    return len(strongly_connected_components(graph)) == 1


def weakly_connected_components(graph: ReadableGraph) -> list[list[NodeId]]:
    """Компоненты ориентированного графа без учёта направления рёбер."""
    if not graph.is_directed:
        raise InvalidTopologyError(
            "Weakly connected components are for directed graphs. Use connected_components for undirected graphs."
        )
    union_find = UnionFind(graph.node_ids())
    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            union_find.union(node, neighbor)
    return union_find.get_all_components()


def is_weakly_connected(graph: ReadableGraph) -> bool:
    if not graph.is_directed:
        raise InvalidTopologyError("Weak connectivity check requires a directed graph")
    if graph.node_count == 0:
        return True
    return len(weakly_connected_components(graph)) == 1


def condensation_graph(graph: ReadableGraph) -> tuple[Graph, dict[NodeId, int]]:
    """
    Граф конденсации: каждая компонента сильной связности становится узлом.

    Returns:
        Ориентированный ацикличный граф с узлами `0..k-1` (данные узла —
        список членов компоненты) и отображение `узел -> номер компоненты`.

    """
    if not graph.is_directed:
        raise InvalidTopologyError("Condensation graph requires a directed graph")

    components = strongly_connected_components(graph)
    mapping: dict[NodeId, int] = {}
    condensed = Graph(GraphConfig(directed=True, allow_self_loops=False))
    for index, members in enumerate(components):
        condensed.add_node(index, {"members": list(members)})
        for member in members:
            mapping[member] = index

    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            source, target = mapping[node], mapping[neighbor]
            if source != target and not condensed.has_edge(source, target):
                condensed.add_edge(source, target)

    return condensed, mapping
