"""
Обходы графа: BFS, DFS, поиск циклов и топологическая сортировка.

Все функции работают с любым `ReadableGraph` (`Graph`, `CSRGraph`,
`GraphAdapter`). Функции с параметром `policy` могут пройти через
CSR-снимок; порядок соседей у снимка тот же, поэтому результат не меняется.
"""

from collections import deque
from typing import NamedTuple

from pydantic import BaseModel, Field

from graph_engine.config.optimization import OptimizationPolicy
from graph_engine.core.adapter import resolve_representation
from graph_engine.core.errors import InvalidTopologyError, NodeNotFoundError
from graph_engine.core.types import NodeId, ReadableGraph

__all__ = [
    "PathCountingResult",
    "TraversalResult",
    "bfs_distances",
    "bfs_with_path_counting",
    "breadth_first_search",
    "depth_first_search",
    "find_cycle",
    "has_cycle",
    "is_bipartite",
    "shortest_path_bfs",
    "single_source_shortest_path_bfs",
    "topological_sort",
]


class TraversalResult(BaseModel):
    """Результат обхода: посещённые узлы, порядок посещения и дерево обхода."""

    visited: set[NodeId] = Field(default_factory=set)
    order: list[NodeId] = Field(default_factory=list)
    tree: dict[NodeId, NodeId | None] = Field(default_factory=dict)


class PathCountingResult(NamedTuple):
    """Данные BFS для алгоритма Брандеса."""

    stack: list[NodeId]
    predecessors: dict[NodeId, list[NodeId]]
    sigma: dict[NodeId, float]
    distances: dict[NodeId, int]


def _require_start(graph: ReadableGraph, node_id: NodeId, role: str = "Start") -> None:
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id, f"{role} node {node_id} not found in graph")


# =============================================================================
# BFS
# =============================================================================


def breadth_first_search(
    graph: ReadableGraph,
    start: NodeId,
    *,
    target_node: NodeId | None = None,
    policy: OptimizationPolicy | None = None,
) -> TraversalResult:
    """
    Обход в ширину от `start`; останавливается, дойдя до `target_node`.

    Raises:
        NodeNotFoundError: стартового узла нет в графе.

    """
    graph = resolve_representation(graph, policy)
    _require_start(graph, start)

    visited: set[NodeId] = {start}
    order: list[NodeId] = []
    tree: dict[NodeId, NodeId | None] = {start: None}
    queue: deque[NodeId] = deque([start])

    while queue:
        node = queue.popleft()
        order.append(node)
        if target_node is not None and node == target_node:
            break
        for neighbor in graph.neighbors(node):
            if neighbor not in visited:
                visited.add(neighbor)
                tree[neighbor] = node
                queue.append(neighbor)

    return TraversalResult(visited=visited, order=order, tree=tree)


def _bfs_parents(graph: ReadableGraph, source: NodeId, cutoff: int | None = None) -> dict[NodeId, NodeId | None]:
    parents: dict[NodeId, NodeId | None] = {source: None}
    depth: dict[NodeId, int] = {source: 0}
    queue: deque[NodeId] = deque([source])
    while queue:
        node = queue.popleft()
        if cutoff is not None and depth[node] >= cutoff:
            continue
        for neighbor in graph.neighbors(node):
            if neighbor not in parents:
                parents[neighbor] = node
                depth[neighbor] = depth[node] + 1
                queue.append(neighbor)
    return parents


def _walk_back(parents: dict[NodeId, NodeId | None], target: NodeId) -> list[NodeId]:
    path = [target]
    parent = parents[target]
    while parent is not None:
        path.append(parent)
        parent = parents[parent]
    path.reverse()
    return path


def shortest_path_bfs(
    graph: ReadableGraph,
    source: NodeId,
    target: NodeId,
    *,
    policy: OptimizationPolicy | None = None,
) -> list[NodeId] | None:
    """Кратчайший по числу рёбер путь или `None`, если `target` недостижим."""
    graph = resolve_representation(graph, policy)
    _require_start(graph, source, "Source")
    _require_start(graph, target, "Target")

    if source == target:
        return [source]

    parents: dict[NodeId, NodeId | None] = {source: None}
    queue: deque[NodeId] = deque([source])
    while queue:
        node = queue.popleft()
        for neighbor in graph.neighbors(node):
            if neighbor in parents:
                continue
            parents[neighbor] = node
            if neighbor == target:
                return _walk_back(parents, target)
            queue.append(neighbor)
    return None


def single_source_shortest_path_bfs(
    graph: ReadableGraph,
    source: NodeId,
    *,
    cutoff: int | None = None,
) -> dict[NodeId, list[NodeId]]:
    """Кратчайшие невзвешенные пути от `source` до всех достижимых узлов."""
    _require_start(graph, source, "Source")
    parents = _bfs_parents(graph, source, cutoff)
    return {node: _walk_back(parents, node) for node in parents}


def bfs_distances(
    graph: ReadableGraph,
    source: NodeId,
    *,
    cutoff: int | None = None,
) -> dict[NodeId, int]:
    """Расстояния в рёбрах от `source`; узлы дальше `cutoff` не включаются."""
    _require_start(graph, source, "Source")
    distances: dict[NodeId, int] = {source: 0}
    queue: deque[NodeId] = deque([source])
    while queue:
        node = queue.popleft()
        if cutoff is not None and distances[node] >= cutoff:
            continue
        for neighbor in graph.neighbors(node):
            if neighbor not in distances:
                distances[neighbor] = distances[node] + 1
                queue.append(neighbor)
    return distances


def bfs_with_path_counting(graph: ReadableGraph, source: NodeId) -> PathCountingResult:
    """
    BFS с подсчётом числа кратчайших путей (первая фаза Брандеса).

    `stack` содержит узлы в порядке неубывания расстояния, `sigma[v]` —
    число кратчайших путей от `source` до `v`.
    """
    stack: list[NodeId] = []
    predecessors: dict[NodeId, list[NodeId]] = {source: []}
    sigma: dict[NodeId, float] = {source: 1.0}
    distances: dict[NodeId, int] = {source: 0}
    queue: deque[NodeId] = deque([source])

    while queue:
        node = queue.popleft()
        stack.append(node)
        next_distance = distances[node] + 1
        for neighbor in graph.neighbors(node):
            if neighbor not in distances:
                distances[neighbor] = next_distance
                sigma[neighbor] = 0.0
                predecessors[neighbor] = []
                queue.append(neighbor)
            if distances[neighbor] == next_distance:
                sigma[neighbor] += sigma[node]
                predecessors[neighbor].append(node)

    return PathCountingResult(stack, predecessors, sigma, distances)


def is_bipartite(graph: ReadableGraph) -> bool:
    """Проверить двудольность раскраской BFS в два цвета."""
    if graph.is_directed:
        raise InvalidTopologyError("Bipartite test requires an undirected graph")

    colors: dict[NodeId, int] = {}
    for root in graph.node_ids():
        if root in colors:
            continue
        colors[root] = 0
        queue: deque[NodeId] = deque([root])
        while queue:
            node = queue.popleft()
            for neighbor in graph.neighbors(node):
                if neighbor not in colors:
                    colors[neighbor] = 1 - colors[node]
                    queue.append(neighbor)
                elif colors[neighbor] == colors[node]:
                    return False
    return True


# =============================================================================
# DFS
# =============================================================================


def depth_first_search(
    graph: ReadableGraph,
    start: NodeId,
    *,
    target_node: NodeId | None = None,
    pre_order: bool = True,
    policy: OptimizationPolicy | None = None,
) -> TraversalResult:
    """
    Итеративный обход в глубину.

    Соседи посещаются в порядке их хранения. При `pre_order=False` в `order`
    попадает post-order (узел после всех своих потомков).
    """
    graph = resolve_representation(graph, policy)
    _require_start(graph, start)

    if not pre_order:
        return _dfs_post_order(graph, start, target_node)

    visited: set[NodeId] = set()
    order: list[NodeId] = []
    tree: dict[NodeId, NodeId | None] = {}
    stack: list[tuple[NodeId, NodeId | None]] = [(start, None)]

    while stack:
        node, parent = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        order.append(node)
        tree[node] = parent
        if target_node is not None and node == target_node:
            break
        # Обратный порядок, чтобы первый сосед был снят со стека первым
        for neighbor in reversed(list(graph.neighbors(node))):
            if neighbor not in visited:
                stack.append((neighbor, node))

    return TraversalResult(visited=visited, order=order, tree=tree)


def _dfs_post_order(graph: ReadableGraph, start: NodeId, target_node: NodeId | None) -> TraversalResult:
    visited: set[NodeId] = {start}
    order: list[NodeId] = []
    tree: dict[NodeId, NodeId | None] = {start: None}
    stack = [(start, iter(graph.neighbors(start)))]

    while stack:
        node, neighbors = stack[-1]
        if target_node is not None and node == target_node:
            order.append(node)
            break
        for neighbor in neighbors:
            if neighbor not in visited:
                visited.add(neighbor)
                tree[neighbor] = node
                stack.append((neighbor, iter(graph.neighbors(neighbor))))
                break
        else:
            stack.pop()
            order.append(node)

    return TraversalResult(visited=visited, order=order, tree=tree)


def find_cycle(graph: ReadableGraph) -> list[NodeId] | None:
    """
    Найти цикл: список узлов цикла в порядке обхода или `None`.

    Для ориентированного графа ищется обратное ребро в узел на стеке
    рекурсии, для неориентированного — ребро в уже открытый узел, не
    являющийся родителем. Петля считается циклом из одного узла.
    """
    directed = graph.is_directed
    state: dict[NodeId, int] = {}  # 1 - на стеке, 2 - завершён

    for root in graph.node_ids():
        if root in state:
            continue
        state[root] = 1
        path: list[NodeId] = [root]
        stack = [(root, iter(graph.neighbors(root)), None)]

        while stack:
            node, neighbors, parent = stack[-1]
            descended = False
            for neighbor in neighbors:
                if not directed and neighbor == parent and neighbor != node:
                    continue
                status = state.get(neighbor)
                if status == 1:
                    return path[path.index(neighbor) :]
                if status is None:
                    state[neighbor] = 1
                    path.append(neighbor)
                    stack.append((neighbor, iter(graph.neighbors(neighbor)), node))
                    descended = True
                    break
            if not descended:
                stack.pop()
                path.pop()
                state[node] = 2

    return None


def has_cycle(graph: ReadableGraph) -> bool:
    return find_cycle(graph) is not None


def topological_sort(graph: ReadableGraph) -> list[NodeId] | None:
    """
    Топологическая сортировка (алгоритм Кана).

    Returns:
        Порядок узлов или `None`, если в графе есть цикл.

    Raises:
        InvalidTopologyError: граф неориентированный.

    """
    if not graph.is_directed:
        raise InvalidTopologyError("Topological sort requires a directed graph")

    in_degree: dict[NodeId, int] = dict.fromkeys(graph.node_ids(), 0)
    for node in in_degree:
        for neighbor in graph.neighbors(node):
            in_degree[neighbor] += 1

    queue: deque[NodeId] = deque(node for node, degree in in_degree.items() if degree == 0)
    order: list[NodeId] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for neighbor in graph.neighbors(node):
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(order) != len(in_degree):
        return None
    return order
