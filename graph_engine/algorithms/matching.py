"""
Паросочетания в двудольных графах и изоморфизм графов.

Максимальное паросочетание ищется алгоритмом Хопкрофта-Карпа
(O(E·√V)); жадный вариант даёт быстрое приближение не хуже половины
оптимума. Направление рёбер при поиске паросочетаний игнорируется,
изоморфизм его учитывает.
"""

from collections import deque
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

from graph_engine.core.errors import InvalidTopologyError
from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "BipartitePartition",
    "EdgeMatch",
    "IsomorphismResult",
    "MatchingResult",
    "NodeMatch",
    "bipartite_partition",
    "find_all_isomorphisms",
    "greedy_bipartite_matching",
    "is_graph_isomorphic",
    "maximum_bipartite_matching",
]


class BipartitePartition(BaseModel):
    model_config = ConfigDict(frozen=True)

    left: set[NodeId] = Field(default_factory=set)
    right: set[NodeId] = Field(default_factory=set)


class MatchingResult(BaseModel):
    """Паросочетание `левый узел -> правый узел` и его размер."""

    model_config = ConfigDict(frozen=True)

    matching: dict[NodeId, NodeId] = Field(default_factory=dict)
    size: int = 0


def _adjacent(graph: Graph, node_id: NodeId) -> list[NodeId]:
    neighbors = list(graph.neighbors(node_id))
    if graph.is_directed:
        seen = set(neighbors)
        neighbors.extend(other for other in graph.in_neighbors(node_id) if other not in seen)
    return neighbors


def bipartite_partition(graph: Graph) -> BipartitePartition | None:
    """
    Разбить узлы на две доли раскраской BFS.

    Изолированные узлы попадают в левую долю. Возвращает `None`, если в
    графе есть нечётный цикл.
    """
    colors: dict[NodeId, int] = {}
    for root in graph.node_ids():
        if root in colors:
            continue
        colors[root] = 0
        queue: deque[NodeId] = deque([root])
        while queue:
            node = queue.popleft()
            for neighbor in _adjacent(graph, node):
                if neighbor not in colors:
                    colors[neighbor] = 1 - colors[node]
                    queue.append(neighbor)
                elif colors[neighbor] == colors[node]:
                    return None

    return BipartitePartition(
        left={node for node, color in colors.items() if color == 0},
        right={node for node, color in colors.items() if color == 1},
    )


def _resolve_sides(
    graph: Graph,
    left_nodes: Iterable[NodeId] | None,
    right_nodes: Iterable[NodeId] | None,
) -> tuple[list[NodeId], set[NodeId]]:
    if left_nodes is not None and right_nodes is not None:
        left = [node for node in left_nodes if graph.has_node(node)]
        return left, {node for node in right_nodes if graph.has_node(node)}

    partition = bipartite_partition(graph)
    if partition is None:
        raise InvalidTopologyError("Graph is not bipartite")
    left = [node for node in graph.node_ids() if node in partition.left]
    return left, set(partition.right)


def maximum_bipartite_matching(
    graph: Graph,
    *,
    left_nodes: Iterable[NodeId] | None = None,
    right_nodes: Iterable[NodeId] | None = None,
) -> MatchingResult:
    """
    Максимальное паросочетание Хопкрофта-Карпа.

    Доли можно передать явно; иначе они вычисляются `bipartite_partition`.

    Raises:
        InvalidTopologyError: доли не заданы, а граф не двудольный.

    """
    left, right = _resolve_sides(graph, left_nodes, right_nodes)
    candidates = {node: [other for other in _adjacent(graph, node) if other in right] for node in left}

    match_left: dict[NodeId, NodeId] = {}
    match_right: dict[NodeId, NodeId] = {}

    def layer() -> tuple[dict[NodeId, int], bool]:
        """BFS от свободных левых узлов; находит ли он свободный правый узел."""
        distance: dict[NodeId, int] = {}
        queue: deque[NodeId] = deque()
        for node in left:
            if node not in match_left:
                distance[node] = 0
                queue.append(node)
        found = False
        while queue:
            node = queue.popleft()
            for other in candidates[node]:
                partner = match_right.get(other)
                if partner is None:
                    found = True
                elif partner not in distance:
                    distance[partner] = distance[node] + 1
                    queue.append(partner)
        return distance, found

    def augment(start: NodeId, distance: dict[NodeId, int]) -> bool:
        """Итеративный DFS по слоям; при успехе переворачивает путь."""
        stack = [(start, iter(candidates[start]))]
        path: list[tuple[NodeId, NodeId]] = []
        while stack:
            node, options = stack[-1]
            advanced = False
            for other in options:
                partner = match_right.get(other)
                if partner is None:
                    path.append((node, other))
                    for left_node, right_node in path:
                        match_left[left_node] = right_node
                        match_right[right_node] = left_node
                    return True
                if distance.get(partner) == distance[node] + 1:
                    path.append((node, other))
                    stack.append((partner, iter(candidates[partner])))
                    advanced = True
                    break
            if not advanced:
                # Тупик: узел исключается из слоёв до следующей фазы
                distance[node] = -1
                stack.pop()
                if path:
                    path.pop()
        return False

    while True:
        distance, found = layer()
        if not found:
            break
        for node in left:
            if node not in match_left:
                augment(node, distance)

    return MatchingResult(matching=dict(match_left), size=len(match_left))


def greedy_bipartite_matching(
    graph: Graph,
    *,
    left_nodes: Iterable[NodeId] | None = None,
    right_nodes: Iterable[NodeId] | None = None,
) -> MatchingResult:
    """Жадное паросочетание: каждый левый узел берёт первого свободного соседа."""
    left, right = _resolve_sides(graph, left_nodes, right_nodes)
    used: set[NodeId] = set()
    matching: dict[NodeId, NodeId] = {}
    for node in left:
        for other in _adjacent(graph, node):
            if other in right and other not in used:
                matching[node] = other
                used.add(other)
                break
    return MatchingResult(matching=matching, size=len(matching))


# =============================================================================
# ISOMORPHISM
# =============================================================================

NodeMatch = Callable[[NodeId, NodeId, Graph, Graph], bool]
EdgeMatch = Callable[[tuple[NodeId, NodeId], tuple[NodeId, NodeId], Graph, Graph], bool]


class IsomorphismResult(BaseModel):
    """Изоморфны ли графы и найденное отображение узлов первого графа во второй."""

    model_config = ConfigDict(frozen=True)

    is_isomorphic: bool = False
    mapping: dict[NodeId, NodeId] | None = None


def _signature(graph: Graph, node_id: NodeId) -> tuple[int, int, bool]:
    return graph.out_degree(node_id), graph.in_degree(node_id), graph.has_edge(node_id, node_id)


def _compatible(first: Graph, second: Graph) -> bool:
    """Быстрые инварианты: направленность, размеры и мультимножество сигнатур."""
    if first.is_directed != second.is_directed:
        return False
    if first.node_count != second.node_count or first.edge_count != second.edge_count:
        return False
    signatures = sorted(_signature(first, node_id) for node_id in first.node_ids())
    return signatures == sorted(_signature(second, node_id) for node_id in second.node_ids())


def _search_order(graph: Graph) -> list[NodeId]:
    """Порядок BFS по компонентам: очередной узел по возможности смежен уже сопоставленным."""
    order: list[NodeId] = []
    seen: set[NodeId] = set()
    for root in graph.node_ids():
        if root in seen:
            continue
        seen.add(root)
        queue: deque[NodeId] = deque([root])
        while queue:
            node = queue.popleft()
            order.append(node)
            for neighbor in _adjacent(graph, node):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
    return order


def _isomorphisms(
    first: Graph,
    second: Graph,
    node_match: NodeMatch | None,
    edge_match: EdgeMatch | None,
    *,
    find_all: bool,
) -> list[dict[NodeId, NodeId]]:
    """
    Перебор с возвратом в духе VF2.

    Кандидаты для узла берутся среди узлов второго графа с той же
    сигнатурой (полустепени и наличие петли). Пара допустима, если рёбра
    к уже сопоставленным узлам совпадают в обе стороны и проходят
    предикаты. Стек итераторов заменяет рекурсию.
    """
    order = _search_order(first)
    if not order:
        return [{}]

    candidates: dict[tuple[int, int, bool], list[NodeId]] = {}
    for node_id in second.node_ids():
        candidates.setdefault(_signature(second, node_id), []).append(node_id)

    mapping: dict[NodeId, NodeId] = {}
    used: set[NodeId] = set()
    results: list[dict[NodeId, NodeId]] = []

    def edges_agree(pair1: tuple[NodeId, NodeId], pair2: tuple[NodeId, NodeId]) -> bool:
        present = first.has_edge(*pair1)
        if present != second.has_edge(*pair2):
            return False
        return not (present and edge_match is not None and not edge_match(pair1, pair2, first, second))

    def feasible(node1: NodeId, node2: NodeId) -> bool:
        if node_match is not None and not node_match(node1, node2, first, second):
            return False
        if not edges_agree((node1, node1), (node2, node2)):
            return False
        for mapped1, mapped2 in mapping.items():
            if not edges_agree((node1, mapped1), (node2, mapped2)):
                return False
            if first.is_directed and not edges_agree((mapped1, node1), (mapped2, node2)):
                return False
        return True

    stack = [iter(candidates.get(_signature(first, order[0]), []))]
    while stack:
        node1 = order[len(stack) - 1]
        if node1 in mapping:
            used.discard(mapping.pop(node1))
        for node2 in stack[-1]:
            if node2 not in used and feasible(node1, node2):
                mapping[node1] = node2
                used.add(node2)
                break
        else:
            stack.pop()
            continue

        if len(mapping) == len(order):
            results.append(dict(mapping))
            if not find_all:
                break
        else:
            stack.append(iter(candidates.get(_signature(first, order[len(stack)]), [])))
    return results


def is_graph_isomorphic(
    first: Graph,
    second: Graph,
    *,
    node_match: NodeMatch | None = None,
    edge_match: EdgeMatch | None = None,
) -> IsomorphismResult:
    """
    Проверить изоморфизм двух графов.

    Args:
        first: Первый граф.
        second: Второй граф.
        node_match: Дополнительное условие на пару узлов `(n1, n2, g1, g2)`.
        edge_match: Условие на пару рёбер `((u1, v1), (u2, v2), g1, g2)`.

    Returns:
        `IsomorphismResult` с отображением узлов `first -> second`, если
        графы изоморфны.

    """
    if not _compatible(first, second):
        return IsomorphismResult()
    found = _isomorphisms(first, second, node_match, edge_match, find_all=False)
    if not found:
        return IsomorphismResult()
    return IsomorphismResult(is_isomorphic=True, mapping=found[0])


def find_all_isomorphisms(
    first: Graph,
    second: Graph,
    *,
    node_match: NodeMatch | None = None,
    edge_match: EdgeMatch | None = None,
) -> list[dict[NodeId, NodeId]]:
    """Все отображения `first -> second`, сохраняющие смежность (для пустых графов одно пустое)."""
    if not _compatible(first, second):
        return []
    return _isomorphisms(first, second, node_match, edge_match, find_all=True)
