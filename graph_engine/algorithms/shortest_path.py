"""
Кратчайшие пути: Дейкстра (в том числе двунаправленный), Беллман-Форд,
Флойд-Уоршелл и A*.

Веса рёбер берутся из `edge_weight`; у невзвешенного графа все веса равны 1.
Неориентированное ребро релаксируется в обе стороны.
"""

import math
from collections import deque
from collections.abc import Callable, Sequence
from itertools import count

from pydantic import BaseModel, Field

from graph_engine.config.logging import logger
from graph_engine.core.errors import NegativeCycleError, NegativeWeightError, NodeNotFoundError
from graph_engine.core.types import NodeId, ReadableGraph
from graph_engine.utils.priority_queue import PriorityQueue

__all__ = [
    "AStarResult",
    "BellmanFordResult",
    "FloydWarshallResult",
    "Heuristic",
    "ShortestPathResult",
    "all_pairs_shortest_path",
    "astar",
    "bellman_ford",
    "bellman_ford_path",
    "bidirectional_dijkstra",
    "dijkstra",
    "dijkstra_path",
    "euclidean_distance",
    "floyd_warshall",
    "floyd_warshall_path",
    "grid_heuristic",
    "has_negative_cycle",
    "manhattan_distance",
    "parse_grid_node",
    "single_source_shortest_path",
    "transitive_closure",
    "zero_heuristic",
]

Heuristic = Callable[[NodeId, NodeId], float]


class ShortestPathResult(BaseModel):
    """Кратчайший путь до узла: длина, узлы пути и предшественник."""

    distance: float
    path: list[NodeId] = Field(default_factory=list)
    predecessor: NodeId | None = None


class BellmanFordResult(BaseModel):
    """
    Результат Беллмана-Форда.

    Недостижимые узлы имеют расстояние `inf` и предшественника `None`.
    """

    distances: dict[NodeId, float] = Field(default_factory=dict)
    predecessors: dict[NodeId, NodeId | None] = Field(default_factory=dict)
    has_negative_cycle: bool = False
    negative_cycle_nodes: list[NodeId] = Field(default_factory=list)


class FloydWarshallResult(BaseModel):
    distances: dict[NodeId, dict[NodeId, float]] = Field(default_factory=dict)
    predecessors: dict[NodeId, dict[NodeId, NodeId | None]] = Field(default_factory=dict)
    has_negative_cycle: bool = False


class AStarResult(BaseModel):
    path: list[NodeId]
    cost: float


def _weight(graph: ReadableGraph, source: NodeId, target: NodeId) -> float:
    weight = graph.edge_weight(source, target)
    return 1.0 if weight is None else weight


def _require(graph: ReadableGraph, node_id: NodeId, role: str) -> None:
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id, f"{role} node {node_id} not found in graph")


def _path_to(predecessors: dict[NodeId, NodeId | None], target: NodeId) -> list[NodeId]:
    path = [target]
    previous = predecessors.get(target)
    while previous is not None:
        path.append(previous)
        previous = predecessors.get(previous)
    path.reverse()
    return path


# =============================================================================
# DIJKSTRA
# =============================================================================


def _check_non_negative(graph: ReadableGraph) -> None:
    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            weight = _weight(graph, node, neighbor)
            if weight < 0:
                raise NegativeWeightError(
                    "Dijkstra's algorithm does not support negative edge weights",
                    source=node,
                    target=neighbor,
                    weight=weight,
                )


def _dijkstra_scan(
    graph: ReadableGraph,
    source: NodeId,
    *,
    target: NodeId | None = None,
    cutoff: float | None = None,
) -> tuple[dict[NodeId, float], dict[NodeId, NodeId | None]]:
    """Расстояния и предшественники окончательно обработанных узлов."""
    distances: dict[NodeId, float] = {}
    predecessors: dict[NodeId, NodeId | None] = {}
    tentative: dict[NodeId, float] = {source: 0.0}
    parent: dict[NodeId, NodeId | None] = {source: None}
    queue: PriorityQueue[NodeId] = PriorityQueue()
    # Счётчик разрывает ничьи в порядке вставки
    order = count()
    queue.enqueue(source, (0.0, next(order)))

    while not queue.is_empty():
        node, (distance, _) = queue.dequeue_with_priority()
        if node in distances:
            continue
        distances[node] = distance
        predecessors[node] = parent[node]
        if target is not None and node == target:
            break
        for neighbor in graph.neighbors(node):
            if neighbor in distances:
                continue
            candidate = distance + _weight(graph, node, neighbor)
            if cutoff is not None and candidate > cutoff:
                continue
            if candidate < tentative.get(neighbor, math.inf):
                tentative[neighbor] = candidate
                parent[neighbor] = node
                queue.enqueue(neighbor, (candidate, next(order)))

    return distances, predecessors


def dijkstra(
    graph: ReadableGraph,
    source: NodeId,
    *,
    target: NodeId | None = None,
) -> dict[NodeId, ShortestPathResult]:
    """
    Алгоритм Дейкстры от `source`.

    Args:
        graph: Граф с неотрицательными весами.
        source: Исходный узел.
        target: Если задан, поиск останавливается после его обработки.

    Returns:
        `{узел: ShortestPathResult}` только для достижимых узлов.

    Raises:
        NodeNotFoundError: исходного узла нет в графе.
        NegativeWeightError: в графе есть ребро отрицательного веса.

    """
    _require(graph, source, "Source")
    _check_non_negative(graph)

    distances, predecessors = _dijkstra_scan(graph, source, target=target)
    return {
        node: ShortestPathResult(
            distance=distance,
            path=_path_to(predecessors, node),
            predecessor=predecessors[node],
        )
        for node, distance in distances.items()
    }


def dijkstra_path(
    graph: ReadableGraph,
    source: NodeId,
    target: NodeId,
    *,
    bidirectional: bool = False,
) -> ShortestPathResult | None:
    """Кратчайший путь между двумя узлами или `None`, если `target` недостижим."""
    if bidirectional:
        return bidirectional_dijkstra(graph, source, target)
    _require(graph, source, "Source")
    _require(graph, target, "Target")
    return dijkstra(graph, source, target=target).get(target)


def _reverse_adjacency(graph: ReadableGraph) -> dict[NodeId, list[tuple[NodeId, float]]]:
    """`{v: [(u, w(u, v))]}` для обратного поиска."""
    reverse: dict[NodeId, list[tuple[NodeId, float]]] = {node: [] for node in graph.node_ids()}
    for node in graph.node_ids():
        for neighbor in graph.neighbors(node):
            reverse[neighbor].append((node, _weight(graph, node, neighbor)))
    return reverse


def bidirectional_dijkstra(graph: ReadableGraph, source: NodeId, target: NodeId) -> ShortestPathResult | None:
    """
    Двунаправленный Дейкстра: встречные поиски от `source` и от `target`.

    На каждом шаге продвигается сторона с меньшим минимумом в очереди.
    Поиск останавливается, когда сумма минимумов обеих очередей не меньше
    лучшего найденного пути через точку встречи.

    Raises:
        NodeNotFoundError: одного из узлов нет в графе.
        NegativeWeightError: в графе есть ребро отрицательного веса.

    """
    _require(graph, source, "Source")
    _require(graph, target, "Target")
    _check_non_negative(graph)
    if source == target:
        return ShortestPathResult(distance=0.0, path=[source])

    reverse = _reverse_adjacency(graph)

    def forward(node: NodeId) -> list[tuple[NodeId, float]]:
        return [(neighbor, _weight(graph, node, neighbor)) for neighbor in graph.neighbors(node)]

    def backward(node: NodeId) -> list[tuple[NodeId, float]]:
        return reverse[node]

    distances = ({source: 0.0}, {target: 0.0})
    parents: tuple[dict[NodeId, NodeId | None], dict[NodeId, NodeId | None]] = ({source: None}, {target: None})
    settled: tuple[set[NodeId], set[NodeId]] = (set(), set())
    queues: tuple[PriorityQueue[NodeId], PriorityQueue[NodeId]] = (PriorityQueue(), PriorityQueue())
    expand = (forward, backward)
    order = count()
    queues[0].enqueue(source, (0.0, next(order)))
    queues[1].enqueue(target, (0.0, next(order)))

    best = math.inf
    meeting: NodeId | None = None
    found = False
    while not queues[0].is_empty() and not queues[1].is_empty():
        tops = (queues[0].peek_priority()[0], queues[1].peek_priority()[0])
        if tops[0] + tops[1] >= best:
            break
        side = 0 if tops[0] <= tops[1] else 1
        other = 1 - side
        node, (distance, _) = queues[side].dequeue_with_priority()
        if node in settled[side]:
            continue
        settled[side].add(node)

        for neighbor, weight in expand[side](node):
            if neighbor in settled[side]:
                continue
            candidate = distance + weight
            if candidate < distances[side].get(neighbor, math.inf):
                distances[side][neighbor] = candidate
                parents[side][neighbor] = node
                queues[side].enqueue(neighbor, (candidate, next(order)))
            if neighbor in distances[other] and candidate + distances[other][neighbor] < best:
                best = candidate + distances[other][neighbor]
                meeting = neighbor
                found = True

    if not found:
        return None

    path = _path_to(parents[0], meeting)
    step = parents[1][meeting]
    while step is not None:
        path.append(step)
        step = parents[1][step]
    logger.debug("Bidirectional Dijkstra met at {} with distance {}", meeting, best)
    return ShortestPathResult(distance=best, path=path, predecessor=path[-2])


def single_source_shortest_path(
    graph: ReadableGraph,
    source: NodeId,
    *,
    cutoff: float | None = None,
) -> dict[NodeId, ShortestPathResult]:
    """Кратчайшие пути от `source` длиной не больше `cutoff`."""
    _require(graph, source, "Source")
    _check_non_negative(graph)
    distances, predecessors = _dijkstra_scan(graph, source, cutoff=cutoff)
    return {
        node: ShortestPathResult(
            distance=distance,
            path=_path_to(predecessors, node),
            predecessor=predecessors[node],
        )
        for node, distance in distances.items()
    }


def all_pairs_shortest_path(graph: ReadableGraph) -> dict[NodeId, dict[NodeId, ShortestPathResult]]:
    """Дейкстра от каждого узла."""
    _check_non_negative(graph)
    return {node: single_source_shortest_path(graph, node) for node in graph.node_ids()}


# =============================================================================
# BELLMAN-FORD
# =============================================================================


def _edge_list(graph: ReadableGraph) -> list[tuple[NodeId, NodeId, float]]:
    return [
        (node, neighbor, _weight(graph, node, neighbor))
        for node in graph.node_ids()
        for neighbor in graph.neighbors(node)
    ]


def _cycle_from(predecessors: dict[NodeId, NodeId | None], start: NodeId, steps: int) -> list[NodeId]:
    """Пройти `steps` предшественников, чтобы гарантированно попасть в цикл, и собрать его."""
    node = start
    for _ in range(steps):
        previous = predecessors.get(node)
        if previous is None:
            return []
        node = previous

    cycle = [node]
    current = predecessors.get(node)
    while current is not None and current != node:
        cycle.append(current)
        current = predecessors.get(current)
    cycle.reverse()
    return cycle


def bellman_ford(graph: ReadableGraph, source: NodeId) -> BellmanFordResult:
    """
    Алгоритм Беллмана-Форда: `|V|-1` раундов релаксации и контрольный раунд.

    Отрицательные веса допустимы; если после `|V|-1` раундов ребро ещё
    релаксируется, в графе есть достижимый отрицательный цикл.
    """
    _require(graph, source, "Source")

    nodes = list(graph.node_ids())
    edges = _edge_list(graph)
    distances: dict[NodeId, float] = dict.fromkeys(nodes, math.inf)
    predecessors: dict[NodeId, NodeId | None] = dict.fromkeys(nodes)
    distances[source] = 0.0

    for _ in range(len(nodes) - 1):
        changed = False
        for u, v, weight in edges:
            if distances[u] != math.inf and distances[u] + weight < distances[v]:
                distances[v] = distances[u] + weight
                predecessors[v] = u
                changed = True
        if not changed:
            break

    has_cycle = False
    cycle_nodes: list[NodeId] = []
    seen: set[NodeId] = set()
    for u, v, weight in edges:
        if distances[u] != math.inf and distances[u] + weight < distances[v]:
            has_cycle = True
            predecessors[v] = u
            for node in _cycle_from(predecessors, v, len(nodes)):
                if node not in seen:
                    seen.add(node)
                    cycle_nodes.append(node)

    if has_cycle:
        logger.debug("Bellman-Ford found a negative cycle through {} nodes", len(cycle_nodes))

    return BellmanFordResult(
        distances=distances,
        predecessors=predecessors,
        has_negative_cycle=has_cycle,
        negative_cycle_nodes=cycle_nodes,
    )


def bellman_ford_path(graph: ReadableGraph, source: NodeId, target: NodeId) -> ShortestPathResult | None:
    """
    Кратчайший путь с возможными отрицательными весами.

    Raises:
        NegativeCycleError: в графе есть отрицательный цикл, достижимый из `source`.

    """
    _require(graph, target, "Target")
    result = bellman_ford(graph, source)
    if result.has_negative_cycle:
        raise NegativeCycleError(cycle=result.negative_cycle_nodes)

    distance = result.distances[target]
    if distance == math.inf:
        return None
    return ShortestPathResult(
        distance=distance,
        path=_path_to(result.predecessors, target),
        predecessor=result.predecessors[target],
    )


def has_negative_cycle(graph: ReadableGraph) -> bool:
    """Есть ли в графе отрицательный цикл, достижимый откуда угодно."""
    nodes = list(graph.node_ids())
    edges = _edge_list(graph)
    # Виртуальный источник с нулевыми рёбрами ко всем узлам
    distances: dict[NodeId, float] = dict.fromkeys(nodes, 0.0)

    for _ in range(len(nodes)):
        changed = False
        for u, v, weight in edges:
            if distances[u] + weight < distances[v]:
                distances[v] = distances[u] + weight
                changed = True
        if not changed:
            return False

    return any(distances[u] + weight < distances[v] for u, v, weight in edges)


# =============================================================================
# FLOYD-WARSHALL
# =============================================================================


def floyd_warshall(graph: ReadableGraph) -> FloydWarshallResult:
    """
    Все пары кратчайших путей за O(V³) по плотной матрице расстояний.

    Отрицательный цикл обнаруживается по отрицательному элементу диагонали.
    """
    nodes = list(graph.node_ids())
    n = len(nodes)
    index = {node: i for i, node in enumerate(nodes)}

    dist = [[math.inf] * n for _ in range(n)]
    pred: list[list[int | None]] = [[None] * n for _ in range(n)]
    for i in range(n):
        dist[i][i] = 0.0
    for u, v, weight in _edge_list(graph):
        i, j = index[u], index[v]
        if weight < dist[i][j]:
            dist[i][j] = weight
            pred[i][j] = i

    for k in range(n):
        row_k = dist[k]
        pred_k = pred[k]
        for i in range(n):
            d_ik = dist[i][k]
            if d_ik == math.inf:
                continue
            row_i = dist[i]
            pred_i = pred[i]
            for j in range(n):
                candidate = d_ik + row_k[j]
                if candidate < row_i[j]:
                    row_i[j] = candidate
                    pred_i[j] = pred_k[j]

    negative = any(dist[i][i] < 0 for i in range(n))
    return FloydWarshallResult(
        distances={nodes[i]: {nodes[j]: dist[i][j] for j in range(n)} for i in range(n)},
        predecessors={
            nodes[i]: {nodes[j]: (nodes[p] if (p := pred[i][j]) is not None else None) for j in range(n)}
            for i in range(n)
        },
        has_negative_cycle=negative,
    )


def floyd_warshall_path(
    graph: ReadableGraph,
    source: NodeId,
    target: NodeId,
    result: FloydWarshallResult | None = None,
) -> ShortestPathResult | None:
    """
    Путь из готового (или вычисленного) результата Флойда-Уоршелла.

    Returns:
        `None`, если узла нет в графе или `target` недостижим.

    Raises:
        NegativeCycleError: в графе есть отрицательный цикл.

    """
    if not graph.has_node(source) or not graph.has_node(target):
        return None
    result = result or floyd_warshall(graph)
    if result.has_negative_cycle:
        raise NegativeCycleError()

    distance = result.distances[source][target]
    if distance == math.inf:
        return None
    if source == target:
        return ShortestPathResult(distance=0.0, path=[source], predecessor=None)

    row = result.predecessors[source]
    path = [target]
    current = target
    while current != source:
        current = row[current]
        if current is None:
            return None
        path.append(current)
    path.reverse()
    return ShortestPathResult(distance=distance, path=path, predecessor=row[target])


def transitive_closure(graph: ReadableGraph) -> dict[NodeId, set[NodeId]]:
    """
    Транзитивное замыкание: для каждого узла — узлы, достижимые путём
    длины не меньше 1 (узел входит в своё множество, только если лежит на цикле).
    """
    closure: dict[NodeId, set[NodeId]] = {}
    for source in graph.node_ids():
        reachable: set[NodeId] = set()
        queue: deque[NodeId] = deque(graph.neighbors(source))
        while queue:
            node = queue.popleft()
            if node in reachable:
                continue
            reachable.add(node)
            queue.extend(neighbor for neighbor in graph.neighbors(node) if neighbor not in reachable)
        closure[source] = reachable
    return closure


# =============================================================================
# A*
# =============================================================================


def zero_heuristic(_node: NodeId, _goal: NodeId) -> float:
    """Нулевая эвристика: A* вырождается в Дейкстру."""
    return 0.0


def manhattan_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return float(sum(abs(x - y) for x, y in zip(a, b, strict=True)))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b, strict=True)))


def parse_grid_node(node_id: NodeId) -> tuple[int, int]:
    """Разобрать идентификатор узла сетки вида `"x,y"`."""
    x, y = str(node_id).split(",")
    return int(x), int(y)


def grid_heuristic(metric: str = "manhattan") -> Heuristic:
    """Эвристика для узлов сетки `"x,y"` по выбранной метрике."""
    distance = {"manhattan": manhattan_distance, "euclidean": euclidean_distance}[metric]

    def heuristic(node: NodeId, goal: NodeId) -> float:
        return distance(parse_grid_node(node), parse_grid_node(goal))

    return heuristic


def astar(
    graph: ReadableGraph,
    start: NodeId,
    goal: NodeId,
    heuristic: Heuristic = zero_heuristic,
) -> AStarResult | None:
    """
    Поиск A* с очередью по `g + h`.

    Узел открывается повторно, если к нему найден более короткий путь, поэтому
    допустимой (не обязательно монотонной) эвристики достаточно для
    оптимальности. Допустимость не проверяется.

    Returns:
        Путь и его стоимость или `None`, если `goal` недостижим.

    """
    _require(graph, start, "Start")
    _require(graph, goal, "Goal")

    g_score: dict[NodeId, float] = {start: 0.0}
    came_from: dict[NodeId, NodeId | None] = {start: None}
    queue: PriorityQueue[NodeId] = PriorityQueue()
    order = count()
    # Приоритет: (f, порядок вставки, g)
    queue.enqueue(start, (heuristic(start, goal), next(order), 0.0))

    while not queue.is_empty():
        node, (_, _, cost) = queue.dequeue_with_priority()
        # Устаревшая запись: путь к узлу с тех пор улучшился
        if cost > g_score[node]:
            continue
        if node == goal:
            return AStarResult(path=_path_to(came_from, goal), cost=cost)

        for neighbor in graph.neighbors(node):
            tentative = cost + _weight(graph, node, neighbor)
            if tentative < g_score.get(neighbor, math.inf):
                g_score[neighbor] = tentative
                came_from[neighbor] = node
                queue.enqueue(neighbor, (tentative + heuristic(neighbor, goal), next(order), tentative))

    return None
