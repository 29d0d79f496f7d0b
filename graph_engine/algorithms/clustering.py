"""
Кластеризация графа: спектральная, марковская (MCL), иерархическая и k-ядра.

Все алгоритмы, кроме MCL, рассматривают граф как неориентированный.
Спектральная и марковская кластеризации строят плотные матрицы в `torch`
(float64) и потому подходят для графов до нескольких тысяч узлов.
"""

import heapq
import math
from collections import deque
from collections.abc import Hashable
from enum import Enum

import torch
from pydantic import BaseModel, ConfigDict, Field

from graph_engine.algorithms.modularity import build_weighted_adjacency, calculate_modularity
from graph_engine.config.logging import logger
from graph_engine.core.errors import InvalidTopologyError
from graph_engine.core.graph import Graph
from graph_engine.core.types import NodeId

__all__ = [
    "ClusterNode",
    "HierarchicalClusteringResult",
    "KCoreResult",
    "LaplacianType",
    "Linkage",
    "MCLResult",
    "SpectralClusteringResult",
    "calculate_mcl_modularity",
    "cut_dendrogram",
    "cut_dendrogram_k_clusters",
    "degeneracy_ordering",
    "get_k_core",
    "get_k_core_subgraph",
    "hierarchical_clustering",
    "k_core_decomposition",
    "k_truss",
    "markov_clustering",
    "modularity_hierarchical_clustering",
    "spectral_clustering",
]


class LaplacianType(str, Enum):
    """Вид лапласиана для спектральной кластеризации."""

    UNNORMALIZED = "unnormalized"
    NORMALIZED = "normalized"
    RANDOM_WALK = "random_walk"


class Linkage(str, Enum):
    """Способ измерения расстояния между кластерами."""

    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"
    WARD = "ward"


def _neighbor_sets(graph: Graph) -> dict[NodeId, set[NodeId]]:
    """Симметричные множества соседей без петель."""
    neighbors: dict[NodeId, set[NodeId]] = {node_id: set() for node_id in graph.node_ids()}
    for edge in graph.edges():
        if edge.source == edge.target:
            continue
        neighbors[edge.source].add(edge.target)
        neighbors[edge.target].add(edge.source)
    return neighbors


# =============================================================================
# SPECTRAL
# =============================================================================


class SpectralClusteringResult(BaseModel):
    """Сообщества, метки узлов и использованная часть спектра."""

    model_config = ConfigDict(frozen=True)

    communities: list[list[NodeId]] = Field(default_factory=list)
    cluster_assignments: dict[NodeId, int] = Field(default_factory=dict)
    eigenvalues: list[float] | None = None
    eigenvectors: list[list[float]] | None = None


def _laplacian(adjacency: torch.Tensor, laplacian_type: LaplacianType) -> tuple[torch.Tensor, torch.Tensor]:
    """Лапласиан для `eigh` и вектор `D^{-1/2}` (для random-walk пересчёта)."""
    degrees = adjacency.sum(dim=1)
    inv_sqrt = torch.where(degrees > 0, degrees.clamp(min=1e-300).rsqrt(), torch.zeros_like(degrees))
    if laplacian_type is LaplacianType.UNNORMALIZED:
        return torch.diag(degrees) - adjacency, inv_sqrt
    # Симметричный L_sym = I - D^{-1/2} A D^{-1/2}; у L_rw те же собственные значения
    identity = torch.eye(adjacency.shape[0], dtype=adjacency.dtype)
    normalized = inv_sqrt.unsqueeze(1) * adjacency * inv_sqrt.unsqueeze(0)
    return identity - normalized, inv_sqrt


def _kmeans(
    points: torch.Tensor,
    k: int,
    *,
    max_iterations: int,
    tolerance: float,
    generator: torch.Generator,
) -> torch.Tensor:
    """
    k-means с инициализацией «дальней точкой».

    Первый центр выбирается генератором, каждый следующий — точка,
    наиболее удалённая от уже выбранных центров.
    """
    n = points.shape[0]
    first = int(torch.randint(n, (1,), generator=generator).item())
    centroids = [points[first]]
    min_distance = torch.cdist(points, points[first].unsqueeze(0)).squeeze(1)
    for _ in range(1, k):
        index = int(torch.argmax(min_distance).item())
        centroids.append(points[index])
        min_distance = torch.minimum(min_distance, torch.cdist(points, points[index].unsqueeze(0)).squeeze(1))
    centers = torch.stack(centroids)

    assignments = torch.zeros(n, dtype=torch.long)
    for iteration in range(1, max_iterations + 1):
        assignments = torch.argmin(torch.cdist(points, centers), dim=1)
        updated = centers.clone()
        for cluster in range(k):
            mask = assignments == cluster
            if bool(mask.any()):
                updated[cluster] = points[mask].mean(dim=0)
        shift = float((updated - centers).abs().max().item())
        centers = updated
        if shift < tolerance:
            logger.debug("k-means converged after {} iterations", iteration)
            break
    return assignments


def spectral_clustering(
    graph: Graph,
    k: int,
    *,
    laplacian_type: LaplacianType | str = LaplacianType.NORMALIZED,
    max_iterations: int = 100,
    tolerance: float = 1e-4,
    random_seed: int = 42,
) -> SpectralClusteringResult:
    """
    Спектральная кластеризация.

    Строится лапласиан, берутся `k` собственных векторов с наименьшими
    собственными значениями, строки (узлы) кластеризуются k-means. Для
    нормированного лапласиана строки предварительно нормируются. Пустые
    кластеры отбрасываются, номера идут подряд.

    Raises:
        InvalidTopologyError: `k` меньше 1.

    """
    if not isinstance(k, int) or k < 1:
        raise InvalidTopologyError("k must be a positive integer")
    laplacian_type = LaplacianType(laplacian_type)

    node_ids = list(graph.node_ids())
    n = len(node_ids)
    if k >= n:
        return SpectralClusteringResult(
            communities=[[node_id] for node_id in node_ids],
            cluster_assignments={node_id: index for index, node_id in enumerate(node_ids)},
        )

    index_of = {node_id: index for index, node_id in enumerate(node_ids)}
    adjacency = torch.zeros((n, n), dtype=torch.float64)
    for node, neighbors in build_weighted_adjacency(graph).items():
        for neighbor, weight in neighbors.items():
            adjacency[index_of[node], index_of[neighbor]] = weight

    laplacian, inv_sqrt = _laplacian(adjacency, laplacian_type)
    eigenvalues, eigenvectors = torch.linalg.eigh(laplacian)
    values = eigenvalues[:k]
    vectors = eigenvectors[:, :k]
    if laplacian_type is LaplacianType.RANDOM_WALK:
        vectors = inv_sqrt.unsqueeze(1) * vectors

    points = vectors
    if laplacian_type is LaplacianType.NORMALIZED:
        norms = points.norm(dim=1, keepdim=True)
        points = points / torch.where(norms > 0, norms, torch.ones_like(norms))

    generator = torch.Generator().manual_seed(random_seed)
    labels = _kmeans(points, k, max_iterations=max_iterations, tolerance=tolerance, generator=generator)

    renumber: dict[int, int] = {}
    communities: list[list[NodeId]] = []
    assignments: dict[NodeId, int] = {}
    for node_id, label in zip(node_ids, labels.tolist(), strict=True):
        if label not in renumber:
            renumber[label] = len(communities)
            communities.append([])
        communities[renumber[label]].append(node_id)
        assignments[node_id] = renumber[label]

    return SpectralClusteringResult(
        communities=communities,
        cluster_assignments=assignments,
        eigenvalues=values.tolist(),
        eigenvectors=vectors.T.tolist(),
    )


# =============================================================================
# MARKOV
# =============================================================================


class MCLResult(BaseModel):
    """
    Результат марковской кластеризации.

    `attractors` хранит узлы с ненулевым диагональным элементом итоговой
    матрицы: к ним стекается случайное блуждание внутри кластера.
    """

    model_config = ConfigDict(frozen=True)

    communities: list[list[NodeId]] = Field(default_factory=list)
    cluster_assignments: dict[NodeId, int] = Field(default_factory=dict)
    attractors: set[NodeId] = Field(default_factory=set)
    iterations: int = 0
    converged: bool = False


def _normalize_columns(matrix: torch.Tensor) -> torch.Tensor:
    sums = matrix.sum(dim=0, keepdim=True)
    return matrix / torch.where(sums > 0, sums, torch.ones_like(sums))


def _transition_matrix(graph: Graph, node_ids: list[NodeId], self_loops: bool) -> torch.Tensor:
    """Стохастическая по столбцам матрица: `M[j, i]` - вес перехода `i -> j`."""
    index_of = {node_id: index for index, node_id in enumerate(node_ids)}
    matrix = torch.zeros((len(node_ids), len(node_ids)), dtype=torch.float64)
    for edge in graph.edges():
        source, target = index_of[edge.source], index_of[edge.target]
        matrix[target, source] += edge.weight
        if not graph.is_directed and source != target:
            matrix[source, target] += edge.weight
    if self_loops:
        matrix.fill_diagonal_(1.0)
    return _normalize_columns(matrix)


def markov_clustering(
    graph: Graph,
    *,
    expansion: int = 2,
    inflation: float = 2.0,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    pruning_threshold: float = 1e-5,
    self_loops: bool = True,
) -> MCLResult:
    """
    Марковская кластеризация (MCL).

    Чередует расширение (возведение матрицы переходов в степень
    `expansion`) и инфляцию (поэлементная степень `inflation` с
    нормировкой столбцов), затем обнуляет значения ниже
    `pruning_threshold`. Останавливается, когда матрица меняется не
    больше чем на `tolerance`.

    Кластер образуют столбцы с ненулевым значением в строке аттрактора;
    узел, попавший под несколько аттракторов, достаётся первому по
    порядку узлов. Узлы без аттрактора становятся одиночками.

    Raises:
        InvalidTopologyError: `expansion < 1` или `inflation <= 1`.

    """
    if not isinstance(expansion, int) or expansion < 1:
        raise InvalidTopologyError("expansion must be a positive integer")
    if inflation <= 1:
        raise InvalidTopologyError("inflation must be greater than 1")

    node_ids = list(graph.node_ids())
    if not node_ids:
        return MCLResult(converged=True)

    matrix = _transition_matrix(graph, node_ids, self_loops)
    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        previous = matrix
        matrix = torch.linalg.matrix_power(matrix, expansion)
        matrix = _normalize_columns(matrix.pow(inflation))
        matrix = _normalize_columns(torch.where(matrix >= pruning_threshold, matrix, torch.zeros_like(matrix)))
        if float((matrix - previous).abs().max().item()) <= tolerance:
            converged = True
            break

    attractor_rows = [index for index in range(len(node_ids)) if float(matrix[index, index].item()) > 0]
    communities: list[list[NodeId]] = []
    assignments: dict[NodeId, int] = {}
    for row in attractor_rows:
        members = [
            node_ids[column]
            for column in torch.nonzero(matrix[row] > 0).flatten().tolist()
            if node_ids[column] not in assignments
        ]
        if not members:
            continue
        for node_id in members:
            assignments[node_id] = len(communities)
        communities.append(members)
    for node_id in node_ids:
        if node_id not in assignments:
            assignments[node_id] = len(communities)
            communities.append([node_id])

    logger.debug("MCL found {} clusters after {} iterations (converged={})", len(communities), iterations, converged)
    return MCLResult(
        communities=communities,
        cluster_assignments=assignments,
        attractors={node_ids[row] for row in attractor_rows},
        iterations=iterations,
        converged=converged,
    )


def calculate_mcl_modularity(graph: Graph, communities: list[list[NodeId]]) -> float:
    """Модулярность разбиения, найденного MCL."""
    return calculate_modularity(graph, communities)


# =============================================================================
# HIERARCHICAL
# =============================================================================


class ClusterNode(BaseModel):
    """
    Узел дендрограммы.

    У листа нет потомков. Корень леса (несвязный граф) хранит деревья
    компонент в `trees` и имеет `distance = inf`.
    """

    id: str
    members: set[NodeId] = Field(default_factory=set)
    left: "ClusterNode | None" = None
    right: "ClusterNode | None" = None
    distance: float = 0.0
    height: int = 0
    trees: "list[ClusterNode] | None" = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None and self.trees is None


class HierarchicalClusteringResult(BaseModel):
    """Корень, все узлы дендрограммы и разрезы по каждой высоте."""

    root: ClusterNode
    dendrogram: list[ClusterNode] = Field(default_factory=list)
    clusters: dict[int, list[set[NodeId]]] = Field(default_factory=dict)


def _empty_hierarchy() -> HierarchicalClusteringResult:
    return HierarchicalClusteringResult(root=ClusterNode(id="empty"), dendrogram=[], clusters={})


def _hop_distances(neighbors: dict[NodeId, set[NodeId]]) -> dict[NodeId, dict[NodeId, int]]:
    distances: dict[NodeId, dict[NodeId, int]] = {}
    for start in neighbors:
        reached = {start: 0}
        queue: deque[NodeId] = deque([start])
        while queue:
            node = queue.popleft()
            for neighbor in neighbors[node]:
                if neighbor not in reached:
                    reached[neighbor] = reached[node] + 1
                    queue.append(neighbor)
        distances[start] = reached
    return distances


def _linkage_distance(
    first: set[NodeId],
    second: set[NodeId],
    distances: dict[NodeId, dict[NodeId, int]],
    linkage: Linkage,
) -> float:
    values = [float(distances[a].get(b, math.inf)) for a in first for b in second]
    if linkage is Linkage.SINGLE:
        return min(values)
    if linkage is Linkage.COMPLETE:
        return max(values)
    # WARD сводится к среднему расстоянию на графовой метрике
    return sum(values) / len(values)


def _merge(first: ClusterNode, second: ClusterNode, index: int, distance: float) -> ClusterNode:
    return ClusterNode(
        id=f"cluster-{index}",
        members=first.members | second.members,
        left=first,
        right=second,
        distance=distance,
        height=max(first.height, second.height) + 1,
    )


def _finish_hierarchy(clusters: list[ClusterNode], dendrogram: list[ClusterNode]) -> HierarchicalClusteringResult:
    if len(clusters) == 1:
        root = clusters[0]
    else:
        members: set[NodeId] = set()
        for cluster in clusters:
            members |= cluster.members
        root = ClusterNode(
            id="root-forest",
            members=members,
            distance=math.inf,
            height=max(cluster.height for cluster in clusters) + 1,
            trees=list(clusters),
        )
        dendrogram.append(root)

    levels = {height: cut_dendrogram(root, height) for height in range(root.height + 1)}
    return HierarchicalClusteringResult(root=root, dendrogram=dendrogram, clusters=levels)


def hierarchical_clustering(
    graph: Graph,
    *,
    linkage: Linkage | str = Linkage.SINGLE,
) -> HierarchicalClusteringResult:
    """
    Агломеративная кластеризация по кратчайшим расстояниям в рёбрах.

    На каждом шаге сливается ближайшая пара кластеров. Кластеры из разных
    компонент связности находятся на бесконечном расстоянии и не
    сливаются; их деревья собираются под общим корнем леса.
    """
    linkage = Linkage(linkage)
    neighbors = _neighbor_sets(graph)
    if not neighbors:
        return _empty_hierarchy()

    distances = _hop_distances(neighbors)
    clusters = [ClusterNode(id=f"leaf-{index}", members={node_id}) for index, node_id in enumerate(neighbors)]
    dendrogram = list(clusters)
    counter = len(clusters)

    while len(clusters) > 1:
        best: tuple[float, int, int] | None = None
        for i in range(len(clusters)):
            for j in range(i + 1, len(clusters)):
                distance = _linkage_distance(clusters[i].members, clusters[j].members, distances, linkage)
                if best is None or distance < best[0]:
                    best = (distance, i, j)
        if best is None or math.isinf(best[0]):
            break

        distance, i, j = best
        merged = _merge(clusters[i], clusters[j], counter, distance)
        counter += 1
        dendrogram.append(merged)
        clusters = [cluster for index, cluster in enumerate(clusters) if index not in (i, j)]
        clusters.append(merged)

    return _finish_hierarchy(clusters, dendrogram)


def cut_dendrogram(root: ClusterNode, height: int) -> list[set[NodeId]]:
    """Кластеры, получающиеся разрезом дендрограммы на высоте `height`."""
    result: list[set[NodeId]] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.trees is not None:
            if node.height <= height:
                result.append(set(node.members))
            else:
                stack.extend(reversed(node.trees))
            continue
        if node.height <= height or node.left is None or node.right is None:
            result.append(set(node.members))
        else:
            stack.append(node.right)
            stack.append(node.left)
    return result


def cut_dendrogram_k_clusters(root: ClusterNode, k: int) -> list[set[NodeId]]:
    """
    Разрез, дающий `k` кластеров, бинарным поиском по высоте.

    Если точно `k` кластеров не получить, возвращается ближайший разрез
    с не более чем `k` кластерами сверху по высоте.
    """
    if k <= 0:
        return []
    if k == 1:
        return [set(root.members)]

    low, high = 0, root.height
    while low < high:
        middle = (low + high) // 2
        clusters = cut_dendrogram(root, middle)
        if len(clusters) == k:
            return clusters
        if len(clusters) < k:
            high = middle
        else:
            low = middle + 1
    return cut_dendrogram(root, low)


def modularity_hierarchical_clustering(graph: Graph) -> HierarchicalClusteringResult:
    """
    Жадное агломеративное слияние по приросту модулярности.

    Сливается пара кластеров с наибольшим `e_ij / m - d_i d_j / 4m²`;
    расстоянием слияния служит прирост со знаком минус.
    """
    neighbors = _neighbor_sets(graph)
    if not neighbors:
        return _empty_hierarchy()

    m = sum(len(adjacent) for adjacent in neighbors.values()) / 2.0
    clusters = [ClusterNode(id=f"leaf-{index}", members={node_id}) for index, node_id in enumerate(neighbors)]
    dendrogram = list(clusters)
    counter = len(clusters)

    def gain(first: set[NodeId], second: set[NodeId]) -> float:
        if m == 0:
            return 0.0
        between = sum(1 for node in first for neighbor in neighbors[node] if neighbor in second)
        degree_first = sum(len(neighbors[node]) for node in first)
        degree_second = sum(len(neighbors[node]) for node in second)
        return between / m - degree_first * degree_second / (4.0 * m * m)

    while len(clusters) > 1:
        best_gain, best_i, best_j = -math.inf, 0, 1
        for i in range(len(clusters)):
            for j in range(i + 1, len(clusters)):
                value = gain(clusters[i].members, clusters[j].members)
                if value > best_gain:
                    best_gain, best_i, best_j = value, i, j

        merged = _merge(clusters[best_i], clusters[best_j], counter, -best_gain)
        counter += 1
        dendrogram.append(merged)
        clusters = [cluster for index, cluster in enumerate(clusters) if index not in (best_i, best_j)]
        clusters.append(merged)

    return _finish_hierarchy(clusters, dendrogram)


# =============================================================================
# K-CORE
# =============================================================================


class KCoreResult(BaseModel):
    """`cores[k]` — узлы с ядерностью ровно `k`; `coreness` — ядерность каждого узла."""

    model_config = ConfigDict(frozen=True)

    cores: dict[int, set[NodeId]] = Field(default_factory=dict)
    coreness: dict[NodeId, int] = Field(default_factory=dict)
    max_core: int = 0


def k_core_decomposition(graph: Graph) -> KCoreResult:
    """
    Ядерность узлов алгоритмом Батагелжа-Заверсника (корзинная сортировка, O(m)).

    Петли не учитываются, ориентированные рёбра симметризуются.
    """
    neighbors = _neighbor_sets(graph)
    if not neighbors:
        return KCoreResult()

    nodes = list(neighbors)
    index_of = {node_id: index for index, node_id in enumerate(nodes)}
    degree = [len(neighbors[node_id]) for node_id in nodes]
    max_degree = max(degree)

    # Корзины по степени: vertices отсортированы, bins[d] — начало корзины d
    bins = [0] * (max_degree + 1)
    for value in degree:
        bins[value] += 1
    start = 0
    for value in range(max_degree + 1):
        bins[value], start = start, start + bins[value]

    position = [0] * len(nodes)
    vertices = [0] * len(nodes)
    for vertex, value in enumerate(degree):
        position[vertex] = bins[value]
        vertices[position[vertex]] = vertex
        bins[value] += 1
    for value in range(max_degree, 0, -1):
        bins[value] = bins[value - 1]
    bins[0] = 0

    for vertex in vertices:
        for neighbor_id in neighbors[nodes[vertex]]:
            neighbor = index_of[neighbor_id]
            if degree[neighbor] > degree[vertex]:
                neighbor_degree = degree[neighbor]
                first = vertices[bins[neighbor_degree]]
                if neighbor != first:
                    pos_neighbor = position[neighbor]
                    pos_first = bins[neighbor_degree]
                    vertices[pos_neighbor], vertices[pos_first] = first, neighbor
                    position[neighbor], position[first] = pos_first, pos_neighbor
                bins[neighbor_degree] += 1
                degree[neighbor] -= 1

    coreness = {node_id: degree[index] for index, node_id in enumerate(nodes)}
    cores: dict[int, set[NodeId]] = {}
    for node_id, core in coreness.items():
        cores.setdefault(core, set()).add(node_id)
    return KCoreResult(cores=cores, coreness=coreness, max_core=max(coreness.values()))


def get_k_core(graph: Graph, k: int) -> set[NodeId]:
    """Узлы `k`-ядра (ядерность не меньше `k`)."""
    coreness = k_core_decomposition(graph).coreness
    return {node_id for node_id, core in coreness.items() if core >= k}


def get_k_core_subgraph(graph: Graph, k: int) -> Graph:
    """Индуцированный подграф `k`-ядра с исходными весами и данными."""
    members = get_k_core(graph, k)
    subgraph = Graph(graph.config)
    for node in graph.nodes():
        if node.id in members:
            subgraph.add_node(node.id, node.data)
    for edge in graph.edges():
        if edge.source in members and edge.target in members:
            subgraph.add_edge(edge.source, edge.target, edge.weight, edge.data, edge.id)
    return subgraph


def degeneracy_ordering(graph: Graph) -> list[NodeId]:
    """
    Порядок вырожденности: каждый раз удаляется узел минимальной
    оставшейся степени (при равенстве — раньше добавленный).
    """
    neighbors = _neighbor_sets(graph)
    order_index = {node_id: index for index, node_id in enumerate(neighbors)}
    degree = {node_id: len(adjacent) for node_id, adjacent in neighbors.items()}
    heap = [(value, order_index[node_id], node_id) for node_id, value in degree.items()]
    heapq.heapify(heap)

    removed: set[NodeId] = set()
    ordering: list[NodeId] = []
    while heap:
        value, _, node_id = heapq.heappop(heap)
        if node_id in removed or value != degree[node_id]:
            continue
        removed.add(node_id)
        ordering.append(node_id)
        for neighbor in neighbors[node_id]:
            if neighbor not in removed:
                degree[neighbor] -= 1
                heapq.heappush(heap, (degree[neighbor], order_index[neighbor], neighbor))
    return ordering


def k_truss(graph: Graph, k: int) -> set[tuple[NodeId, NodeId]]:
    """
    Рёбра `k`-фермы: каждое ребро лежит не менее чем в `k - 2` треугольниках.

    Ребро возвращается парой концов в порядке добавления узлов в граф.

    Raises:
        InvalidTopologyError: `k < 2`.

    """
    if k < 2:
        raise InvalidTopologyError("k must be at least 2 for k-truss")

    neighbors = _neighbor_sets(graph)
    rank = {node_id: index for index, node_id in enumerate(neighbors)}

    def key(u: Hashable, v: Hashable) -> tuple[NodeId, NodeId]:
        return (u, v) if rank[u] < rank[v] else (v, u)

    support: dict[tuple[NodeId, NodeId], int] = {}
    for u, adjacent in neighbors.items():
        for v in adjacent:
            if rank[u] < rank[v]:
                support[(u, v)] = len(adjacent & neighbors[v])

    alive = {node_id: set(adjacent) for node_id, adjacent in neighbors.items()}
    queue: deque[tuple[NodeId, NodeId]] = deque(edge for edge, count in support.items() if count < k - 2)
    removed: set[tuple[NodeId, NodeId]] = set()

    while queue:
        edge = queue.popleft()
        if edge in removed:
            continue
        removed.add(edge)
        u, v = edge
        for w in alive[u] & alive[v]:
            for other in (key(u, w), key(v, w)):
                if other in removed:
                    continue
                support[other] -= 1
                if support[other] < k - 2:
                    queue.append(other)
        alive[u].discard(v)
        alive[v].discard(u)

    return {edge for edge in support if edge not in removed}
