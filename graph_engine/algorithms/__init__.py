"""
Семейства алгоритмов над `Graph` и `CSRGraph`.

Все функции принимают граф первым аргументом, не изменяют его и
возвращают свежие pydantic-модели или словари.
"""

from graph_engine.algorithms.centrality import (
    CentralityMode,
    betweenness_centrality,
    closeness_centrality,
    degree_centrality,
    edge_betweenness_centrality,
    edge_betweenness_pairs,
    node_betweenness_centrality,
    node_closeness_centrality,
    node_degree_centrality,
)
from graph_engine.algorithms.clustering import (
    ClusterNode,
    HierarchicalClusteringResult,
    KCoreResult,
    LaplacianType,
    Linkage,
    MCLResult,
    SpectralClusteringResult,
    calculate_mcl_modularity,
    cut_dendrogram,
    cut_dendrogram_k_clusters,
    degeneracy_ordering,
    get_k_core,
    get_k_core_subgraph,
    hierarchical_clustering,
    k_core_decomposition,
    k_truss,
    markov_clustering,
    modularity_hierarchical_clustering,
    spectral_clustering,
)
from graph_engine.algorithms.community import (
    CommunityResult,
    LabelPropagationResult,
    girvan_newman,
    label_propagation,
    label_propagation_semi_supervised,
    leiden,
    louvain,
)
from graph_engine.algorithms.components import (
    condensation_graph,
    connected_components,
    connected_components_dfs,
    get_connected_component,
    is_connected,
    is_strongly_connected,
    is_weakly_connected,
    largest_connected_component,
    number_of_connected_components,
    strongly_connected_components,
    weakly_connected_components,
)
from graph_engine.algorithms.flow import (
    BipartiteFlowNetwork,
    CutEdge,
    MaxFlowResult,
    MinCut,
    MinCutResult,
    create_bipartite_flow_network,
    edmonds_karp,
    ford_fulkerson,
    min_st_cut,
    stoer_wagner_min_cut,
)
from graph_engine.algorithms.link_analysis import (
    HITSResult,
    PageRankResult,
    eigenvector_centrality,
    hits,
    katz_centrality,
    node_hits,
    node_katz_centrality,
    pagerank,
    pagerank_centrality,
    personalized_pagerank,
    top_pagerank_nodes,
)
from graph_engine.algorithms.link_prediction import (
    LinkPredictionMetric,
    LinkPredictionMetrics,
    LinkPredictionScore,
    adamic_adar_for_pairs,
    adamic_adar_prediction,
    adamic_adar_score,
    common_neighbors_prediction,
    common_neighbors_score,
    compare_link_predictors,
    evaluate_link_prediction,
    get_top_candidates_for_node,
)
from graph_engine.algorithms.matching import (
    BipartitePartition,
    EdgeMatch,
    IsomorphismResult,
    MatchingResult,
    NodeMatch,
    bipartite_partition,
    find_all_isomorphisms,
    greedy_bipartite_matching,
    is_graph_isomorphic,
    maximum_bipartite_matching,
)
from graph_engine.algorithms.modularity import (
    calculate_modularity,
    communities_from_assignment,
    neighbor_community_weights,
    node_weighted_degree,
    total_edge_weight,
)
from graph_engine.algorithms.mst import (
    MSTResult,
    kruskal_mst,
    minimum_spanning_forest,
    minimum_spanning_tree,
    prim_mst,
)
from graph_engine.algorithms.shortest_path import (
    AStarResult,
    BellmanFordResult,
    FloydWarshallResult,
    ShortestPathResult,
    all_pairs_shortest_path,
    astar,
    bellman_ford,
    bellman_ford_path,
    bidirectional_dijkstra,
    dijkstra,
    dijkstra_path,
    euclidean_distance,
    floyd_warshall,
    floyd_warshall_path,
    has_negative_cycle,
    manhattan_distance,
    parse_grid_node,
    single_source_shortest_path,
    transitive_closure,
    zero_heuristic,
)
from graph_engine.algorithms.traversal import (
    PathCountingResult,
    TraversalResult,
    bfs_distances,
    bfs_with_path_counting,
    breadth_first_search,
    depth_first_search,
    find_cycle,
    has_cycle,
    is_bipartite,
    shortest_path_bfs,
    single_source_shortest_path_bfs,
    topological_sort,
)

__all__ = [
    # Traversal
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
    # Components
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
    # Shortest paths
    "AStarResult",
    "BellmanFordResult",
    "FloydWarshallResult",
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
    "has_negative_cycle",
    "manhattan_distance",
    "parse_grid_node",
    "single_source_shortest_path",
    "transitive_closure",
    "zero_heuristic",
    # Centrality
    "CentralityMode",
    "betweenness_centrality",
    "closeness_centrality",
    "degree_centrality",
    "edge_betweenness_centrality",
    "edge_betweenness_pairs",
    "node_betweenness_centrality",
    "node_closeness_centrality",
    "node_degree_centrality",
    # Link analysis
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
    # MST
    "MSTResult",
    "kruskal_mst",
    "minimum_spanning_forest",
    "minimum_spanning_tree",
    "prim_mst",
    # Modularity and communities
    "CommunityResult",
    "LabelPropagationResult",
    "calculate_modularity",
    "communities_from_assignment",
    "girvan_newman",
    "label_propagation",
    "label_propagation_semi_supervised",
    "leiden",
    "louvain",
    "neighbor_community_weights",
    "node_weighted_degree",
    "total_edge_weight",
    # Clustering
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
    # Flow and matching
    "BipartiteFlowNetwork",
    "BipartitePartition",
    "CutEdge",
    "MatchingResult",
    "MaxFlowResult",
    "MinCut",
    "MinCutResult",
    "bipartite_partition",
    "create_bipartite_flow_network",
    "edmonds_karp",
    "ford_fulkerson",
    "greedy_bipartite_matching",
    "maximum_bipartite_matching",
    "min_st_cut",
    "stoer_wagner_min_cut",
    # Isomorphism
    "EdgeMatch",
    "IsomorphismResult",
    "NodeMatch",
    "find_all_isomorphisms",
    "is_graph_isomorphic",
    # Link prediction
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
