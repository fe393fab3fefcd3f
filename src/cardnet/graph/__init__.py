"""Graph construction and clustering for the analysis view.

Provides:
- View configuration (node/edge filters)
- Graph building with per-node importance metrics
- Threshold-based cluster detection
"""

from cardnet.graph.builder import build_graph
from cardnet.graph.clusters import ClusterResult, ClusterSummary, detect_clusters, summarize_cluster
from cardnet.graph.config import ImportanceConfig, LayoutConfig
from cardnet.graph.filters import EdgeFilter, NetworkConfig, NodeFilter

__all__ = [
    # Config
    "ImportanceConfig",
    "LayoutConfig",
    "NetworkConfig",
    "EdgeFilter",
    "NodeFilter",
    # Builder
    "build_graph",
    # Clusters
    "ClusterResult",
    "ClusterSummary",
    "detect_clusters",
    "summarize_cluster",
]
