"""Cluster detection: connected components under a strength threshold."""

import logging
from collections import Counter
from dataclasses import dataclass, field

from cardnet.models.graph import Graph

logger = logging.getLogger(__name__)

Cluster = tuple[str, ...]


@dataclass(frozen=True)
class ClusterResult:
    """Partition of a graph's nodes into clusters (size >= 2) and isolated nodes."""

    clusters: tuple[Cluster, ...] = ()
    isolated: tuple[str, ...] = ()
    threshold: float = 0.0
    threshold_applied: bool = False

    @property
    def clustered_ids(self) -> set[str]:
        return {node_id for cluster in self.clusters for node_id in cluster}

    def cluster_of(self, node_id: str) -> int | None:
        """Index of the cluster containing node_id, or None if isolated/unknown."""
        for i, cluster in enumerate(self.clusters):
            if node_id in cluster:
                return i
        return None

    def to_dict(self) -> dict:
        return {
            "clusters": [list(c) for c in self.clusters],
            "isolated": list(self.isolated),
            "threshold": self.threshold,
            "threshold_applied": self.threshold_applied,
        }


@dataclass
class ClusterSummary:
    """Descriptive summary of one cluster."""

    index: int
    size: int
    anchor_id: str  # Most important member
    dominant_tags: list[str] = field(default_factory=list)
    dominant_categories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "size": self.size,
            "anchor_id": self.anchor_id,
            "dominant_tags": self.dominant_tags,
            "dominant_categories": self.dominant_categories,
        }


def build_adjacency(graph: Graph, threshold: float, apply_threshold: bool) -> dict[str, list[str]]:
    """Undirected adjacency list over the retained edges, in edge order."""
    adjacency: dict[str, list[str]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        if apply_threshold and edge.strength < threshold:
            continue
        if edge.source not in adjacency or edge.target not in adjacency:
            continue
        adjacency[edge.source].append(edge.target)
        adjacency[edge.target].append(edge.source)
    return adjacency


def _component(start: str, adjacency: dict[str, list[str]], visited: set[str]) -> list[str]:
    """Iterative depth-first traversal, first neighbour first."""
    component: list[str] = []
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        component.append(node_id)
        # Reversed so the first neighbour is popped first
        for neighbor_id in reversed(adjacency[node_id]):
            if neighbor_id not in visited:
                stack.append(neighbor_id)
    return component


def detect_clusters(
    graph: Graph,
    threshold: float = 0.3,
    apply_threshold: bool = True,
) -> ClusterResult:
    """Partition the graph into connected clusters and isolated nodes.

    Args:
        graph: Graph snapshot
        threshold: Minimum edge strength kept (clamped to [0, 1])
        apply_threshold: When False every edge is kept

    Returns:
        ClusterResult; every node is in exactly one cluster or the isolated set
    """
    threshold = min(1.0, max(0.0, threshold))
    adjacency = build_adjacency(graph, threshold, apply_threshold)

    visited: set[str] = set()
    clusters: list[Cluster] = []
    isolated: list[str] = []

    for node in graph.nodes:
        if node.id in visited:
            continue
        component = _component(node.id, adjacency, visited)
        if len(component) > 1:
            clusters.append(tuple(component))
        else:
            isolated.append(node.id)

    logger.debug(
        f"Detected {len(clusters)} clusters, {len(isolated)} isolated "
        f"(threshold={threshold}, applied={apply_threshold})"
    )
    return ClusterResult(
        clusters=tuple(clusters),
        isolated=tuple(isolated),
        threshold=threshold,
        threshold_applied=apply_threshold,
    )


def summarize_cluster(graph: Graph, cluster: Cluster, index: int, top_n: int = 3) -> ClusterSummary:
    """Describe a cluster by its anchor node and most frequent tags/categories."""
    members = [graph.node_index[node_id] for node_id in cluster if node_id in graph.node_index]
    anchor = max(members, key=lambda n: (n.placement_rank, n.id))
    tag_counts = Counter(tag for member in members for tag in member.tags)
    category_counts = Counter(member.category.value for member in members)
    return ClusterSummary(
        index=index,
        size=len(members),
        anchor_id=anchor.id,
        dominant_tags=[tag for tag, _ in tag_counts.most_common(top_n)],
        dominant_categories=[cat for cat, _ in category_counts.most_common(top_n)],
    )
