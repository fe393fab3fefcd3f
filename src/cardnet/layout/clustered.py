"""Cluster-anchored placement used by auto layout."""

import logging
import math

from cardnet.graph.clusters import ClusterResult
from cardnet.graph.config import LayoutConfig
from cardnet.models.graph import Graph, Node, Position

logger = logging.getLogger(__name__)

PositionMap = dict[str, Position]


def rank_nodes(nodes: list[Node]) -> list[Node]:
    """Sort by 2 x connections + importance, descending; ties by id."""
    return sorted(nodes, key=lambda n: (-n.placement_rank, n.id))


def _ring(ids: list[str], cx: float, cy: float, radius: float) -> PositionMap:
    count = len(ids)
    return {
        node_id: Position(
            cx + radius * math.cos(index / count * 2 * math.pi),
            cy + radius * math.sin(index / count * 2 * math.pi),
        )
        for index, node_id in enumerate(ids)
    }


def _anchor(index: int, total: int, radius: float, config: LayoutConfig) -> tuple[float, float]:
    cx, cy = config.center
    angle = index / total * 2 * math.pi
    return cx + radius * math.cos(angle), cy + radius * math.sin(angle)


def place_cluster(members: list[Node], cx: float, cy: float, config: LayoutConfig) -> PositionMap:
    """Lay out one cluster around its anchor point."""
    ranked = rank_nodes(members)
    if len(ranked) == 1:
        return {ranked[0].id: Position(cx, cy)}
    if len(ranked) == 2:
        half = config.pair_distance / 2
        return {
            ranked[0].id: Position(cx - half, cy),
            ranked[1].id: Position(cx + half, cy),
        }

    main, rest = ranked[0], ranked[1:]
    radius = config.member_radius * min(config.member_radius_cap, len(rest) / 4)
    positions = {main.id: Position(cx, cy)}
    positions.update(_ring([n.id for n in rest], cx, cy, radius))
    return positions


def concentric_layout(graph: Graph, config: LayoutConfig) -> PositionMap:
    """Importance-ranked rings, used when the graph has no clusters."""
    cx, cy = config.center
    ranked = [n.id for n in rank_nodes(list(graph.nodes))]
    if not ranked:
        return {}
    if len(ranked) <= config.single_ring_limit:
        return _ring(ranked, cx, cy, config.short_side * config.single_ring_ratio)

    inner_end = 1 + config.inner_ring_size
    positions = {ranked[0]: Position(cx, cy)}
    positions.update(_ring(ranked[1:inner_end], cx, cy, config.inner_radius))
    if ranked[inner_end:]:
        positions.update(_ring(ranked[inner_end:], cx, cy, config.outer_radius))
    return positions


def cluster_layout(graph: Graph, clusters: ClusterResult, config: LayoutConfig | None = None) -> PositionMap:
    """Place clusters evenly around the canvas center.

    Isolated nodes are grouped as one extra virtual cluster further out.
    Without any cluster the concentric layout is used instead.

    Args:
        graph: Graph snapshot
        clusters: Cluster detector output for the same graph
        config: Layout constants

    Returns:
        Position map covering every node of the graph (before collision pass)
    """
    config = config or LayoutConfig()
    if not clusters.clusters:
        return concentric_layout(graph, config)

    index = graph.node_index
    isolated = [node_id for node_id in clusters.isolated if node_id in index]
    total_groups = len(clusters.clusters) + (1 if isolated else 0)
    cluster_radius = config.short_side * config.cluster_ring_ratio

    positions: PositionMap = {}
    for i, cluster in enumerate(clusters.clusters):
        members = [index[node_id] for node_id in cluster if node_id in index]
        if not members:
            continue
        cx, cy = _anchor(i, total_groups, cluster_radius, config)
        positions.update(place_cluster(members, cx, cy, config))

    if isolated:
        cx, cy = _anchor(
            len(clusters.clusters), total_groups, config.short_side * config.isolated_ring_ratio, config
        )
        if len(isolated) == 1:
            positions[isolated[0]] = Position(cx, cy)
        else:
            positions.update(_ring(isolated, cx, cy, config.isolated_radius))

    # Nodes missing from the cluster result still need a position
    for node in graph.nodes:
        if node.id not in positions:
            logger.debug(f"Node {node.id} missing from cluster result, placing at center")
            positions[node.id] = Position(*config.center)

    logger.debug(f"Cluster layout: {len(clusters.clusters)} clusters, {len(isolated)} isolated")
    return positions
