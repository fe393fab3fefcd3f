"""Layout session: owner of the position map across graph rebuilds."""

import logging
import random

from cardnet.config import settings
from cardnet.graph.clusters import ClusterResult
from cardnet.graph.config import LayoutConfig
from cardnet.layout.clustered import cluster_layout
from cardnet.layout.collision import clamp_to_canvas, resolve_collisions
from cardnet.layout.organic import organic_layout
from cardnet.models.graph import Graph, Position

logger = logging.getLogger(__name__)

PositionMap = dict[str, Position]


class LayoutSession:
    """
    Holds the position map, the initial-layout flag and the random source.

    Only this object mutates the position map; hosts read it through
    `positions` or `to_dict()`.
    """

    def __init__(self, config: LayoutConfig | None = None, seed: int | None = None) -> None:
        self.config = config or LayoutConfig()
        self.seed = seed if seed is not None else settings.layout_seed
        self.rng = random.Random(self.seed)
        self._positions: PositionMap = {}
        self.has_initial_layout = False

    @property
    def positions(self) -> PositionMap:
        """Copy of the current position map."""
        return dict(self._positions)

    def position_of(self, node_id: str) -> Position | None:
        return self._positions.get(node_id)

    def _finish(self, graph: Graph, positions: PositionMap) -> PositionMap:
        sizes = graph.sizes()
        resolved = resolve_collisions(positions, sizes, self.config)
        return clamp_to_canvas(resolved, sizes, self.config)

    def ensure_layout(self, graph: Graph) -> PositionMap:
        """Apply the initial organic layout once, then keep positions in sync."""
        if not self.has_initial_layout:
            return self.reset(graph)
        return self.sync(graph)

    def sync(self, graph: Graph) -> PositionMap:
        """Follow a rebuilt graph.

        Surviving nodes keep their position, new nodes are placed organically
        around them and removed nodes are dropped.
        """
        kept = {node.id: self._positions[node.id] for node in graph.nodes if node.id in self._positions}
        new_count = len(graph.nodes) - len(kept)
        positions = organic_layout(graph, self.rng, self.config, existing=kept)
        self._positions = clamp_to_canvas(positions, graph.sizes(), self.config)
        if new_count:
            logger.debug(f"Placed {new_count} new nodes around {len(kept)} existing")
        return self.positions

    def reset(self, graph: Graph) -> PositionMap:
        """Discard every position and run a fresh organic layout."""
        positions = organic_layout(graph, self.rng, self.config)
        self._positions = self._finish(graph, positions)
        self.has_initial_layout = True
        logger.info(f"Organic layout applied to {len(self._positions)} nodes")
        return self.positions

    def auto_layout(self, graph: Graph, clusters: ClusterResult) -> PositionMap:
        """Replace the position map with the cluster-anchored layout."""
        positions = cluster_layout(graph, clusters, self.config)
        self._positions = self._finish(graph, positions)
        self.has_initial_layout = True
        logger.info(
            f"Auto layout applied: {len(clusters.clusters)} clusters, {len(self._positions)} nodes"
        )
        return self.positions

    def to_dict(self) -> dict:
        return {node_id: pos.to_dict() for node_id, pos in self._positions.items()}
