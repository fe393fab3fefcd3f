"""Tunable constants for graph scoring and layout."""

from dataclasses import dataclass, field

from cardnet.config import settings
from cardnet.models.card import CATEGORY_WEIGHTS, CardCategory


@dataclass
class ImportanceConfig:
    """Configuration for the per-node importance score."""

    # Component weights of the importance score
    centrality_weight: float = 0.4
    content_density_weight: float = 0.01
    category_weight: float = 0.3
    recency_weight: float = 0.3

    # Centrality: |1-hop| + second_hop_weight * |2-hop|
    second_hop_weight: float = field(
        default_factory=lambda: settings.centrality_second_hop_weight
    )

    # Content density: len(content) + title_factor * len(title) + tag_factor * len(tags)
    title_factor: float = 2.0
    tag_factor: float = 10.0

    # Recency: max(floor, 1 - days / window)
    recency_window_days: float = field(default_factory=lambda: settings.recency_window_days)
    recency_floor: float = field(default_factory=lambda: settings.recency_floor)

    category_weights: dict[CardCategory, float] = field(
        default_factory=lambda: dict(CATEGORY_WEIGHTS)
    )


@dataclass
class LayoutConfig:
    """Configuration for organic placement, cluster placement and collision resolution."""

    width: float = field(default_factory=lambda: settings.canvas_width)
    height: float = field(default_factory=lambda: settings.canvas_height)

    # Organic placement
    max_attempts: int = field(default_factory=lambda: settings.placement_max_attempts)
    band_every: int = field(default_factory=lambda: settings.placement_band_every)
    band_growth: float = 0.3  # Radius multiplier added per band
    band_radius_ratio: float = 0.4  # Of min(width, height)
    min_center_distance: float = 30.0
    distance_exponent: float = 0.7  # < 1 favours positions away from the center
    jitter_base: float = 40.0
    jitter_per_band: float = 20.0
    placement_padding: float = field(default_factory=lambda: settings.placement_padding)
    own_size_spacing: float = 1.5  # Minimum distance as a multiple of own size
    placement_margin: float = 20.0
    fallback_margin: float = 30.0
    importance_cutoff: float = field(default_factory=lambda: settings.importance_pull_cutoff)
    importance_pull: float = field(default_factory=lambda: settings.importance_pull_ratio)

    # Cluster-anchored placement
    cluster_ring_ratio: float = 0.35  # Cluster anchors, of min(width, height)
    isolated_ring_ratio: float = 0.4  # Virtual cluster of isolated nodes
    member_radius: float = 180.0
    member_radius_cap: float = 1.3
    pair_distance: float = 140.0
    isolated_radius: float = 160.0

    # Concentric fallback when there are no clusters
    single_ring_limit: int = 6
    single_ring_ratio: float = 0.25
    inner_ring_size: int = 6
    inner_radius: float = 200.0
    outer_radius: float = 350.0

    # Collision resolution
    collision_padding: float = field(default_factory=lambda: settings.collision_padding)
    max_iterations: int = field(default_factory=lambda: settings.collision_max_iterations)
    push_extra: float = field(default_factory=lambda: settings.collision_push_extra)
    collision_margin: float = 40.0

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    @property
    def short_side(self) -> float:
        return min(self.width, self.height)
