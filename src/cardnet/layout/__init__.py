"""Layout engine: organic placement, cluster-anchored placement and collision resolution."""

from cardnet.layout.clustered import cluster_layout, concentric_layout
from cardnet.layout.collision import clamp_to_canvas, resolve_collisions
from cardnet.layout.organic import organic_layout
from cardnet.layout.session import LayoutSession

__all__ = [
    "LayoutSession",
    "organic_layout",
    "cluster_layout",
    "concentric_layout",
    "resolve_collisions",
    "clamp_to_canvas",
]
