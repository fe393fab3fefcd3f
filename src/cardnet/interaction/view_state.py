"""Viewport and selection state of the analysis view."""

import logging
from dataclasses import dataclass, field

from cardnet.graph.filters import NodeFilter
from cardnet.models.card import CardCategory
from cardnet.models.graph import Graph

logger = logging.getLogger(__name__)

MIN_SCALE = 0.2
MAX_SCALE = 3.0
WHEEL_OUT = 0.9
WHEEL_IN = 1.1
BUTTON_STEP = 1.2


@dataclass
class Transform:
    """Pan offset and zoom scale applied by the rendering surface."""

    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "scale": self.scale}


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


@dataclass
class ViewState:
    """Interaction state: transform, selection, hover, overlays and filters."""

    transform: Transform = field(default_factory=Transform)
    selected_node: str | None = None
    highlighted_nodes: set[str] = field(default_factory=set)
    hovered_node: str | None = None
    show_clusters: bool = False
    tag_filters: list[str] = field(default_factory=list)
    type_filters: list[CardCategory] = field(default_factory=list)

    # Viewport

    def pan(self, dx: float, dy: float) -> Transform:
        self.transform.x += dx
        self.transform.y += dy
        return self.transform

    def zoom_wheel(self, delta_y: float) -> Transform:
        """Wheel zoom: scrolling down zooms out, up zooms in."""
        factor = WHEEL_OUT if delta_y > 0 else WHEEL_IN
        self.transform.scale = clamp_scale(self.transform.scale * factor)
        return self.transform

    def zoom_in(self) -> Transform:
        self.transform.scale = clamp_scale(self.transform.scale * BUTTON_STEP)
        return self.transform

    def zoom_out(self) -> Transform:
        self.transform.scale = clamp_scale(self.transform.scale / BUTTON_STEP)
        return self.transform

    # Selection

    def select(self, node_id: str, graph: Graph) -> set[str]:
        """Select a node and highlight its direct neighbours.

        An id missing from the graph clears the selection instead.
        """
        if graph.get_node(node_id) is None:
            self.clear_selection()
            return set()
        self.selected_node = node_id
        self.highlighted_nodes = graph.neighbors(node_id)
        return set(self.highlighted_nodes)

    def hover(self, node_id: str | None) -> None:
        self.hovered_node = node_id

    def clear_selection(self) -> None:
        self.selected_node = None
        self.highlighted_nodes = set()

    def prune(self, graph: Graph) -> None:
        """Forget selection/hover of nodes no longer in the graph."""
        if self.selected_node is not None and graph.get_node(self.selected_node) is None:
            self.clear_selection()
        elif self.selected_node is not None:
            self.highlighted_nodes = graph.neighbors(self.selected_node)
        if self.hovered_node is not None and graph.get_node(self.hovered_node) is None:
            self.hovered_node = None

    def toggle_clusters(self) -> bool:
        self.show_clusters = not self.show_clusters
        return self.show_clusters

    def reset(self) -> None:
        """Back to the default viewport with nothing selected and no overlay."""
        self.transform = Transform()
        self.clear_selection()
        self.hovered_node = None
        self.show_clusters = False

    # Filters

    def toggle_tag_filter(self, tag: str) -> list[str]:
        if tag in self.tag_filters:
            self.tag_filters.remove(tag)
        else:
            self.tag_filters.append(tag)
        return list(self.tag_filters)

    def toggle_type_filter(self, category: CardCategory | str) -> list[CardCategory]:
        category = CardCategory(category)
        if category in self.type_filters:
            self.type_filters.remove(category)
        else:
            self.type_filters.append(category)
        return list(self.type_filters)

    def node_filter(self, base: NodeFilter | None = None) -> NodeFilter:
        """Combine the host's node filter with the active toggles.

        Toggled filters take precedence over the base filter on their axis.
        """
        base = base or NodeFilter()
        return NodeFilter(
            types=frozenset(self.type_filters) if self.type_filters else base.types,
            tags=frozenset(self.tag_filters) if self.tag_filters else base.tags,
        )

    def to_dict(self) -> dict:
        return {
            "transform": self.transform.to_dict(),
            "selected_node": self.selected_node,
            "highlighted_nodes": sorted(self.highlighted_nodes),
            "hovered_node": self.hovered_node,
            "show_clusters": self.show_clusters,
            "tag_filters": list(self.tag_filters),
            "type_filters": [c.value for c in self.type_filters],
        }
