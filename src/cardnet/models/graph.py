"""Typed node/edge graph produced by the graph builder."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from cardnet.models.card import CardCategory


class SizeClass(str, Enum):
    """Display size band of a node, derived from its importance score."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"

    @property
    def pixels(self) -> float:
        """Rendered diameter used for spacing and collision checks."""
        return SIZE_PIXELS[self]

    @classmethod
    def from_importance(cls, score: float) -> "SizeClass":
        """Step function over the importance score (four bands)."""
        if score >= 8:
            return cls.XLARGE
        if score >= 5:
            return cls.LARGE
        if score >= 3:
            return cls.MEDIUM
        return cls.SMALL


SIZE_PIXELS: dict[SizeClass, float] = {
    SizeClass.SMALL: 28.0,
    SizeClass.MEDIUM: 38.0,
    SizeClass.LARGE: 48.0,
    SizeClass.XLARGE: 58.0,
}

EDGE_COLORS: dict[str, str] = {
    "manual": "#00ff88",
    "semantic": "#ffa500",
    "derived": "#64b5f6",
    "tag_similarity": "#26c6da",
    "ai": "#ffd93d",
}
DEFAULT_EDGE_COLOR = "#6c7086"


@dataclass(frozen=True)
class Position:
    """2D canvas coordinate."""

    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Node:
    """One visualized card with its derived metrics."""

    id: str
    title: str
    content: str
    category: CardCategory
    tags: tuple[str, ...] = ()

    # Derived at build time
    connection_count: int = 0
    centrality: float = 0.0
    content_density: float = 0.0
    category_weight: float = 0.0
    recency_weight: float = 0.0
    importance_score: float = 0.0
    size_class: SizeClass = SizeClass.SMALL

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def size(self) -> float:
        """Pixel diameter of the node."""
        return self.size_class.pixels

    @property
    def placement_rank(self) -> float:
        """Ordering key used when a node must be picked as a group anchor."""
        return self.connection_count * 2 + self.importance_score

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "type": self.category.value,
            "color": self.category.color,
            "icon": self.category.icon,
            "tags": list(self.tags),
            "size": self.size_class.value,
            "connection_count": self.connection_count,
            "metadata": {
                "importance_score": self.importance_score,
                "centrality": self.centrality,
                "content_density": self.content_density,
                "type_weight": self.category_weight,
                "recency_weight": self.recency_weight,
            },
        }


@dataclass(frozen=True)
class Edge:
    """
    A weighted relationship between two nodes.

    Stored as source -> target for provenance; undirected for clustering and
    layout.
    """

    source: str
    target: str
    strength: float
    relationship_type: str

    @property
    def id(self) -> str:
        return f"{self.source}-{self.target}"

    @property
    def width(self) -> float:
        """Rendering width derived from strength."""
        return max(2.0, self.strength * 4)

    @property
    def color(self) -> str:
        return EDGE_COLORS.get(self.relationship_type, DEFAULT_EDGE_COLOR)

    def other(self, node_id: str) -> str:
        """Endpoint opposite to node_id."""
        return self.target if node_id == self.source else self.source

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "strength": self.strength,
            "type": self.relationship_type,
            "width": self.width,
            "color": self.color,
        }


@dataclass(frozen=True)
class GraphMetrics:
    """Whole-graph summary numbers."""

    total_nodes: int = 0
    total_edges: int = 0
    average_connections: float = 0.0
    network_density: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "average_connections": self.average_connections,
            "network_density": self.network_density,
        }


@dataclass(frozen=True)
class Graph:
    """One immutable graph snapshot."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    metrics: GraphMetrics = field(default_factory=GraphMetrics)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_index", MappingProxyType({node.id: node for node in self.nodes})
        )

    @property
    def node_index(self) -> Mapping[str, Node]:
        """Read-only id -> node mapping."""
        return self._index  # type: ignore[attr-defined]

    def get_node(self, node_id: str) -> Node | None:
        return self.node_index.get(node_id)

    def neighbors(self, node_id: str) -> set[str]:
        """Ids of nodes sharing an edge with node_id."""
        result: set[str] = set()
        for edge in self.edges:
            if edge.source == node_id:
                result.add(edge.target)
            elif edge.target == node_id:
                result.add(edge.source)
        return result

    def sizes(self) -> dict[str, float]:
        """Pixel size per node id."""
        return {node.id: node.size for node in self.nodes}

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "metrics": self.metrics.to_dict(),
        }
