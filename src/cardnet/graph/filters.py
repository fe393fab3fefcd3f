"""View configuration accepted from the host.

This is the only accepted configuration shape; unknown keys are rejected.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cardnet.models.card import CardCategory

ViewMode = Literal["circular", "card", "hybrid"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class EdgeFilter(_StrictModel):
    """Which relationships become edges."""

    min_strength: float = Field(default=0.0, ge=0.0, le=1.0, alias="minStrength")
    types: frozenset[str] | None = None  # None keeps every relationship type

    def accepts(self, strength: float, relationship_type: str) -> bool:
        if strength < self.min_strength:
            return False
        return self.types is None or relationship_type in self.types


class NodeFilter(_StrictModel):
    """Which cards become nodes."""

    types: frozenset[CardCategory] | None = None  # None or empty keeps every category
    tags: frozenset[str] | None = None  # Any-match; None or empty keeps every card

    def accepts(self, category: CardCategory, tags: list[str] | tuple[str, ...]) -> bool:
        if self.types and category not in self.types:
            return False
        if self.tags and not self.tags.intersection(tags):
            return False
        return True


class NetworkConfig(_StrictModel):
    """Analysis view configuration."""

    view_mode: ViewMode = Field(default="hybrid", alias="viewMode")
    edge_filter: EdgeFilter = Field(default_factory=EdgeFilter, alias="edgeFilter")
    node_filter: NodeFilter = Field(default_factory=NodeFilter, alias="nodeFilter")
