"""cardnet data models."""

from cardnet.models.card import Card, CardCategory, Relationship, pair_key
from cardnet.models.graph import Edge, Graph, GraphMetrics, Node, Position, SizeClass
from cardnet.models.suggestion import AnalysisMethod, Suggestion

__all__ = [
    "Card",
    "CardCategory",
    "Relationship",
    "pair_key",
    "Node",
    "Edge",
    "Graph",
    "GraphMetrics",
    "Position",
    "SizeClass",
    "AnalysisMethod",
    "Suggestion",
]
