"""Relationship analysis methods (embedding, tag similarity, derived rules)."""

from cardnet.analysis.base import AnalysisMode, AnalysisProvider
from cardnet.analysis.derived import DerivedRelationshipAnalyzer, DerivedRulesConfig
from cardnet.analysis.http_provider import HttpSimilarityProvider
from cardnet.analysis.tag_similarity import TagSimilarityAnalyzer, TagSimilarityConfig

__all__ = [
    "AnalysisMode",
    "AnalysisProvider",
    "DerivedRelationshipAnalyzer",
    "DerivedRulesConfig",
    "HttpSimilarityProvider",
    "TagSimilarityAnalyzer",
    "TagSimilarityConfig",
]
