"""Candidate relationships proposed by the analysis methods."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from cardnet.config import settings
from cardnet.models.card import pair_key


class AnalysisMethod(str, Enum):
    """Analysis method that proposed a relationship."""

    EMBEDDING = "embedding"
    TAG_SIMILARITY = "tag_similarity"
    DERIVED = "derived"

    @property
    def label(self) -> str:
        return METHOD_DISPLAY[self][0]

    @property
    def icon(self) -> str:
        return METHOD_DISPLAY[self][1]

    @property
    def relationship_type(self) -> str:
        """Relationship type persisted when a suggestion of this method is approved."""
        return METHOD_RELATIONSHIP_TYPES[self]

    @property
    def default_confidence(self) -> float:
        """Confidence used when the method's result omits one."""
        if self is AnalysisMethod.EMBEDDING:
            return settings.embedding_default_confidence
        if self is AnalysisMethod.TAG_SIMILARITY:
            return settings.tag_similarity_default_confidence
        return settings.derived_default_confidence


# (label, icon) per method
METHOD_DISPLAY: dict[AnalysisMethod, tuple[str, str]] = {
    AnalysisMethod.EMBEDDING: ("Semantic analysis", "🤖"),
    AnalysisMethod.TAG_SIMILARITY: ("Tag similarity", "🏷️"),
    AnalysisMethod.DERIVED: ("Derived relationship", "🔗"),
}

METHOD_RELATIONSHIP_TYPES: dict[AnalysisMethod, str] = {
    AnalysisMethod.EMBEDDING: "semantic",
    AnalysisMethod.TAG_SIMILARITY: "tag_similarity",
    AnalysisMethod.DERIVED: "derived",
}

# Order in which method results are concatenated before deduplication
METHOD_ORDER: tuple[AnalysisMethod, ...] = (
    AnalysisMethod.EMBEDDING,
    AnalysisMethod.TAG_SIMILARITY,
    AnalysisMethod.DERIVED,
)


def _first(item: dict, *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _unit(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class Suggestion:
    """An unconfirmed candidate relationship between two cards."""

    source_card_id: str
    target_card_id: str
    method: AnalysisMethod
    relationship_type: str
    similarity: float
    confidence: float  # 0.0 - 1.0
    suggested_strength: float
    explanation: str = ""

    @property
    def pair(self) -> tuple[str, str]:
        """Canonical unordered pair; (a, b) and (b, a) are the same candidate."""
        return pair_key(self.source_card_id, self.target_card_id)

    @property
    def method_label(self) -> str:
        return self.method.label

    @property
    def method_icon(self) -> str:
        return self.method.icon

    def to_dict(self) -> dict:
        return {
            "source_card_id": self.source_card_id,
            "target_card_id": self.target_card_id,
            "analysis_method": self.method.value,
            "method_label": self.method_label,
            "method_icon": self.method_icon,
            "relationship_type": self.relationship_type,
            "similarity": self.similarity,
            "confidence": self.confidence,
            "suggested_strength": self.suggested_strength,
            "explanation": self.explanation,
        }

    @classmethod
    def from_result(cls, method: AnalysisMethod, item: dict) -> "Suggestion":
        """Map one analysis result item into the common shape.

        Accepts camelCase (collaborator wire shape) or snake_case keys. Missing
        confidence falls back to the method default; missing similarity and
        strength fall back to the confidence.
        """
        confidence = _first(item, "confidence")
        confidence = method.default_confidence if confidence is None else _unit(confidence)
        similarity = _first(item, "similarity")
        strength = _first(item, "suggestedStrength", "suggested_strength", "strength")
        return cls(
            source_card_id=str(_first(item, "sourceCardId", "source_card_id")),
            target_card_id=str(_first(item, "targetCardId", "target_card_id")),
            method=method,
            relationship_type=_first(item, "relationshipType", "relationship_type")
            or method.relationship_type,
            similarity=confidence if similarity is None else float(similarity),
            confidence=confidence,
            suggested_strength=confidence if strength is None else _unit(strength),
            explanation=_first(item, "explanation") or "",
        )
