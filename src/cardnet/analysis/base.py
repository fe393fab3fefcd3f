"""Common interface of the relationship analysis methods."""

from typing import Literal, Protocol

from cardnet.models.card import Card

AnalysisMode = Literal["incremental", "full"]


class AnalysisProvider(Protocol):
    """One analysis method proposing candidate relationships for a board.

    Each result item carries sourceCardId, targetCardId, relationshipType,
    similarity, confidence and explanation; absent fields are defaulted by
    the aggregator.
    """

    async def analyze(self, board_id: str, cards: list[Card], mode: AnalysisMode) -> list[dict]:
        ...


def result_item(
    source_card_id: str,
    target_card_id: str,
    relationship_type: str,
    similarity: float | None,
    confidence: float | None,
    explanation: str,
    strength: float | None = None,
    **extra: object,
) -> dict:
    """Build one result item in the collaborator wire shape."""
    item: dict = {
        "sourceCardId": source_card_id,
        "targetCardId": target_card_id,
        "relationshipType": relationship_type,
        "similarity": similarity,
        "confidence": confidence,
        "explanation": explanation,
    }
    if strength is not None:
        item["suggestedStrength"] = strength
    item.update(extra)
    return item
