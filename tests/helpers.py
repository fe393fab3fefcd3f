"""Card, relationship and provider builders shared by the unit tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from cardnet.analysis import AnalysisProvider
from cardnet.models import Card, CardCategory, Relationship

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_card(
    card_id: str,
    category: CardCategory = CardCategory.INBOX,
    tags: list[str] | None = None,
    title: str | None = None,
    content: str = "",
    created_at: datetime | None = None,
    metadata: dict | None = None,
) -> Card:
    """Build a card with sensible defaults."""
    created = created_at or NOW
    return Card(
        id=card_id,
        title=title if title is not None else f"Card {card_id}",
        content=content,
        category=category,
        tags=list(tags or []),
        created_at=created,
        updated_at=created,
        metadata=dict(metadata or {}),
    )


def make_rel(a: str, b: str, strength: float = 0.5, relationship_type: str = "manual") -> Relationship:
    return Relationship(card_id=a, related_card_id=b, strength=strength, relationship_type=relationship_type)


def mock_provider(results: list[dict] | None = None, error: Exception | None = None) -> AnalysisProvider:
    """Analysis provider returning fixed results or raising."""
    provider = MagicMock()
    provider.close = AsyncMock()
    if error is not None:
        provider.analyze = AsyncMock(side_effect=error)
    else:
        provider.analyze = AsyncMock(return_value=list(results or []))
    return provider
