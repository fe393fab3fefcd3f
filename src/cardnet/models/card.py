"""Card and relationship records as delivered by the storage collaborator."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


def parse_datetime(value: Any) -> datetime | None:
    """Parse datetime from various formats (string, Neo4j DateTime, or native datetime).

    Naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif hasattr(value, "to_native"):
        # Neo4j DateTime object
        parsed = value.to_native()
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CardCategory(str, Enum):
    """Board column a card lives in."""

    INBOX = "INBOX"
    QUESTIONS = "QUESTIONS"
    INSIGHTS = "INSIGHTS"
    THEMES = "THEMES"
    ACTIONS = "ACTIONS"

    @property
    def weight(self) -> int:
        """Default importance weight (most synthesized category highest)."""
        return CATEGORY_WEIGHTS[self]

    @property
    def color(self) -> str:
        return CATEGORY_STYLE[self][0]

    @property
    def icon(self) -> str:
        return CATEGORY_STYLE[self][1]

    @classmethod
    def parse(cls, value: "str | CardCategory | None") -> "CardCategory":
        """Parse a stored column type, treating unknown values as INBOX."""
        if isinstance(value, CardCategory):
            return value
        if not value:
            return cls.INBOX
        try:
            return cls(str(value).upper())
        except ValueError:
            logger.warning(f"Unknown card category '{value}', treating as INBOX")
            return cls.INBOX


CATEGORY_WEIGHTS: dict[CardCategory, int] = {
    CardCategory.THEMES: 5,
    CardCategory.INSIGHTS: 4,
    CardCategory.ACTIONS: 3,
    CardCategory.QUESTIONS: 2,
    CardCategory.INBOX: 1,
}

# (color, icon) per category
CATEGORY_STYLE: dict[CardCategory, tuple[str, str]] = {
    CardCategory.INBOX: ("#6c7086", "📥"),
    CardCategory.QUESTIONS: ("#ffd93d", "❓"),
    CardCategory.INSIGHTS: ("#9c27b0", "💡"),
    CardCategory.THEMES: ("#64b5f6", "🎯"),
    CardCategory.ACTIONS: ("#ffa500", "⚡"),
}


@dataclass
class Card:
    """
    A content card on a board.

    Only the fields the analysis view needs are modelled; anything else the
    store returns is kept in metadata.
    """

    id: str
    title: str
    content: str = ""
    category: CardCategory = CardCategory.INBOX
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def last_touched(self) -> datetime | None:
        """Update time, falling back to creation time."""
        return self.updated_at or self.created_at

    def to_dict(self) -> dict:
        """Convert to the storage collaborator's card shape."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "column_type": self.category.value,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        """Create from a store record (snake_case or camelCase keys)."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            content=data.get("content") or "",
            category=CardCategory.parse(data.get("column_type") or data.get("columnType")),
            tags=list(data.get("tags") or []),
            created_at=parse_datetime(data.get("created_at") or data.get("createdAt")),
            updated_at=parse_datetime(data.get("updated_at") or data.get("updatedAt")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class Relationship:
    """
    A persisted, weighted relationship between two cards.

    Stored directionally (card_id -> related_card_id) for provenance; the
    analysis view treats it as undirected.
    """

    card_id: str
    related_card_id: str
    strength: float = 0.5  # 0.0 - 1.0
    relationship_type: str = "manual"

    id: str | None = None
    confidence: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def pair(self) -> tuple[str, str]:
        """Canonical unordered pair of card ids."""
        return pair_key(self.card_id, self.related_card_id)

    def to_dict(self) -> dict:
        """Convert to the storage collaborator's relationship shape."""
        return {
            "id": self.id,
            "card_id": self.card_id,
            "related_card_id": self.related_card_id,
            "strength": self.strength,
            "relationship_type": self.relationship_type,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Relationship":
        """Create from a store record (snake_case or camelCase keys)."""
        return cls(
            card_id=str(data.get("card_id") or data.get("cardId")),
            related_card_id=str(data.get("related_card_id") or data.get("relatedCardId")),
            strength=float(data.get("strength", 0.5)),
            relationship_type=data.get("relationship_type") or data.get("relationshipType") or "manual",
            id=data.get("id"),
            confidence=data.get("confidence"),
            metadata=dict(data.get("metadata") or {}),
        )


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for a card pair: (a, b) and (b, a) map to the same key."""
    return (a, b) if a <= b else (b, a)
