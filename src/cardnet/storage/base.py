"""Storage collaborator interface and an in-memory implementation."""

import logging
import uuid
from collections import defaultdict
from typing import Any, Protocol

from cardnet.models.card import Card, Relationship

logger = logging.getLogger(__name__)


class CardStore(Protocol):
    """Card and relationship persistence consumed by the engine."""

    async def list_cards(self, board_id: str) -> list[Card]:
        ...

    async def list_relationships(self, board_id: str) -> list[Relationship]:
        ...

    async def create_relationship(
        self,
        board_id: str,
        source_card_id: str,
        target_card_id: str,
        relationship_type: str,
        strength: float,
        confidence: float,
        metadata: dict[str, Any],
    ) -> Relationship:
        ...


class InMemoryCardStore:
    """Dict-backed store for scripts and tests."""

    def __init__(self) -> None:
        self._cards: dict[str, list[Card]] = defaultdict(list)
        self._relationships: dict[str, list[Relationship]] = defaultdict(list)

    def add_cards(self, board_id: str, cards: list[Card]) -> None:
        self._cards[board_id].extend(cards)

    def add_relationships(self, board_id: str, relationships: list[Relationship]) -> None:
        self._relationships[board_id].extend(relationships)

    async def list_cards(self, board_id: str) -> list[Card]:
        return list(self._cards.get(board_id, []))

    async def list_relationships(self, board_id: str) -> list[Relationship]:
        return list(self._relationships.get(board_id, []))

    async def create_relationship(
        self,
        board_id: str,
        source_card_id: str,
        target_card_id: str,
        relationship_type: str,
        strength: float,
        confidence: float,
        metadata: dict[str, Any],
    ) -> Relationship:
        relationship = Relationship(
            card_id=source_card_id,
            related_card_id=target_card_id,
            strength=strength,
            relationship_type=relationship_type,
            id=str(uuid.uuid4()),
            confidence=confidence,
            metadata=dict(metadata),
        )
        self._relationships[board_id].append(relationship)
        logger.debug(f"Created {relationship_type} relationship {source_card_id} -> {target_card_id}")
        return relationship
