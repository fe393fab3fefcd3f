"""Neo4j-backed card and relationship store."""

import json
import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import Neo4jError, ServiceUnavailable

from cardnet.config import settings
from cardnet.errors import StorageError
from cardnet.models.card import Card, Relationship, utcnow
from cardnet.storage.schema import get_all_schema_queries

logger = logging.getLogger(__name__)


def _card_props(board_id: str, card: Card) -> dict[str, Any]:
    props = card.to_dict()
    props["board_id"] = board_id
    # Neo4j properties cannot hold maps
    props["metadata"] = json.dumps(props["metadata"])
    return props


def _card_from_record(data: dict[str, Any]) -> Card:
    data = dict(data)
    if isinstance(data.get("metadata"), str):
        data["metadata"] = json.loads(data["metadata"])
    return Card.from_dict(data)


def _relationship_from_record(record: dict[str, Any]) -> Relationship:
    rel = dict(record["r"])
    metadata = rel.get("metadata")
    return Relationship(
        card_id=record["card_id"],
        related_card_id=record["related_card_id"],
        strength=float(rel.get("strength", 0.5)),
        relationship_type=rel.get("relationship_type", "manual"),
        id=rel.get("id"),
        confidence=rel.get("confidence"),
        metadata=json.loads(metadata) if isinstance(metadata, str) else {},
    )


class Neo4jCardStore:
    """Async Neo4j store for board cards and their relationships."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> None:
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database
        self._driver: AsyncDriver | None = None

    async def connect(self) -> None:
        """Establish connection to Neo4j."""
        if self._driver is None:
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
            )
            # Verify connectivity
            try:
                await self._driver.verify_connectivity()
                logger.info(f"Connected to Neo4j at {self.uri}")
            except ServiceUnavailable as e:
                logger.error(f"Failed to connect to Neo4j: {e}")
                raise

    async def close(self) -> None:
        """Close the database connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Disconnected from Neo4j")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if self._driver is None:
            await self.connect()
        assert self._driver is not None
        async with self._driver.session(database=self.database) as session:
            yield session

    async def setup_schema(self) -> None:
        """Create all constraints and indexes."""
        async with self.session() as session:
            for query in get_all_schema_queries():
                try:
                    await session.run(query)
                    logger.debug(f"Executed schema query: {query[:50]}...")
                except Neo4jError as e:
                    # Some indexes might already exist, that's ok
                    logger.warning(f"Schema query warning: {e}")
        logger.info("Schema setup completed")

    # ==========================================================================
    # Card operations
    # ==========================================================================

    async def save_cards_batch(self, board_id: str, cards: list[Card]) -> None:
        """Save multiple cards of a board in a single batch operation."""
        if not cards:
            return

        query = """
        UNWIND $items AS item
        MERGE (c:Card {id: item.id})
        SET c += item.props
        """
        items = []
        for card in cards:
            props = _card_props(board_id, card)
            card_id = props.pop("id")
            items.append({"id": card_id, "props": props})

        async with self.session() as session:
            await session.run(query, items=items)
        logger.debug(f"Batch saved {len(cards)} cards to board {board_id}")

    async def list_cards(self, board_id: str) -> list[Card]:
        """Get all cards of a board, oldest first."""
        query = """
        MATCH (c:Card {board_id: $board_id})
        RETURN c
        ORDER BY c.created_at, c.id
        """
        cards: list[Card] = []
        try:
            async with self.session() as session:
                result = await session.run(query, board_id=board_id)
                async for record in result:
                    cards.append(_card_from_record(dict(record["c"])))
        except Neo4jError as e:
            raise StorageError(f"Failed to list cards of board {board_id}: {e}") from e
        return cards

    # ==========================================================================
    # Relationship operations
    # ==========================================================================

    async def list_relationships(self, board_id: str) -> list[Relationship]:
        """Get all relationships between cards of a board."""
        query = """
        MATCH (a:Card {board_id: $board_id})-[r:RELATED_TO]->(b:Card {board_id: $board_id})
        RETURN a.id AS card_id, b.id AS related_card_id, r
        """
        relationships: list[Relationship] = []
        try:
            async with self.session() as session:
                result = await session.run(query, board_id=board_id)
                async for record in result:
                    relationships.append(_relationship_from_record(dict(record)))
        except Neo4jError as e:
            raise StorageError(f"Failed to list relationships of board {board_id}: {e}") from e
        return relationships

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
        """Create one relationship between two cards of the board."""
        query = """
        MATCH (a:Card {id: $source_id, board_id: $board_id})
        MATCH (b:Card {id: $target_id, board_id: $board_id})
        CREATE (a)-[r:RELATED_TO {
            id: $id,
            relationship_type: $relationship_type,
            strength: $strength,
            confidence: $confidence,
            metadata: $metadata,
            created_at: $created_at
        }]->(b)
        RETURN a.id AS card_id, b.id AS related_card_id, r
        """
        try:
            async with self.session() as session:
                result = await session.run(
                    query,
                    board_id=board_id,
                    source_id=source_card_id,
                    target_id=target_card_id,
                    id=str(uuid.uuid4()),
                    relationship_type=relationship_type,
                    strength=strength,
                    confidence=confidence,
                    metadata=json.dumps(metadata),
                    created_at=utcnow().isoformat(),
                )
                record = await result.single()
        except Neo4jError as e:
            raise StorageError(
                f"Failed to create relationship {source_card_id} -> {target_card_id}: {e}"
            ) from e

        if record is None:
            raise StorageError(
                f"Cannot relate {source_card_id} -> {target_card_id}: card not found on board {board_id}"
            )
        logger.debug(f"Created {relationship_type} relationship {source_card_id} -> {target_card_id}")
        return _relationship_from_record(dict(record))

    # ==========================================================================
    # Utility operations
    # ==========================================================================

    async def execute_query(self, query: str, **params: Any) -> list[dict[str, Any]]:
        """Execute a raw Cypher query."""
        results: list[dict[str, Any]] = []
        async with self.session() as session:
            result = await session.run(query, **params)
            async for record in result:
                results.append(dict(record))
        return results
