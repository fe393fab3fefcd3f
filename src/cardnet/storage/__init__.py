"""Storage layer: card/relationship store protocol and implementations."""

from cardnet.storage.base import CardStore, InMemoryCardStore
from cardnet.storage.neo4j_client import Neo4jCardStore

__all__ = ["CardStore", "InMemoryCardStore", "Neo4jCardStore"]
