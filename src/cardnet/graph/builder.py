"""Graph builder: cards + relationships + filters -> typed graph with node metrics.

Node metrics:
- connection_count: filtered edges touching the node
- centrality: |1-hop neighbours| + 0.3 x |2-hop neighbours|
- content_density: len(content) + 2 x len(title) + 10 x len(tags)
- recency_weight: max(0.2, 1 - days_since_update / 30)
- importance_score: weighted sum of the above plus the category weight
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

import numpy as np

from cardnet.graph.config import ImportanceConfig
from cardnet.graph.filters import NetworkConfig
from cardnet.models.card import Card, Relationship, utcnow
from cardnet.models.graph import Edge, Graph, GraphMetrics, Node, SizeClass

logger = logging.getLogger(__name__)


def compute_content_density(card: Card, config: ImportanceConfig) -> float:
    """Weighted length of title, body and tag list."""
    return (
        len(card.content or "")
        + len(card.title or "") * config.title_factor
        + len(card.tags) * config.tag_factor
    )


def compute_recency_weight(card: Card, now: datetime, config: ImportanceConfig) -> float:
    """Linear decay from 1.0 to the floor over the recency window."""
    touched = card.last_touched
    if touched is None:
        return 1.0
    days = (now - touched).total_seconds() / 86400
    return min(1.0, max(config.recency_floor, 1 - days / config.recency_window_days))


def compute_importance(
    centrality: float,
    content_density: float,
    category_weight: float,
    recency_weight: float,
    config: ImportanceConfig,
) -> float:
    """Composite ranking metric driving node size and placement priority."""
    return (
        centrality * config.centrality_weight
        + content_density * config.content_density_weight
        + category_weight * config.category_weight
        + recency_weight * config.recency_weight
    )


def hop_counts(n: int, edges: list[tuple[int, int]]) -> tuple[np.ndarray, np.ndarray]:
    """Count 1-hop and exact 2-hop neighbours for every node index.

    A 2-hop neighbour is reachable in two steps and is neither the node itself
    nor one of its direct neighbours. Walks adjacency sets, so the cost follows
    the sum of squared degrees rather than the board size squared.
    """
    neighbours: list[set[int]] = [set() for _ in range(n)]
    for i, j in edges:
        neighbours[i].add(j)
        neighbours[j].add(i)

    def second_hop(i: int) -> int:
        reached: set[int] = set()
        for j in neighbours[i]:
            reached |= neighbours[j]
        reached -= neighbours[i]
        reached.discard(i)
        return len(reached)

    first = np.fromiter((len(adj) for adj in neighbours), dtype=np.int64, count=n)
    second = np.fromiter((second_hop(i) for i in range(n)), dtype=np.int64, count=n)
    return first, second


def _filter_cards(cards: Iterable[Card], config: NetworkConfig) -> list[Card]:
    kept: list[Card] = []
    seen: set[str] = set()
    for card in cards:
        if card.id in seen:
            logger.debug(f"Dropping duplicate card id: {card.id}")
            continue
        seen.add(card.id)
        if config.node_filter.accepts(card.category, card.tags):
            kept.append(card)
    return kept


def _filter_edges(
    relationships: Iterable[Relationship],
    node_ids: set[str],
    config: NetworkConfig,
) -> list[Edge]:
    edges: list[Edge] = []
    seen_pairs: set[tuple[str, str]] = set()
    for rel in relationships:
        if rel.card_id == rel.related_card_id:
            logger.debug(f"Dropping self-relationship on {rel.card_id}")
            continue
        if rel.card_id not in node_ids or rel.related_card_id not in node_ids:
            logger.debug(
                f"Dropping relationship with missing endpoint: {rel.card_id} -> {rel.related_card_id}"
            )
            continue
        strength = min(1.0, max(0.0, rel.strength))
        if not config.edge_filter.accepts(strength, rel.relationship_type):
            continue
        if rel.pair in seen_pairs:
            continue
        seen_pairs.add(rel.pair)
        edges.append(
            Edge(
                source=rel.card_id,
                target=rel.related_card_id,
                strength=strength,
                relationship_type=rel.relationship_type,
            )
        )
    return edges


def build_graph(
    cards: Iterable[Card],
    relationships: Iterable[Relationship],
    config: NetworkConfig | None = None,
    importance: ImportanceConfig | None = None,
    now: datetime | None = None,
) -> Graph:
    """Build one immutable graph snapshot.

    Args:
        cards: Cards of the board
        relationships: Persisted relationships of the board
        config: Node/edge filters (defaults keep everything)
        importance: Scoring constants
        now: Reference time for recency (defaults to current UTC time)

    Returns:
        Graph with filtered nodes, edges and metrics
    """
    config = config or NetworkConfig()
    importance = importance or ImportanceConfig()
    now = now or utcnow()

    kept_cards = _filter_cards(cards, config)
    index = {card.id: i for i, card in enumerate(kept_cards)}
    edges = _filter_edges(relationships, set(index), config)

    first_hop, second_hop = hop_counts(
        len(kept_cards), [(index[e.source], index[e.target]) for e in edges]
    )

    nodes: list[Node] = []
    for i, card in enumerate(kept_cards):
        connections = int(first_hop[i])
        centrality = connections + importance.second_hop_weight * int(second_hop[i])
        density = compute_content_density(card, importance)
        category_weight = importance.category_weights.get(card.category, 1)
        recency = compute_recency_weight(card, now, importance)
        score = compute_importance(centrality, density, category_weight, recency, importance)

        nodes.append(
            Node(
                id=card.id,
                title=card.title,
                content=card.content,
                category=card.category,
                tags=tuple(card.tags),
                connection_count=connections,
                centrality=centrality,
                content_density=density,
                category_weight=category_weight,
                recency_weight=recency,
                importance_score=score,
                size_class=SizeClass.from_importance(score),
                created_at=card.created_at,
                updated_at=card.updated_at,
            )
        )

    n = len(nodes)
    metrics = GraphMetrics(
        total_nodes=n,
        total_edges=len(edges),
        average_connections=sum(node.connection_count for node in nodes) / n if n else 0.0,
        network_density=len(edges) / (n * (n - 1) / 2) if n >= 2 else 0.0,
    )

    logger.debug(f"Built graph: {n} nodes, {len(edges)} edges")
    return Graph(nodes=tuple(nodes), edges=tuple(edges), metrics=metrics)
