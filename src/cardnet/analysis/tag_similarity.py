"""Tag-overlap similarity between cards of compatible categories.

Pairs are scored by a blend of Jaccard similarity and tag coverage, then
ranked by a quality score that also rewards category compatibility, close
creation times and several shared tags. Only the best few pairs are kept.
"""

import logging
import math
from dataclasses import dataclass, field
from itertools import combinations

from cardnet.analysis.base import AnalysisMode, result_item
from cardnet.models.card import Card, CardCategory

logger = logging.getLogger(__name__)

C = CardCategory

# Category pairs worth relating, with their compatibility score
CATEGORY_COMPATIBILITY: dict[frozenset[CardCategory], float] = {
    frozenset({C.INSIGHTS, C.THEMES}): 0.9,
    frozenset({C.INSIGHTS, C.ACTIONS}): 0.8,
    frozenset({C.QUESTIONS, C.INSIGHTS}): 0.8,
    frozenset({C.INBOX, C.INSIGHTS}): 0.7,
    frozenset({C.THEMES, C.ACTIONS}): 0.8,
    frozenset({C.QUESTIONS, C.THEMES}): 0.6,
    frozenset({C.INBOX, C.ACTIONS}): 0.5,
    frozenset({C.INSIGHTS}): 0.6,
    frozenset({C.THEMES}): 0.6,
}


@dataclass
class TagSimilarityConfig:
    """Scoring constants for tag similarity."""

    min_similarity: float = 0.6
    jaccard_weight: float = 0.6
    coverage_weight: float = 0.4
    small_tag_set: int = 2  # A single shared tag counts only when both sets are this small

    # Quality = weighted blend of the components below
    quality_weights: tuple[float, float, float, float] = (0.5, 0.25, 0.15, 0.1)
    temporal_bonus: float = 0.2
    temporal_bonus_flat: float = 0.1  # When every card was created at the same instant
    max_strength: float = 0.9
    max_confidence: float = 0.95
    compatibility_confidence_weight: float = 0.3

    # Selection cap: min(pairs * pair_ratio, absolute_cap, max(min_keep, cards * card_ratio))
    pair_ratio: float = 0.08
    absolute_cap: int = 20
    min_keep: int = 3
    card_ratio: float = 0.4

    category_compatibility: dict[frozenset[CardCategory], float] = field(
        default_factory=lambda: dict(CATEGORY_COMPATIBILITY)
    )


@dataclass
class TagPairScore:
    """Scored candidate pair."""

    source: Card
    target: Card
    common_tags: list[str]
    similarity: float
    compatibility: float
    temporal_bonus: float
    tag_quality: float
    quality: float


def tag_similarity(tags_a: set[str], tags_b: set[str], config: TagSimilarityConfig) -> float:
    """Jaccard similarity blended with the average per-card coverage."""
    common = len(tags_a & tags_b)
    union = len(tags_a | tags_b)
    if not union:
        return 0.0
    jaccard = common / union
    coverage = (common / len(tags_a) + common / len(tags_b)) / 2
    return jaccard * config.jaccard_weight + coverage * config.coverage_weight


def selection_cap(card_count: int, config: TagSimilarityConfig) -> int:
    """Number of best pairs kept for a board of card_count cards."""
    total_pairs = card_count * (card_count - 1) // 2
    return min(
        math.floor(total_pairs * config.pair_ratio),
        config.absolute_cap,
        max(config.min_keep, math.floor(card_count * config.card_ratio)),
    )


class TagSimilarityAnalyzer:
    """In-process tag-similarity analysis method."""

    def __init__(self, config: TagSimilarityConfig | None = None) -> None:
        self.config = config or TagSimilarityConfig()

    def _enough_common(self, common: int, tags_a: set[str], tags_b: set[str]) -> bool:
        if common >= 2:
            return True
        small = self.config.small_tag_set
        return common == 1 and len(tags_a) <= small and len(tags_b) <= small

    def score_pairs(self, cards: list[Card]) -> list[TagPairScore]:
        """Score every compatible pair that passes the tag filters."""
        config = self.config
        times = [c.created_at.timestamp() for c in cards if c.created_at is not None]
        max_time_diff = max(times) - min(times) if times else 0.0

        scores: list[TagPairScore] = []
        for card_a, card_b in combinations(cards, 2):
            if not card_a.tags or not card_b.tags:
                continue
            key = frozenset({card_a.category, card_b.category})
            if key not in config.category_compatibility:
                continue

            tags_a, tags_b = set(card_a.tags), set(card_b.tags)
            common = list(dict.fromkeys(tag for tag in card_a.tags if tag in tags_b))
            if not self._enough_common(len(common), tags_a, tags_b):
                continue

            similarity = tag_similarity(tags_a, tags_b, config)
            if similarity < config.min_similarity:
                continue

            compatibility = config.category_compatibility[key]
            if card_a.created_at is None or card_b.created_at is None:
                temporal = 0.0
            elif max_time_diff > 0:
                diff = abs(card_a.created_at.timestamp() - card_b.created_at.timestamp())
                temporal = max(0.0, 1 - diff / max_time_diff) * config.temporal_bonus
            else:
                temporal = config.temporal_bonus_flat
            tag_quality = min(0.2, len(common) * 0.1) if len(common) > 1 else 0.05

            w_sim, w_type, w_time, w_tags = config.quality_weights
            quality = (
                similarity * w_sim
                + compatibility * w_type
                + temporal * w_time
                + tag_quality * w_tags
            )
            scores.append(
                TagPairScore(
                    source=card_a,
                    target=card_b,
                    common_tags=common,
                    similarity=similarity,
                    compatibility=compatibility,
                    temporal_bonus=temporal,
                    tag_quality=tag_quality,
                    quality=quality,
                )
            )
        return scores

    async def analyze(self, board_id: str, cards: list[Card], mode: AnalysisMode = "full") -> list[dict]:
        """Propose tag-similarity relationships for the board's cards."""
        if len(cards) < 2:
            return []

        scores = self.score_pairs(cards)
        cap = selection_cap(len(cards), self.config)
        selected = sorted(scores, key=lambda s: s.quality, reverse=True)[:cap]

        logger.info(
            f"Tag similarity on board {board_id}: {len(scores)} candidates, "
            f"kept {len(selected)} (cap {cap})"
        )

        config = self.config
        return [
            result_item(
                source_card_id=s.source.id,
                target_card_id=s.target.id,
                relationship_type="tag_similarity",
                similarity=s.similarity,
                confidence=min(
                    config.max_confidence,
                    s.similarity + s.compatibility * config.compatibility_confidence_weight,
                ),
                explanation=(
                    f"Common tags: {', '.join(s.common_tags)} "
                    f"({len(s.common_tags)}, quality {round(s.quality * 100)}%)"
                ),
                strength=min(config.max_strength, s.quality),
                commonTags=s.common_tags,
            )
            for s in selected
        ]
