"""Rule-based derived relationships between board categories.

Rules:
- THEMES -> INSIGHTS: the theme's metadata lists the insight in relatedInsightIds
- QUESTIONS -> INSIGHTS: the insight was created within an hour after the question
- INSIGHTS -> ACTIONS: the two cards share at least one tag
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass

from cardnet.analysis.base import AnalysisMode, result_item
from cardnet.models.card import Card, CardCategory

logger = logging.getLogger(__name__)


@dataclass
class DerivedRulesConfig:
    """Strengths and confidences of the derivation rules."""

    theme_insight_strength: float = 0.8
    theme_insight_confidence: float = 0.9

    question_window_seconds: float = 3600.0
    question_max_strength: float = 0.8
    question_min_strength: float = 0.4
    question_decay: float = 0.4  # Strength lost over the whole window
    question_confidence: float = 0.7

    action_base_strength: float = 0.5
    action_per_tag: float = 0.1
    action_max_strength: float = 0.8
    action_confidence: float = 0.8


class DerivedRelationshipAnalyzer:
    """In-process derived-relationship analysis method."""

    def __init__(self, config: DerivedRulesConfig | None = None) -> None:
        self.config = config or DerivedRulesConfig()

    def _theme_insight(self, themes: list[Card], insights: list[Card]) -> list[dict]:
        results = []
        for theme in themes:
            related = theme.metadata.get("relatedInsightIds") or theme.metadata.get("related_insight_ids") or []
            for insight in insights:
                if insight.id not in related:
                    continue
                results.append(
                    result_item(
                        source_card_id=theme.id,
                        target_card_id=insight.id,
                        relationship_type="derived",
                        similarity=None,
                        confidence=self.config.theme_insight_confidence,
                        explanation="Recorded as a related insight in the theme's metadata",
                        strength=self.config.theme_insight_strength,
                        derivationRule="theme_insight_metadata",
                    )
                )
        return results

    def _question_insight(self, questions: list[Card], insights: list[Card]) -> list[dict]:
        config = self.config
        results = []
        for question in questions:
            if question.created_at is None:
                continue
            for insight in insights:
                if insight.created_at is None:
                    continue
                delta = (insight.created_at - question.created_at).total_seconds()
                if not 0 < delta < config.question_window_seconds:
                    continue
                strength = max(
                    config.question_min_strength,
                    config.question_max_strength
                    - delta / config.question_window_seconds * config.question_decay,
                )
                minutes = round(delta / 60)
                results.append(
                    result_item(
                        source_card_id=question.id,
                        target_card_id=insight.id,
                        relationship_type="derived",
                        similarity=None,
                        confidence=config.question_confidence,
                        explanation=f"Insight created {minutes} min after the question",
                        strength=strength,
                        derivationRule="question_insight_temporal",
                    )
                )
        return results

    def _insight_action(self, insights: list[Card], actions: list[Card]) -> list[dict]:
        config = self.config
        results = []
        for insight in insights:
            for action in actions:
                action_tags = set(action.tags)
                common = list(dict.fromkeys(tag for tag in insight.tags if tag in action_tags))
                if not common:
                    continue
                results.append(
                    result_item(
                        source_card_id=insight.id,
                        target_card_id=action.id,
                        relationship_type="derived",
                        similarity=None,
                        confidence=config.action_confidence,
                        explanation=f"Insight leads to action via shared tags: {', '.join(common)}",
                        strength=min(
                            config.action_max_strength,
                            config.action_base_strength + len(common) * config.action_per_tag,
                        ),
                        derivationRule="insight_action_workflow",
                    )
                )
        return results

    async def analyze(self, board_id: str, cards: list[Card], mode: AnalysisMode = "full") -> list[dict]:
        """Apply every derivation rule to the board's cards."""
        if len(cards) < 2:
            return []

        by_category: dict[CardCategory, list[Card]] = defaultdict(list)
        for card in cards:
            by_category[card.category].append(card)

        themes = by_category[CardCategory.THEMES]
        insights = by_category[CardCategory.INSIGHTS]
        results = (
            self._theme_insight(themes, insights)
            + self._question_insight(by_category[CardCategory.QUESTIONS], insights)
            + self._insight_action(insights, by_category[CardCategory.ACTIONS])
        )

        rules = Counter(item["derivationRule"] for item in results)
        logger.info(f"Derived {len(results)} relationships on board {board_id}: {dict(rules)}")
        return results
