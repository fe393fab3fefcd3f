"""Merging, ranking and operator review of candidate relationships."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from cardnet.errors import RelationshipCreationError, UnknownSuggestionError
from cardnet.models.card import Relationship, pair_key, utcnow
from cardnet.models.suggestion import METHOD_ORDER, AnalysisMethod, Suggestion
from cardnet.storage.base import CardStore

logger = logging.getLogger(__name__)

Pair = tuple[str, str]


def _has_ids(item: dict) -> bool:
    source = item.get("sourceCardId", item.get("source_card_id"))
    target = item.get("targetCardId", item.get("target_card_id"))
    return source is not None and target is not None


def dedupe(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    """Collapse suggestions sharing an unordered pair; the first one wins.

    Self-pairs are dropped. Idempotent.
    """
    seen: set[Pair] = set()
    result: list[Suggestion] = []
    for suggestion in suggestions:
        if suggestion.source_card_id == suggestion.target_card_id:
            continue
        if suggestion.pair in seen:
            continue
        seen.add(suggestion.pair)
        result.append(suggestion)
    return result


def rank(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    """Sort by descending confidence, keeping input order among ties."""
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


def aggregate_results(results: Mapping[AnalysisMethod, list[dict] | None]) -> list[Suggestion]:
    """Map, concatenate, deduplicate and rank the method results.

    Args:
        results: Result items per method; missing or None means the method
            failed or was not run

    Returns:
        Ranked suggestions, at most one per unordered pair
    """
    combined: list[Suggestion] = []
    for method in METHOD_ORDER:
        items = results.get(method)
        if items is None:
            continue
        for item in items:
            if not _has_ids(item):
                logger.debug(f"Skipping {method.value} result without card ids: {item}")
                continue
            combined.append(Suggestion.from_result(method, item))

    unique = dedupe(combined)
    logger.debug(f"Aggregated {len(combined)} results into {len(unique)} suggestions")
    return rank(unique)


def filter_existing(
    suggestions: Iterable[Suggestion],
    relationships: Iterable[Relationship],
) -> list[Suggestion]:
    """Drop suggestions whose pair already exists in either direction."""
    existing = {rel.pair for rel in relationships}
    return [s for s in suggestions if s.pair not in existing]


def merge(current: Iterable[Suggestion], incoming: Iterable[Suggestion]) -> list[Suggestion]:
    """Merge a new run into the current list; current entries win."""
    return rank(dedupe([*current, *incoming]))


@dataclass
class ApprovalReport:
    """Outcome of a bulk approval."""

    succeeded: list[Pair] = field(default_factory=list)
    failed: list[RelationshipCreationError] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)  # Created by the store

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
            "failed_pairs": [[e.source_card_id, e.target_card_id] for e in self.failed],
            "errors": [str(e.cause) for e in self.failed],
        }


class SuggestionAggregator:
    """
    Owns the candidate list of one board.

    The engine is the single writer; approval forwards each approved pair to
    the storage collaborator and removes it only once creation succeeded.
    """

    def __init__(self, store: CardStore, board_id: str) -> None:
        self.store = store
        self.board_id = board_id
        self._suggestions: list[Suggestion] = []

    @property
    def suggestions(self) -> list[Suggestion]:
        return list(self._suggestions)

    def __len__(self) -> int:
        return len(self._suggestions)

    def get(self, pair: Pair) -> Suggestion | None:
        key = pair_key(*pair)
        for suggestion in self._suggestions:
            if suggestion.pair == key:
                return suggestion
        return None

    def by_method(self, method: AnalysisMethod) -> list[Suggestion]:
        return [s for s in self._suggestions if s.method is method]

    def counts_by_method(self) -> dict[str, int]:
        return {method.value: len(self.by_method(method)) for method in METHOD_ORDER}

    def replace(self, suggestions: Iterable[Suggestion]) -> None:
        """Replace the candidate list (full analysis)."""
        self._suggestions = rank(dedupe(suggestions))

    def merge(self, suggestions: Iterable[Suggestion]) -> None:
        """Merge into the candidate list (incremental analysis)."""
        self._suggestions = merge(self._suggestions, suggestions)

    def _remove(self, pairs: set[Pair]) -> int:
        before = len(self._suggestions)
        self._suggestions = [s for s in self._suggestions if s.pair not in pairs]
        return before - len(self._suggestions)

    async def _create(self, suggestion: Suggestion, batch: bool) -> Relationship:
        metadata = {
            "ai_suggested": True,
            "analysis_method": suggestion.method.value,
            "similarity": suggestion.similarity,
            "explanation": suggestion.explanation,
            "approved_at": utcnow().isoformat(),
            "batch_approved": batch,
        }
        try:
            return await self.store.create_relationship(
                self.board_id,
                suggestion.source_card_id,
                suggestion.target_card_id,
                suggestion.method.relationship_type,
                suggestion.suggested_strength,
                suggestion.confidence,
                metadata,
            )
        except Exception as e:
            raise RelationshipCreationError(
                suggestion.source_card_id, suggestion.target_card_id, e
            ) from e

    async def approve(self, pair: Pair) -> Relationship:
        """Approve one suggestion.

        Raises:
            UnknownSuggestionError: The pair is not in the candidate list
            RelationshipCreationError: The store failed; the suggestion is kept
        """
        suggestion = self.get(pair)
        if suggestion is None:
            raise UnknownSuggestionError(pair_key(*pair))

        try:
            relationship = await self._create(suggestion, batch=False)
        except RelationshipCreationError as e:
            logger.warning(f"Approval failed: {e}")
            raise

        self._remove({suggestion.pair})
        logger.info(
            f"Approved {suggestion.method.value} suggestion "
            f"{suggestion.source_card_id} <-> {suggestion.target_card_id}"
        )
        return relationship

    async def _approve_batch(self, targets: list[Suggestion]) -> ApprovalReport:
        report = ApprovalReport()
        if not targets:
            return report

        results = await asyncio.gather(
            *[self._create(s, batch=True) for s in targets],
            return_exceptions=True,
        )
        for suggestion, result in zip(targets, results):
            if isinstance(result, RelationshipCreationError):
                logger.warning(f"Bulk approval item failed: {result}")
                report.failed.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                report.succeeded.append(suggestion.pair)
                report.relationships.append(result)

        # Only after the whole batch settled
        self._remove(set(report.succeeded))
        logger.info(
            f"Bulk approval: {report.succeeded_count} succeeded, {report.failed_count} failed"
        )
        return report

    async def approve_method(self, method: AnalysisMethod) -> ApprovalReport:
        """Approve every suggestion proposed by one method."""
        return await self._approve_batch(self.by_method(method))

    async def approve_all(self) -> ApprovalReport:
        """Approve every suggestion."""
        return await self._approve_batch(self.suggestions)

    def reject(self, pair: Pair) -> bool:
        """Drop one suggestion. Returns False when the pair was not listed."""
        removed = self._remove({pair_key(*pair)})
        if removed:
            logger.debug(f"Rejected suggestion {pair[0]} <-> {pair[1]}")
        return bool(removed)

    def reject_method(self, method: AnalysisMethod) -> int:
        """Drop every suggestion of one method; returns how many were dropped."""
        removed = self._remove({s.pair for s in self.by_method(method)})
        logger.info(f"Rejected {removed} {method.value} suggestions")
        return removed

    def reject_all(self) -> int:
        removed = len(self._suggestions)
        self._suggestions = []
        logger.info(f"Rejected all {removed} suggestions")
        return removed
