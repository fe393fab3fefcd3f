"""Concurrent execution of the analysis methods with generation tracking."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from cardnet.analysis.base import AnalysisMode, AnalysisProvider
from cardnet.errors import AnalysisFailedError, AnalysisMethodError
from cardnet.models.card import Card
from cardnet.models.suggestion import METHOD_ORDER, AnalysisMethod

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRun:
    """Settled outcome of one analysis run."""

    generation: int
    mode: AnalysisMode
    results: dict[AnalysisMethod, list[dict]] = field(default_factory=dict)
    errors: list[AnalysisMethodError] = field(default_factory=list)
    stale: bool = False  # Superseded by a newer run or a card set change

    @property
    def succeeded_methods(self) -> list[AnalysisMethod]:
        return [m for m in METHOD_ORDER if m in self.results]

    @property
    def failed_methods(self) -> list[str]:
        return [e.method for e in self.errors]


class AnalysisRunner:
    """
    Runs the configured analysis methods concurrently.

    Each run takes a generation token. A run whose token is no longer current
    when it settles is reported as stale so the caller can drop its output.
    """

    def __init__(self, providers: Mapping[AnalysisMethod, AnalysisProvider]) -> None:
        self.providers = dict(providers)
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> int:
        """Supersede in-flight runs (e.g. the card set changed)."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def run(self, board_id: str, cards: list[Card], mode: AnalysisMode = "incremental") -> AnalysisRun:
        """Call every provider and settle each independently.

        Raises:
            AnalysisFailedError: Every provider failed (current runs only)
        """
        generation = self.invalidate()
        methods = [m for m in METHOD_ORDER if m in self.providers]
        logger.info(
            f"Analysis run {generation} ({mode}) on board {board_id}: "
            f"{len(cards)} cards, methods={[m.value for m in methods]}"
        )

        outcomes = await asyncio.gather(
            *[self.providers[m].analyze(board_id, cards, mode) for m in methods],
            return_exceptions=True,
        )

        run = AnalysisRun(generation=generation, mode=mode)
        for method, outcome in zip(methods, outcomes):
            if isinstance(outcome, Exception):
                error = AnalysisMethodError(method.value, outcome)
                logger.warning(str(error))
                run.errors.append(error)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                run.results[method] = list(outcome or [])

        if not self.is_current(generation):
            run.stale = True
            logger.info(f"Discarding stale analysis run {generation} (current {self._generation})")
            return run

        if methods and not run.results:
            logger.error(f"All analysis methods failed on board {board_id}")
            raise AnalysisFailedError(run.errors)

        return run
