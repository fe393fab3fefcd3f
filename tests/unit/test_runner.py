"""Unit tests for the analysis runner."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cardnet.errors import AnalysisFailedError
from cardnet.models import AnalysisMethod
from cardnet.suggestions import AnalysisRunner, aggregate_results
from helpers import make_card, mock_provider


class TestAnalysisRunner:
    """Tests for AnalysisRunner."""

    @pytest.mark.asyncio
    async def test_one_method_fails(self) -> None:
        """Test a failing method is reported and the others still contribute."""
        runner = AnalysisRunner(
            {
                AnalysisMethod.EMBEDDING: mock_provider(
                    [{"sourceCardId": "a", "targetCardId": "b", "confidence": 0.8}]
                ),
                AnalysisMethod.TAG_SIMILARITY: mock_provider(error=RuntimeError("boom")),
                AnalysisMethod.DERIVED: mock_provider(
                    [{"sourceCardId": "c", "targetCardId": "d", "confidence": 0.6}]
                ),
            }
        )

        run = await runner.run("b1", [make_card("a")], "full")

        assert run.failed_methods == ["tag_similarity"]
        assert run.succeeded_methods == [AnalysisMethod.EMBEDDING, AnalysisMethod.DERIVED]
        assert not run.stale
        suggestions = aggregate_results(run.results)
        assert {s.pair for s in suggestions} == {("a", "b"), ("c", "d")}
        assert not any(s.method is AnalysisMethod.TAG_SIMILARITY for s in suggestions)

    @pytest.mark.asyncio
    async def test_all_methods_fail(self) -> None:
        runner = AnalysisRunner(
            {method: mock_provider(error=RuntimeError(method.value)) for method in AnalysisMethod}
        )
        with pytest.raises(AnalysisFailedError) as exc_info:
            await runner.run("b1", [])
        assert len(exc_info.value.errors) == 3

    @pytest.mark.asyncio
    async def test_mode_and_cards_forwarded(self) -> None:
        provider = mock_provider([])
        runner = AnalysisRunner({AnalysisMethod.DERIVED: provider})
        cards = [make_card("a")]
        await runner.run("b1", cards, "incremental")
        provider.analyze.assert_awaited_once_with("b1", cards, "incremental")

    @pytest.mark.asyncio
    async def test_superseded_run_is_stale(self) -> None:
        """Test a run invalidated while in flight is marked stale, not raised."""
        runner = AnalysisRunner({})

        def invalidate(*args):
            runner.invalidate()
            return [{"sourceCardId": "a", "targetCardId": "b"}]

        provider = MagicMock()
        provider.analyze = AsyncMock(side_effect=invalidate)
        runner.providers = {AnalysisMethod.EMBEDDING: provider}

        run = await runner.run("b1", [])
        assert run.stale
        assert not runner.is_current(run.generation)

    @pytest.mark.asyncio
    async def test_stale_run_with_failures_does_not_raise(self) -> None:
        runner = AnalysisRunner({})

        def fail(*args):
            runner.invalidate()
            raise RuntimeError("late failure")

        provider = MagicMock()
        provider.analyze = AsyncMock(side_effect=fail)
        runner.providers = {AnalysisMethod.EMBEDDING: provider}

        run = await runner.run("b1", [])
        assert run.stale
        assert run.failed_methods == ["embedding"]

    @pytest.mark.asyncio
    async def test_methods_run_concurrently(self) -> None:
        """Test providers are in flight at the same time."""
        released = asyncio.Event()

        async def wait_for_release(*args):
            await released.wait()
            return []

        async def release(*args):
            released.set()
            return []

        first, second = MagicMock(), MagicMock()
        first.analyze = AsyncMock(side_effect=wait_for_release)
        second.analyze = AsyncMock(side_effect=release)
        runner = AnalysisRunner({AnalysisMethod.EMBEDDING: first, AnalysisMethod.DERIVED: second})

        run = await asyncio.wait_for(runner.run("b1", []), timeout=2)
        assert run.succeeded_methods == [AnalysisMethod.EMBEDDING, AnalysisMethod.DERIVED]

    def test_generation_tokens(self) -> None:
        runner = AnalysisRunner({})
        first = runner.invalidate()
        second = runner.invalidate()
        assert second == first + 1
        assert runner.is_current(second)
        assert not runner.is_current(first)
