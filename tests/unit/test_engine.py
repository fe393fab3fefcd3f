"""Unit tests for the analysis engine."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from cardnet.engine import AnalysisEngine
from cardnet.errors import AnalysisFailedError, BoardNotLoadedError, StorageError
from cardnet.graph import LayoutConfig
from cardnet.models import AnalysisMethod, CardCategory
from helpers import NOW, make_card, mock_provider


def pair_item(source: str, target: str, confidence: float) -> dict:
    return {"sourceCardId": source, "targetCardId": target, "confidence": confidence}


@pytest.fixture
def providers():
    return {
        AnalysisMethod.EMBEDDING: mock_provider([pair_item("i2", "a1", 0.8), pair_item("i1", "q1", 0.9)]),
        AnalysisMethod.TAG_SIMILARITY: mock_provider([pair_item("a1", "i2", 0.95)]),
        AnalysisMethod.DERIVED: mock_provider(error=RuntimeError("rules crashed")),
    }


@pytest.fixture
def engine(store, providers) -> AnalysisEngine:
    return AnalysisEngine(store, providers=providers, layout_config=LayoutConfig(width=1200, height=900), seed=3)


class TestLoad:
    """Tests for loading a board."""

    @pytest.mark.asyncio
    async def test_load_builds_everything(self, engine: AnalysisEngine) -> None:
        graph = await engine.load("b1")

        assert len(graph.nodes) == 6
        assert len(graph.edges) == 3
        assert engine.clusters.clusters == (("q1", "i1", "t1"),)
        assert set(engine.clusters.isolated) == {"i2", "a1", "n1"}
        assert set(engine.layout.positions) == {node.id for node in graph.nodes}
        assert engine.layout.has_initial_layout

    @pytest.mark.asyncio
    async def test_load_failure(self) -> None:
        store = MagicMock()
        store.list_cards = AsyncMock(side_effect=RuntimeError("connection refused"))
        store.list_relationships = AsyncMock(return_value=[])
        engine = AnalysisEngine(store, providers={})

        with pytest.raises(StorageError):
            await engine.load("b1")
        assert engine.board_id is None

    @pytest.mark.asyncio
    async def test_card_set_change_invalidates_runs(self, engine: AnalysisEngine, store) -> None:
        await engine.load("b1")
        generation = engine.runner.generation

        await engine.load("b1")
        assert engine.runner.generation == generation

        store.add_cards("b1", [make_card("new", created_at=NOW + timedelta(days=6))])
        await engine.load("b1")
        assert engine.runner.generation == generation + 1

    @pytest.mark.asyncio
    async def test_reload_keeps_positions(self, engine: AnalysisEngine, store) -> None:
        await engine.load("b1")
        before = engine.layout.positions

        store.add_cards("b1", [make_card("new")])
        await engine.load("b1")

        after = engine.layout.positions
        for node_id, pos in before.items():
            assert after[node_id] == pos
        assert "new" in after


class TestGraphCommands:
    """Tests for clustering, filtering and layout commands."""

    @pytest.mark.asyncio
    async def test_threshold_commands(self, engine: AnalysisEngine) -> None:
        """Test cluster threshold changes are last-write-wins."""
        await engine.load("b1")

        assert set(engine.set_cluster_threshold(0.1).clusters[0]) == {"q1", "i1", "t1", "a1"}
        engine.set_cluster_threshold(0.95)
        assert engine.clusters.clusters == ()

        result = engine.toggle_threshold_filtering(False)
        assert set(result.clusters[0]) == {"q1", "i1", "t1", "a1"}
        assert result.threshold_applied is False

    @pytest.mark.asyncio
    async def test_network_config(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")

        graph = engine.set_network_config({"edgeFilter": {"minStrength": 0.5}})
        assert len(graph.edges) == 2

        with pytest.raises(ValidationError):
            engine.set_network_config({"layout": "force"})
        assert engine.network_config.edge_filter.min_strength == 0.5

    @pytest.mark.asyncio
    async def test_type_filter_toggle(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")

        graph = engine.toggle_type_filter("INSIGHTS")
        assert {node.id for node in graph.nodes} == {"i1", "i2"}
        assert set(engine.layout.positions) == {"i1", "i2"}

        graph = engine.toggle_type_filter(CardCategory.INSIGHTS)
        assert len(graph.nodes) == 6

    @pytest.mark.asyncio
    async def test_tag_filter_toggle(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        graph = engine.toggle_tag_filter("pricing")
        assert [node.id for node in graph.nodes] == ["i2"]

    @pytest.mark.asyncio
    async def test_reset_layout_clears_selection(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        assert engine.select_node("i1") == {"q1", "t1"}
        engine.toggle_clusters()

        positions = engine.reset_layout()

        assert engine.view.selected_node is None
        assert engine.view.show_clusters is False
        assert len(positions) == 6

    @pytest.mark.asyncio
    async def test_auto_layout(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        positions = engine.auto_layout()
        assert set(positions) == {"q1", "i1", "i2", "t1", "a1", "n1"}
        assert engine.cluster_summaries()[0]["size"] == 3

    @pytest.mark.asyncio
    async def test_snapshot(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        snapshot = engine.snapshot()

        assert snapshot["board_id"] == "b1"
        assert all(node["position"] is not None for node in snapshot["graph"]["nodes"])
        assert snapshot["canvas"] == {"width": 1200, "height": 900}
        json.dumps(snapshot)


class TestAnalysis:
    """Tests for analysis runs and suggestion review."""

    @pytest.mark.asyncio
    async def test_requires_loaded_board(self, engine: AnalysisEngine) -> None:
        with pytest.raises(BoardNotLoadedError):
            await engine.run_analysis()
        with pytest.raises(BoardNotLoadedError):
            engine.reject_suggestion(("a", "b"))

    @pytest.mark.asyncio
    async def test_full_run(self, engine: AnalysisEngine) -> None:
        """Test merging, existing-pair filtering and partial method failure."""
        await engine.load("b1")

        run = await engine.run_analysis("full")

        assert run.failed_methods == ["derived"]
        suggestions = engine.suggestions
        assert [s.pair for s in suggestions] == [("a1", "i2")]
        assert suggestions[0].method is AnalysisMethod.EMBEDDING
        assert suggestions[0].confidence == 0.8

    @pytest.mark.asyncio
    async def test_incremental_run_keeps_current(self, engine: AnalysisEngine, providers) -> None:
        await engine.load("b1")
        await engine.run_analysis("full")

        providers[AnalysisMethod.EMBEDDING].analyze.return_value = [pair_item("n1", "i2", 0.5)]
        await engine.run_analysis("incremental")

        suggestions = engine.suggestions
        assert [s.pair for s in suggestions] == [("a1", "i2"), ("i2", "n1")]
        assert suggestions[0].method is AnalysisMethod.EMBEDDING

    @pytest.mark.asyncio
    async def test_full_run_replaces(self, engine: AnalysisEngine, providers) -> None:
        await engine.load("b1")
        await engine.run_analysis("full")

        providers[AnalysisMethod.EMBEDDING].analyze.return_value = [pair_item("n1", "i2", 0.5)]
        providers[AnalysisMethod.TAG_SIMILARITY].analyze.return_value = []
        await engine.run_analysis("full")

        assert [s.pair for s in engine.suggestions] == [("i2", "n1")]

    @pytest.mark.asyncio
    async def test_all_methods_fail(self, store) -> None:
        failing = {method: mock_provider(error=RuntimeError("down")) for method in AnalysisMethod}
        engine = AnalysisEngine(store, providers=failing, seed=1)
        await engine.load("b1")
        with pytest.raises(AnalysisFailedError):
            await engine.run_analysis("full")

    @pytest.mark.asyncio
    async def test_stale_run_discarded(self, store) -> None:
        """Test a run superseded while in flight leaves the suggestions alone."""
        provider = MagicMock()
        engine = AnalysisEngine(store, providers={AnalysisMethod.EMBEDDING: provider}, seed=1)

        def superseded(*args):
            engine.runner.invalidate()
            return [pair_item("i2", "n1", 0.9)]

        provider.analyze = AsyncMock(side_effect=superseded)
        await engine.load("b1")

        run = await engine.run_analysis("full")
        assert run.stale
        assert engine.suggestions == []

    @pytest.mark.asyncio
    async def test_approve_adds_edge(self, engine: AnalysisEngine, store) -> None:
        """Test approving a reversed pair persists it and grows the graph."""
        await engine.load("b1")
        await engine.run_analysis("full")

        relationship = await engine.approve_suggestion(("i2", "a1"))

        assert relationship.relationship_type == "semantic"
        assert relationship.metadata["ai_suggested"] is True
        assert engine.suggestions == []
        assert len(engine.graph.edges) == 4
        assert len(await store.list_relationships("b1")) == 4

        # The approved pair is not suggested again
        await engine.run_analysis("full")
        assert engine.suggestions == []

    @pytest.mark.asyncio
    async def test_bulk_commands(self, engine: AnalysisEngine, providers) -> None:
        providers[AnalysisMethod.EMBEDDING].analyze.return_value = [
            pair_item("i2", "a1", 0.8),
            pair_item("n1", "t1", 0.7),
        ]
        providers[AnalysisMethod.TAG_SIMILARITY].analyze.return_value = [pair_item("n1", "q1", 0.6)]
        await engine.load("b1")
        await engine.run_analysis("full")

        assert engine.reject_method_suggestions("tag_similarity") == 1
        report = await engine.approve_method_suggestions("embedding")
        assert report.succeeded_count == 2
        assert len(engine.graph.edges) == 5
        assert engine.reject_all_suggestions() == 0

    @pytest.mark.asyncio
    async def test_approve_all(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        await engine.run_analysis("full")
        report = await engine.approve_all_suggestions()
        assert report.succeeded_count == 1
        assert report.failed_count == 0
        assert engine.suggestions == []

    @pytest.mark.asyncio
    async def test_close_closes_providers(self, engine: AnalysisEngine, providers) -> None:
        await engine.close()
        for provider in providers.values():
            provider.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_mode(self, engine: AnalysisEngine) -> None:
        await engine.load("b1")
        with pytest.raises(ValueError):
            await engine.run_analysis("partial")
