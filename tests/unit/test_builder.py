"""Unit tests for the graph builder."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from cardnet.graph import EdgeFilter, ImportanceConfig, NetworkConfig, NodeFilter, build_graph
from cardnet.graph.builder import compute_content_density, compute_recency_weight, hop_counts
from cardnet.models import CardCategory, SizeClass
from helpers import NOW, make_card, make_rel


class TestBuildGraph:
    """Tests for build_graph."""

    def test_empty_input(self) -> None:
        """Test empty input gives an empty graph with zero metrics."""
        graph = build_graph([], [], now=NOW)
        assert graph.nodes == ()
        assert graph.edges == ()
        assert graph.metrics.total_nodes == 0
        assert graph.metrics.average_connections == 0.0
        assert graph.metrics.network_density == 0.0

    def test_drops_invalid_edges(self) -> None:
        """Test self-loops, dangling endpoints and duplicate pairs are dropped."""
        cards = [make_card("a"), make_card("b")]
        rels = [
            make_rel("a", "a", 0.9),
            make_rel("a", "missing", 0.9),
            make_rel("a", "b", 0.4),
            make_rel("b", "a", 0.8),
        ]
        graph = build_graph(cards, rels, now=NOW)
        assert len(graph.edges) == 1
        assert graph.edges[0].strength == 0.4
        assert graph.get_node("a").connection_count == 1

    def test_duplicate_card_ids_collapse(self) -> None:
        graph = build_graph([make_card("a"), make_card("a")], [], now=NOW)
        assert len(graph.nodes) == 1

    def test_node_type_filter(self) -> None:
        """Test the node filter keeps only selected categories and their edges."""
        cards = [
            make_card("i", CardCategory.INSIGHTS),
            make_card("t", CardCategory.THEMES),
            make_card("n", CardCategory.INBOX),
        ]
        rels = [make_rel("i", "t"), make_rel("t", "n")]
        config = NetworkConfig(
            node_filter=NodeFilter(types=frozenset({CardCategory.INSIGHTS, CardCategory.THEMES}))
        )
        graph = build_graph(cards, rels, config, now=NOW)
        assert {n.id for n in graph.nodes} == {"i", "t"}
        assert [(e.source, e.target) for e in graph.edges] == [("i", "t")]

    def test_node_tag_filter_any_match(self) -> None:
        cards = [make_card("a", tags=["ux"]), make_card("b", tags=["ops"]), make_card("c")]
        config = NetworkConfig(node_filter=NodeFilter(tags=frozenset({"ux", "sales"})))
        graph = build_graph(cards, [], config, now=NOW)
        assert [n.id for n in graph.nodes] == ["a"]

    def test_edge_filter(self) -> None:
        """Test minimum strength and relationship type filters."""
        cards = [make_card("a"), make_card("b"), make_card("c")]
        rels = [
            make_rel("a", "b", 0.2, "manual"),
            make_rel("b", "c", 0.7, "semantic"),
            make_rel("a", "c", 0.9, "manual"),
        ]
        config = NetworkConfig(edge_filter=EdgeFilter(min_strength=0.5, types=frozenset({"manual"})))
        graph = build_graph(cards, rels, config, now=NOW)
        assert [(e.source, e.target) for e in graph.edges] == [("a", "c")]

    def test_centrality_counts_exact_two_hops(self) -> None:
        """Test centrality = |1-hop| + 0.3 x |2-hop| on a path a-b-c."""
        cards = [make_card("a"), make_card("b"), make_card("c")]
        graph = build_graph(cards, [make_rel("a", "b"), make_rel("b", "c")], now=NOW)
        assert graph.get_node("a").centrality == pytest.approx(1.3)
        assert graph.get_node("b").centrality == pytest.approx(2.0)
        assert graph.get_node("c").centrality == pytest.approx(1.3)

    def test_triangle_has_no_second_hop(self) -> None:
        """Test direct neighbours are not counted again as 2-hop neighbours."""
        cards = [make_card("a"), make_card("b"), make_card("c")]
        rels = [make_rel("a", "b"), make_rel("b", "c"), make_rel("a", "c")]
        graph = build_graph(cards, rels, now=NOW)
        for node in graph.nodes:
            assert node.centrality == pytest.approx(2.0)

    def test_importance_and_size(self) -> None:
        """Test the importance formula on an unconnected, empty THEMES card."""
        card = make_card("t", CardCategory.THEMES, title="")
        graph = build_graph([card], [], now=NOW)
        node = graph.get_node("t")
        # 0.4*0 + 0.01*0 + 0.3*5 + 0.3*1.0
        assert node.importance_score == pytest.approx(1.8)
        assert node.size_class is SizeClass.SMALL

    def test_large_node(self) -> None:
        """Test a long, well-connected card reaches a larger size class."""
        hub = make_card("hub", CardCategory.THEMES, content="x" * 300)
        leaves = [make_card(f"l{i}") for i in range(5)]
        rels = [make_rel("hub", leaf.id) for leaf in leaves]
        graph = build_graph([hub, *leaves], rels, now=NOW)
        # 0.4*5 + 0.01*(300 + 2*len("Card hub")) + 1.5 + 0.3
        assert graph.get_node("hub").importance_score == pytest.approx(2.0 + 3.16 + 1.8)
        assert graph.get_node("hub").size_class is SizeClass.LARGE

    def test_metrics(self) -> None:
        cards = [make_card("a"), make_card("b"), make_card("c")]
        graph = build_graph(cards, [make_rel("a", "b"), make_rel("b", "c")], now=NOW)
        assert graph.metrics.total_nodes == 3
        assert graph.metrics.total_edges == 2
        assert graph.metrics.average_connections == pytest.approx(4 / 3)
        assert graph.metrics.network_density == pytest.approx(2 / 3)

    def test_strength_clamped(self) -> None:
        graph = build_graph([make_card("a"), make_card("b")], [make_rel("a", "b", 1.7)], now=NOW)
        assert graph.edges[0].strength == 1.0


class TestNodeMetrics:
    """Tests for per-node metric helpers."""

    def test_content_density(self) -> None:
        card = make_card("a", title="ab", content="abcd", tags=["x", "y"])
        assert compute_content_density(card, ImportanceConfig()) == 4 + 2 * 2 + 10 * 2

    def test_recency_weight(self) -> None:
        config = ImportanceConfig()
        fresh = make_card("a", created_at=NOW)
        half = make_card("b", created_at=NOW - timedelta(days=15))
        old = make_card("c", created_at=NOW - timedelta(days=90))
        assert compute_recency_weight(fresh, NOW, config) == pytest.approx(1.0)
        assert compute_recency_weight(half, NOW, config) == pytest.approx(0.5)
        assert compute_recency_weight(old, NOW, config) == pytest.approx(0.2)

    def test_recency_without_timestamps(self) -> None:
        card = make_card("a")
        card.created_at = None
        card.updated_at = None
        assert compute_recency_weight(card, NOW, ImportanceConfig()) == 1.0

    def test_hop_counts(self) -> None:
        first, second = hop_counts(4, [(0, 1), (1, 2), (2, 3)])
        assert first.tolist() == [1, 2, 2, 1]
        assert second.tolist() == [1, 1, 1, 1]

    def test_hop_counts_empty(self) -> None:
        first, second = hop_counts(0, [])
        assert first.tolist() == []
        assert second.tolist() == []

    def test_hop_counts_excludes_direct_and_self(self) -> None:
        """Test a node reachable both directly and in two steps counts as 1-hop only."""
        first, second = hop_counts(4, [(0, 1), (1, 2), (0, 2), (2, 3), (2, 3)])
        assert first.tolist() == [2, 2, 3, 1]
        assert second.tolist() == [1, 1, 0, 2]

    def test_hop_counts_large_sparse_board(self) -> None:
        n = 5000
        first, second = hop_counts(n, [(i, i + 1) for i in range(n - 1)])
        assert first[0] == 1 and first[n // 2] == 2
        assert second[0] == 1 and second[1] == 1 and second[n // 2] == 2
        assert int(second.sum()) == 2 * (n - 2)


class TestNetworkConfig:
    """Tests for the accepted view configuration shape."""

    def test_camel_case_aliases(self) -> None:
        config = NetworkConfig.model_validate(
            {"viewMode": "circular", "edgeFilter": {"minStrength": 0.4}, "nodeFilter": {"types": ["THEMES"]}}
        )
        assert config.view_mode == "circular"
        assert config.edge_filter.min_strength == 0.4
        assert config.node_filter.types == frozenset({CardCategory.THEMES})

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NetworkConfig.model_validate({"viewMode": "card", "layout": "force"})

    def test_min_strength_range(self) -> None:
        with pytest.raises(ValidationError):
            EdgeFilter(min_strength=1.5)
